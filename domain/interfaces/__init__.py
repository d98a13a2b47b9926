"""Domain interfaces."""
from .repository import IRateLimiter, IUpstreamClient, IMatchStore

__all__ = [
    'IRateLimiter',
    'IUpstreamClient',
    'IMatchStore',
]
