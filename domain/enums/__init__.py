"""Domain enumerations."""
from .region import Region, Platform
from .endpoint_class import EndpointClass, RequestType
from .states import ScanState, ReasonTag, JobStatus

__all__ = [
    'Region',
    'Platform',
    'EndpointClass',
    'RequestType',
    'ScanState',
    'ReasonTag',
    'JobStatus',
]
