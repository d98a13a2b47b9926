from __future__ import annotations

import os

import uvicorn

from config import settings


class ServeCommand:
    def run(self, host: str = None, port: int = None) -> int:
        settings.create_directories()
        from presentation.api import create_app

        uvicorn.run(
            create_app(),
            host=host or os.getenv("API_HOST", "127.0.0.1"),
            port=port or int(os.getenv("API_PORT", "8000")),
            log_config=None,
        )
        return 0
