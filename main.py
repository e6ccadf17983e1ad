"""
SupportDesk -- Application Entry Point.

Starts the FastAPI server via uvicorn.

Usage:
    python main.py              # Development (reload enabled)
    uvicorn main:app --host 0.0.0.0 --port 8000  # Production
"""

from __future__ import annotations

import os

import uvicorn

from supportdesk.api import create_app
from supportdesk.lib.logging import setup_logging

setup_logging()
app = create_app()


if __name__ == "__main__":
    port = int(os.getenv("SUPPORTDESK_PORT", "8000"))
    host = os.getenv("SUPPORTDESK_HOST", "0.0.0.0")
    reload = os.getenv("SUPPORTDESK_DEV_MODE", "0") == "1"

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )
