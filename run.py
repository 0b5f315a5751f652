#!/usr/bin/env python3
"""
Simple run script for the nodeflow server.

Usage:
    python run.py

Or with custom settings:
    HOST=127.0.0.1 PORT=8080 python run.py
"""

import uvicorn
import os

from nodeflow.config import settings


def main():
    """Run the FastAPI application."""
    host = os.getenv("HOST", settings.HOST)
    port = int(os.getenv("PORT", str(settings.PORT)))
    reload = os.getenv("RELOAD", "false").lower() == "true"

    print(f"""
  nodeflow {settings.APP_VERSION}
  Server:    http://{host}:{port}
  API Docs:  http://{host}:{port}/docs
  Demo workflow ID: qa-demo
    """)

    uvicorn.run(
        "nodeflow.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
