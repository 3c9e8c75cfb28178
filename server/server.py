#!/usr/bin/env python3
"""
Oracle Recommendation Server — entrypoint for uvicorn server.server:app.

For uvicorn server:app use server/__init__.py (exposes app from server.app).
"""

import logging

from .app import app
from .config import get_config

if __name__ == "__main__":
    import uvicorn

    config = get_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())
