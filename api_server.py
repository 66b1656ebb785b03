#!/usr/bin/env python
"""
Entry point for the Replivity API server

    uvicorn api_server:app
"""
import logging
import os
import sys

from replivity.api_server import app

if __name__ == "__main__":
    import uvicorn

    logger = logging.getLogger(__name__)

    try:
        port = int(os.getenv("PORT", 8000))
    except ValueError:
        logger.warning(f"Invalid PORT value: {os.getenv('PORT')}, using default 8000")
        port = 8000

    logger.info(f"Starting Replivity API server on port {port}")
    logger.info(f"Health check endpoint: http://0.0.0.0:{port}/health")

    try:
        uvicorn.run(
            app,
            host="0.0.0.0",
            port=port,
            log_config=None,
            access_log=True,
        )
    except Exception as e:
        logger.error(f"Failed to start server: {e}", exc_info=True)
        sys.exit(1)
