#!/usr/bin/env python
"""
Feature Registry API Server Runner.

Usage:
    python run_api.py

Or with PM2:
    pm2 start run_api.py --interpreter python
"""

import sys
import logging
import uvicorn

from core.config import RegistryConfig


def main():
    """Run the feature registry API server."""
    config = RegistryConfig.from_env()

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format='%(asctime)s | %(levelname)s | %(name)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    logger = logging.getLogger(__name__)

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(f"Configuration error: {error}")
        sys.exit(1)

    reload = config.environment == "development"

    logger.info(f"Starting Feature Registry API on {config.api_host}:{config.api_port}")

    try:
        uvicorn.run(
            "api:app",
            host=config.api_host,
            port=config.api_port,
            reload=reload,
            log_level=config.log_level.lower(),
            access_log=True,
        )
    except Exception as e:
        logger.error(f"Failed to start feature registry: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
