#!/usr/bin/env python3
"""Main entry point for the XHTML negotiation service.

This module initializes all components and starts the HTTP server.
"""

import logging
import sys
from pathlib import Path

from src.app import run_server
from src.config import Config, ConfigError
from src.pages import PageStore, PageStoreError
from src.renderer import Renderer

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


def main():
    """Main entry point for the application."""
    logger.info("Starting XHTML negotiation service...")

    try:
        logger.info("Loading configuration...")
        config_file = "config.toml" if Path("config.toml").exists() else None
        config = Config.from_env_and_file(config_file)
        logger.info(f"Configuration loaded: {config}")

        logger.info("Validating pages path...")
        config.validate_pages_path()

        logger.info("Initializing page store...")
        page_store = PageStore(config.pages_path)

        logger.info("Initializing renderer...")
        renderer = Renderer(config.negotiation)

        if config.negotiation.disabled:
            logger.info("Content negotiation is disabled, pages are served as rendered")
        else:
            logger.info(
                f"Content negotiation enabled, encoding: {config.negotiation.get_encoding()}"
            )

        logger.info(f"Starting HTTP server on port {config.listen_port}...")
        run_server(config, page_store, renderer)

    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        logger.error("Please check your configuration and try again")
        sys.exit(1)
    except PageStoreError as e:
        logger.error(f"Page store initialization error: {e}")
        logger.error("Please check your pages path")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully...")
        sys.exit(0)
    except Exception as e:
        logger.exception(f"Unexpected error during startup: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
