"""Main entry point for the game bot."""
import logging

from describo.app import DescriboBot
from describo.config import ensure_directories, settings
from describo.logging_config import setup_logging
from describo.monitoring import start_monitoring

logger = logging.getLogger(__name__)


def main() -> None:
    """Set up the environment and run the bot."""
    # Ensure all required directories exist
    ensure_directories()

    setup_logging("Starting Describo v0.1.0 ...")

    if settings.monitoring.enabled:
        start_monitoring(settings.monitoring.port)
        logger.info(f"Metrics served on port {settings.monitoring.port}")

    DescriboBot().run()


if __name__ == "__main__":
    main()
