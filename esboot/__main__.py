"""
Container entry point.

Usage (Dockerfile):
    ENTRYPOINT ["esboot"]

Takes no arguments; configured entirely through ESBOOT_* environment
variables and the optional YAML config file.
"""
import logging
import sys
from typing import Optional

from esboot.bootstrapper import Bootstrapper
from esboot.config import get_config
from esboot.errors import BootstrapError


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger("esboot")


def configure_logging(level: str = "INFO"):
    """Send esboot log records to stderr; stdout belongs to the delegate."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.handlers = [handler]
    logger.setLevel(level)
    logger.propagate = False


def main(bootstrapper: Optional[Bootstrapper] = None):
    """Run the bootstrap; exits 1 on any failure before handoff."""
    configure_logging()

    try:
        if bootstrapper is None:
            config = get_config()
            configure_logging(config.log_level)
            bootstrapper = Bootstrapper(config)
        bootstrapper.run()
    except BootstrapError as e:
        logger.error(str(e))
        print(f"esboot: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
