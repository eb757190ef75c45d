import logging
import sys
import os


def setup_logging(level: str = None) -> logging.Logger:
    """Configure logging for the beacon daemon."""
    log_level = level or os.environ.get("LOG_LEVEL", "INFO")
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger("beacon")
    root.setLevel(numeric_level)
    # Calling twice (tests, --log-level re-run) must not stack handlers
    for old in list(root.handlers):
        root.removeHandler(old)
    root.addHandler(handler)
    root.propagate = False

    logging.basicConfig(level=logging.WARNING)

    # PIL logs every font/plugin lookup at DEBUG; pyobjc is chatty on bridge setup
    for name in ("PIL", "objc", "asyncio"):
        logging.getLogger(name).setLevel(logging.WARNING)

    return root
