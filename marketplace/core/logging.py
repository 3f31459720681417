"""
Logging setup - one stream handler on the root logger, configured at startup.
Modules log through logging.getLogger(__name__).
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: str = "INFO") -> None:
    """Install the stream handler once; later calls only adjust the level."""
    global _configured
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    if _configured:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    # Quiet chatty client libraries
    for noisy in ("httpx", "elasticsearch", "elastic_transport"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    _configured = True
