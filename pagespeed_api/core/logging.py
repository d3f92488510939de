# pagespeed_api/core/logging.py
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configures the root logger once; uvicorn keeps its own handlers."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    logging.getLogger("pagespeed_api").setLevel(level.upper())
    # httpx logs every request line at INFO, which would echo the API key
    logging.getLogger("httpx").setLevel(logging.WARNING)
