"""Logging and URL helpers."""

import logging
from urllib.parse import urlparse

import coloredlogs


def get_url_domain(url: str) -> str:
    """Redact URL so that only domain is displayed.

    Some services e.g. infura use path as an API key.
    """
    parsed = urlparse(url)
    if parsed.port in (80, 443, None):
        return parsed.hostname
    else:
        return f"{parsed.hostname}:{parsed.port}"


def setup_console_logging(log_level: int = logging.WARNING) -> logging.Logger:
    """Set up coloured log output.

    - Log output goes to stderr, so it does not mix with the transfer report on stdout
    - Tune down some noisy dependency library logging

    :param log_level:
        Numeric level, see :py:func:`axon_transfer.config.read_log_level`

    :return:
        Root logger
    """

    fmt = "%(asctime)s %(name)-30s %(levelname)-8s %(message)s"
    date_fmt = "%H:%M:%S"

    coloredlogs.install(level=log_level, fmt=fmt, datefmt=date_fmt)

    # Mute noise
    logging.getLogger("web3.providers.AsyncHTTPProvider").setLevel(logging.WARNING)
    logging.getLogger("web3.RequestManager").setLevel(logging.WARNING)
    logging.getLogger("urllib3.connectionpool").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    return logging.getLogger()
