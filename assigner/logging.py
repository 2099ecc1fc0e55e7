"""Logging setup for the assigner service.

The root level and format come from config.logging (or LOGGING_LEVEL /
LOGGING_FORMAT). Two service knobs sit on top of that:

- logging.loggers: levels per namespace, e.g. ``assigner.store: DEBUG`` to
  trace SQL work while the rest stays at INFO.
- logging.access_log: false silences the one-line-per-request log
  (``assigner.api.access``); server start/stop and errors still log.
"""

import logging

from assigner.config import LoggingConfig

ACCESS_LOGGER = "assigner.api.access"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR")

LOG = logging.getLogger("assigner.logging")


def _parse_level(name: str) -> int | None:
    name = name.upper().strip()
    if name not in _LEVEL_NAMES:
        return None
    return getattr(logging, name)


def setup_logging(config: LoggingConfig) -> None:
    """Configure the root logger, access log and per-namespace levels."""
    root_level = _parse_level(config.level)
    logging.basicConfig(
        level=root_level if root_level is not None else logging.INFO,
        format=config.format or DEFAULT_FORMAT,
        force=True,
    )
    if root_level is None:
        LOG.warning("Unknown log level %r, using INFO", config.level)

    # NOTSET defers to the parent again when a previous setup muted it
    logging.getLogger(ACCESS_LOGGER).setLevel(logging.NOTSET if config.access_log else logging.WARNING)

    for name, level in config.loggers.items():
        resolved = _parse_level(level)
        if resolved is None:
            LOG.warning("Unknown log level %r for logger %s, ignored", level, name)
            continue
        logging.getLogger(name).setLevel(resolved)
