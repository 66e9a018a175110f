"""
# Logging Manager

Central logging setup for the Blog Platform. Every module obtains its logger through
`get_logger()`, optionally with a prefix that tags each line with the component that
emitted it:

```python
from blog_platform.managers.logging_manager import get_logger

logger = get_logger(prefix="[Content Repository]")
logger.info("Created post %s", post_id)
# 2024-01-15 10:30:00,123 - BlogPlatform - INFO - [Content Repository] Created post post_ab12...
```

The root handler is installed once, the first time a logger is requested. The level
comes from `settings.LOG_LEVEL`.
"""

import logging
import sys
from typing import Any, MutableMapping, Optional, Tuple

DEFAULT_LOGGER_NAME = "BlogPlatform"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


class PrefixedLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that prepends a fixed prefix to every message."""

    def __init__(self, logger: logging.Logger, prefix: str = ""):
        super().__init__(logger, {})
        self.prefix = prefix

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        if self.prefix:
            return f"{self.prefix} {msg}", kwargs
        return msg, kwargs


def _resolve_level(level: Optional[str]) -> int:
    if not level:
        return logging.INFO
    return getattr(logging, level.strip().upper(), logging.INFO)


def setup_logging(level: Optional[str] = None, force: bool = False) -> None:
    """
    Install the stream handler on the application logger.

    Args:
        level: Log level name; defaults to `settings.LOG_LEVEL`.
        force: Reinstall the handler even if logging was already configured.
    """
    global _configured
    if _configured and not force:
        return

    if level is None:
        from blog_platform.config import settings

        level = settings.LOG_LEVEL

    app_logger = logging.getLogger(DEFAULT_LOGGER_NAME)
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    app_logger.addHandler(handler)
    app_logger.setLevel(_resolve_level(level))
    app_logger.propagate = False
    _configured = True


def get_logger(name: str = DEFAULT_LOGGER_NAME, prefix: str = "") -> PrefixedLoggerAdapter:
    """
    Return a logger for `name`, tagging each message with `prefix`.

    Child names (anything other than the default) are nested under the application
    logger so they share its handler and level.
    """
    setup_logging()
    if name != DEFAULT_LOGGER_NAME and not name.startswith(f"{DEFAULT_LOGGER_NAME}."):
        name = f"{DEFAULT_LOGGER_NAME}.{name}"
    return PrefixedLoggerAdapter(logging.getLogger(name), prefix)
