import logging
import sys
from typing import Optional


class NamespaceFilter(logging.Filter):
    def __init__(self, allowed_namespaces=None):
        super().__init__()
        self.allowed_namespaces = allowed_namespaces if allowed_namespaces is not None else []

    def filter(self, record):
        if not self.allowed_namespaces:
            return True # If no namespaces are specified, allow all records
        # Allow record if its name starts with any of the allowed namespaces
        return any(record.name.startswith(ns) for ns in self.allowed_namespaces)


log_formatter = logging.Formatter(
    fmt="%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def configure_logging(level: str = "INFO", allowed_namespaces: Optional[list[str]] = None) -> logging.Logger:
    """Configures the 'bazar_admin' logger tree.

    Modules use logging.getLogger(__name__), so their loggers
    ("bazar_admin.features.reports.service", ...) inherit the level and the
    stdout handler installed here. Calling this twice does not add a second
    handler.

    Args:
        level: Level name for the application logger (e.g. "INFO", "DEBUG").
        allowed_namespaces: Optional logger-name prefixes; when given, only
            records from those namespaces reach the console.

    Returns:
        The configured application logger.
    """
    app_logger = logging.getLogger("bazar_admin")
    app_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    console_handler = next(
        (h for h in app_logger.handlers if getattr(h, "name", None) == "bazar_admin.console"),
        None,
    )
    if console_handler is None:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.set_name("bazar_admin.console")
        console_handler.setFormatter(log_formatter)
        app_logger.addHandler(console_handler)

    for existing in list(console_handler.filters):
        if isinstance(existing, NamespaceFilter):
            console_handler.removeFilter(existing)
    if allowed_namespaces:
        console_handler.addFilter(NamespaceFilter(allowed_namespaces))

    # Admin actions stay visible when the application runs at WARNING
    logging.getLogger("bazar_admin.features.audit").setLevel(logging.INFO)

    return app_logger

