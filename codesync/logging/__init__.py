# codesync/logging/__init__.py
from codesync.logging.logger import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
