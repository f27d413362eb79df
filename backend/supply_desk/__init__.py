"""supply_desk."""

from .logger import configure_logger

# console logging until create_app() applies the configured level
configure_logger()
