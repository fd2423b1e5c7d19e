"""Web server entry point for the library catalog API"""

import sys
import traceback

import uvicorn

from catalog.core.config import load_settings
from catalog.core.logger import configure_logging, get_logger


def _unhandled_exception(exc_type, exc_value, exc_tb):
    """Log unhandled exceptions before the process exits."""
    if exc_type is KeyboardInterrupt:
        sys.__excepthook__(exc_type, exc_value, exc_tb)
        return
    msg = "".join(traceback.format_exception(exc_type, exc_value, exc_tb))
    get_logger("catalog").critical("Unhandled exception", traceback=msg)
    sys.__excepthook__(exc_type, exc_value, exc_tb)


def main() -> None:
    sys.excepthook = _unhandled_exception

    settings = load_settings()
    configure_logging(settings.logging.level, settings.logging.format)

    from catalog_web.app import create_app

    app = create_app(settings)
    uvicorn.run(
        app,
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,  # keep structlog's handlers
    )


if __name__ == "__main__":
    main()
