"""
Centralized logging configuration for the patient registry.
"""
import logging
import sys


LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(level: str = "INFO", debug: bool = False) -> None:
    """
    Configure the root logger with a single stdout handler.

    Calling it again replaces the previous handler, so the composition root
    can run it once per application instance.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if debug else level.upper())

    for handler in list(root_logger.handlers):
        if getattr(handler, "_patient_registry", False):
            root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    console_handler._patient_registry = True
    root_logger.addHandler(console_handler)

    # SQL echo only in debug mode
    logging.getLogger('sqlalchemy.engine').setLevel(logging.INFO if debug else logging.WARNING)
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)
