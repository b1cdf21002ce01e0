# app_logging.py
import logging

from pythonjsonlogger import jsonlogger

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logger(level: str = "INFO", fmt: str = "json") -> None:
     """Attach the application's stream handler to the root logger once."""
     logger = logging.getLogger()
     logger.setLevel(level)
     if any(getattr(h, "_app_handler", False) for h in logger.handlers):
          return

     logHandler = logging.StreamHandler()
     if fmt == "json":
          formatter = jsonlogger.JsonFormatter(
               '%(asctime)s %(levelname)s %(name)s %(message)s',
               rename_fields={'levelname': 'level', 'asctime': 'timestamp'},
          )
     else:
          formatter = logging.Formatter(TEXT_FORMAT)
     logHandler.setFormatter(formatter)
     logHandler._app_handler = True
     logger.addHandler(logHandler)
