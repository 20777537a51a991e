import logging
import sys
from pythonjsonlogger import jsonlogger


def setup_logging(level: int = logging.INFO):
    """
    Configures centralized JSON logging on stdout.
    Keeps application loggers at INFO and quiets transport/driver chatter.
    """
    # 1. Get the root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # 2. Prevent duplicate logs by removing existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # 3. Single stdout handler (container log drivers pick it up)
    log_handler = logging.StreamHandler(sys.stdout)

    # 4. JSON format, one object per line
    formatter = jsonlogger.JsonFormatter(
        fmt='%(asctime)s %(levelname)s %(name)s %(message)s',
        datefmt='%Y-%m-%dT%H:%M:%SZ'
    )
    log_handler.setFormatter(formatter)
    root_logger.addHandler(log_handler)

    # 5. Library-specific verbosity
    logging.getLogger("carcheck").setLevel(level)
    logging.getLogger("langchain").setLevel(logging.INFO)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("asyncpg").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    root_logger.info("Logging infrastructure initialized successfully.")
