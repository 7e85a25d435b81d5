from datetime import datetime
import os
import logging
import json
import sys
import tempfile

# Attributes attached through `extra=` that are copied into the JSON payload
EXTRA_FIELDS = ("metrics", "operation", "duration")


class JsonLogger(logging.Formatter):
    """Formatter that outputs JSON strings after parsing the log record."""

    def format(self, record):
        """
        Format the log record as a JSON string.

        Args:
            record: The log record to format

        Returns:
            str: JSON formatted log string
        """
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'line': record.lineno,
            'function': record.funcName
        }

        for field in EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        if record.exc_info:
            log_data['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': self.formatException(record.exc_info)
            }

        return json.dumps(log_data, default=str)


def get_project_root():
    """
    Get the absolute path to the project root directory.

    Returns:
        str: Path to project root directory
    """
    # trigram_markov/utils/loggers -> project root
    current_dir = os.path.dirname(os.path.abspath(__file__))
    return os.path.abspath(os.path.join(current_dir, '..', '..', '..'))


def setup_log_file(log_file_path):
    """
    Make sure the directory of a log file exists.

    Falls back to the system temp directory when the directory cannot be created.

    Args:
        log_file_path (str): Path to the log file

    Returns:
        str: Absolute path to the log file
    """
    log_dir = os.path.dirname(os.path.abspath(log_file_path))
    try:
        os.makedirs(log_dir, exist_ok=True)
    except OSError as e:
        fallback = os.path.join(
            tempfile.gettempdir(), os.path.basename(log_file_path))
        logging.getLogger(__name__).warning(
            f"Could not create log directory {log_dir}: {e}. Logging to {fallback}")
        return fallback

    return os.path.abspath(log_file_path)


def determine_log_path(log_file=None):
    """
    Determine the path for the log file.

    Args:
        log_file (str, optional): Specific log file path

    Returns:
        str: Path to use for logging
    """
    if log_file:
        return setup_log_file(log_file)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    default_log_file = os.path.join(
        get_project_root(), 'logs', f"trigram_markov_{timestamp}.log")

    return setup_log_file(default_log_file)


def get_logger(logger_name, log_file=None, clear_existing=True, console_json=True,
               console_level=logging.INFO):
    """
    Get a configured logger instance with JSON formatting.

    Args:
        logger_name (str): Name for the logger
        log_file (str, optional): Path to the log file. An empty string selects
            a timestamped file under the project's logs directory.
        clear_existing (bool): Whether to clear existing handlers
        console_json (bool): Whether to use JSON formatting for console output
        console_level (int): Minimum level written to the console

    Returns:
        logging.Logger: Configured logger instance
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG)

    if clear_existing and logger.handlers:
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()

    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)

    if console_json:
        console_handler.setFormatter(JsonLogger())
    else:
        console_handler.setFormatter(logging.Formatter(
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))

    logger.addHandler(console_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(determine_log_path(log_file))
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JsonLogger())
        logger.addHandler(file_handler)

    return logger


def log_json(logger, message, data=None):
    """
    Log a message with optional JSON data.

    Args:
        logger (logging.Logger): Logger instance
        message (str): Log message
        data (dict, optional): Data to include in the log
    """
    if data is None:
        logger.info(message)
    else:
        logger.info(message, extra={"metrics": data})
