import json
import logging
import os
from logging.handlers import RotatingFileHandler

# Create logs directory if it doesn't exist
LOG_DIR = os.environ.get('LOG_DIR', 'logs')
if not os.path.exists(LOG_DIR):
    try:
        os.makedirs(LOG_DIR)
    except OSError:
        LOG_DIR = '.'  # Fall back to current directory

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class JsonFormatter(logging.Formatter):
    """Outputs log records as single-line JSON objects."""

    def format(self, record):
        log_entry = {
            "timestamp": self.formatTime(record, DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "filename": record.filename,
            "lineno": record.lineno,
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

# Console handler (always enabled)
console_handler = logging.StreamHandler()
console_handler.setLevel(logging.INFO)
console_handler.setFormatter(formatter)

# Rotating application log (5MB max, keep 5 backups)
try:
    file_handler = RotatingFileHandler(
        os.path.join(LOG_DIR, 'tidelog.log'),
        maxBytes=5*1024*1024,
        backupCount=5,
        encoding='utf-8',
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
except OSError:
    file_handler = None

# Error-only log
try:
    error_handler = RotatingFileHandler(
        os.path.join(LOG_DIR, 'errors.log'),
        maxBytes=2*1024*1024,
        backupCount=3,
        encoding='utf-8',
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(formatter)
except OSError:
    error_handler = None

root_logger = logging.getLogger()
root_logger.setLevel(logging.DEBUG)
root_logger.addHandler(console_handler)
if file_handler:
    root_logger.addHandler(file_handler)
if error_handler:
    root_logger.addHandler(error_handler)

logger = logging.getLogger('tidelog')
logger.setLevel(logging.DEBUG)

# Reduce noise from third-party libraries
logging.getLogger('werkzeug').setLevel(logging.WARNING)
logging.getLogger('urllib3').setLevel(logging.WARNING)


def engine_log_level(debug):
    """Level for the dashboard engine loggers: bucket and fold counts only in debug runs."""
    return logging.DEBUG if debug else logging.INFO


DEBUG_MODE = os.environ.get('FLASK_DEBUG', 'False').lower() == 'true'
logging.getLogger('dashboard').setLevel(engine_log_level(DEBUG_MODE))

if os.environ.get('LOG_FORMAT', 'text').lower() == 'json':
    json_formatter = JsonFormatter()
    console_handler.setFormatter(json_formatter)
    if file_handler:
        file_handler.setFormatter(json_formatter)
    if error_handler:
        error_handler.setFormatter(json_formatter)

logger.info("Tidelog logging initialized")
