"""
FILE DESCRIPTION: Foundational module for global configuration and logging.
KEY FUNCTIONS/CLASSES: load_env, setup_logger, GemwalkFormatter, protocol constants
"""

import logging
import os
import sys
from datetime import datetime

from dotenv import find_dotenv, load_dotenv

# === CONFIGURATION SECTION ===

def load_env():
    """Load the .env nearest to the working directory; real environment variables win."""
    return load_dotenv(find_dotenv(usecwd=True))

load_env()

# Default Gemini port
DEFAULT_PORT = int(os.getenv("GEMWALK_PORT", 1965))

# Network timeout in seconds. Covers connect + handshake + header read as one
# deadline, then each body read on its own.
REQUEST_TIMEOUT = float(os.getenv("GEMWALK_TIMEOUT", 5))

# Wire limits (bytes, terminator excluded)
MAX_REQUEST_BYTES = 1024
MAX_HEADER_BYTES = 1024

# Body read size per recv call
READ_CHUNK = 4096

# Robots resource path for robots.txt on Gemini
ROBOTS_PATH = "/robots.txt"

LOG_LEVEL = os.getenv("GEMWALK_LOG_LEVEL", "WARNING").upper()
LOG_FILE = os.getenv("GEMWALK_LOG_FILE") or None


# === LOGGING SECTION ===

class GemwalkFormatter(logging.Formatter):
    """
    FLOW: Receives a log record -> Extracts timestamp -> Formats as
    [ Tue Jan 06 05:32:41 AM UTC 2026 ] -> Prepends level and context -> Returns final string.
    """
    def format(self, record):
        dt = datetime.fromtimestamp(record.created)
        timestamp = dt.strftime("%a %b %d %I:%M:%S %p UTC %Y")
        context = getattr(record, 'context', record.name)
        message = f"[ {timestamp} ] : {record.levelname} : {context} : {record.getMessage()}"
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message

def setup_logger(name="gemwalk", log_file=LOG_FILE, level=LOG_LEVEL):
    """
    FLOW: Initializes/Retrieves logger -> Checks for existing handlers to prevent duplicates ->
    Sets propagation for child loggers -> Attaches stderr and optional File handlers with GemwalkFormatter.

    Output goes to stderr so response bodies printed on stdout stay clean.
    """
    logger = logging.getLogger(name)

    if name != "gemwalk":
        logger.propagate = True
        setup_logger("gemwalk", log_file=log_file, level=level)
        return logger

    logger.setLevel(level)
    if logger.handlers:
        return logger

    formatter = GemwalkFormatter()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger

# Global logger instance
logger = setup_logger()
