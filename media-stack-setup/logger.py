#!/usr/bin/env python3
"""
Logging configuration for the media stack setup script.
Provides colored console output, an optional log file, and
helpers for the colored status lines shown during setup.
"""

import logging
import sys
from pathlib import Path

import config

class ColoredFormatter(logging.Formatter):
    """Custom formatter that adds colors to console output"""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
    }
    RESET = '\033[0m'

    # Status tags passed as extra={'status': ...}, colored on the console only
    STATUS_TAGS = {
        '[OK]': '\033[32m',
        '[CREATED]': '\033[32m',
        '[WRITTEN]': '\033[32m',
        '[EXISTS]': '\033[33m',
        '[FAILED]': '\033[31m',
    }

    def use_color(self):
        return hasattr(sys.stderr, 'isatty') and sys.stderr.isatty()

    def format(self, record):
        # Color a copy so other handlers still see the plain record
        if self.use_color():
            record = logging.makeLogRecord(record.__dict__)
            levelname = record.levelname
            if levelname in self.COLORS:
                record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"

            status = getattr(record, 'status', None)
            if status in self.STATUS_TAGS and isinstance(record.msg, str) and record.msg.startswith(status):
                record.msg = f"{self.STATUS_TAGS[status]}{status}{self.RESET}{record.msg[len(status):]}"

        return super().format(record)

# Colors for user-facing print() output
STATUS_COLORS = {
    'green': '\033[32m',
    'yellow': '\033[33m',
    'red': '\033[31m',
    'cyan': '\033[36m',
    'bold': '\033[1m',
}

def colorize(text, color):
    """Wrap text in an ANSI color when stdout is a terminal."""
    code = STATUS_COLORS.get(color)
    if code is None or not (hasattr(sys.stdout, 'isatty') and sys.stdout.isatty()):
        return text
    return f"{code}{text}{ColoredFormatter.RESET}"

def setup_logging(name='media-stack-setup', level=None, log_file=None):
    """
    Set up logging configuration

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (optional)

    Returns:
        logging.Logger: Configured logger instance
    """
    if level is None:
        level = config.LOG_LEVEL

    if log_file is None:
        log_file = config.LOG_FILE

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove existing handlers
    logger.handlers = []

    console_handler = logging.StreamHandler(sys.stderr)
    console_formatter = ColoredFormatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if log_file:
        try:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            logger.addHandler(file_handler)

            logger.debug(f"Logging to file: {log_file}")
        except OSError as e:
            logger.warning(f"Failed to create log file {log_file}: {e}")

    return logger

def set_level(level):
    """Change the level of every media-stack-setup logger already created."""
    numeric = getattr(logging, level.upper(), logging.INFO)
    for name, existing in logging.Logger.manager.loggerDict.items():
        if name.startswith('media-stack-setup') and isinstance(existing, logging.Logger):
            existing.setLevel(numeric)
