"""Logging configuration for the bot."""
import sys
from loguru import logger
import os

from config.config import LOG_DIR, LOG_LEVEL

# Create logs directory if it doesn't exist
os.makedirs(LOG_DIR, exist_ok=True)

# Configure logger
logger.remove()  # Remove default handler

# For logging to the console
logger.add(
    sys.stderr,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level=LOG_LEVEL.upper()
)

# For logging to a file
logger.add(
    os.path.join(LOG_DIR, "todo_bot_{time}.log"),
    rotation="1 day",
    retention="7 days",
    format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[name]}:{function}:{line} - {message}",
    level="DEBUG"
)

# Records logged without bind() still carry a name
logger.configure(extra={"name": "todo_bot"})

def get_logger(name: str):
    """Get a logger instance with the specified name."""
    return logger.bind(name=name)
