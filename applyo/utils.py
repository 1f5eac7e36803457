"""
Utility functions and helpers for the application.
"""

import logging
import logging.handlers
import math
import re
from datetime import datetime
from functools import wraps
from typing import Iterable, List, Optional
from urllib.parse import urlparse
import time

from applyo.config import settings, LOGS_DIR

logger = logging.getLogger(__name__)

INT64_MIN = -2 ** 63
INT64_MAX = 2 ** 63 - 1


# ============================================================================
# Logging Setup
# ============================================================================

def setup_logging(name: str = "applyo", level: Optional[str] = None) -> logging.Logger:
    """
    Configure and return a logger instance.

    Args:
        name: Logger name (the package logger by default)
        level: Log level name, defaults to settings.log_level

    Returns:
        logging.Logger: Configured logger
    """
    level_name = (level or settings.log_level).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    # Handlers are attached once; later calls only adjust the level
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(log_level)
        return logger

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_format = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_handler.setFormatter(console_format)
    logger.addHandler(console_handler)

    # File handler
    if settings.environment != "testing":
        LOGS_DIR.mkdir(exist_ok=True)
        log_file = LOGS_DIR / f"applyo_{datetime.now().strftime('%Y%m%d')}.log"
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
        )
        file_handler.setLevel(log_level)
        file_format = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        file_handler.setFormatter(file_format)
        logger.addHandler(file_handler)

    return logger


# ============================================================================
# Decorators
# ============================================================================

def retry(max_attempts: int = 3, delay: float = 1.0, backoff: float = 2.0):
    """
    Retry decorator with exponential backoff.

    Args:
        max_attempts: Maximum number of attempts
        delay: Initial delay in seconds
        backoff: Backoff multiplier
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            attempt = 0
            current_delay = delay

            while attempt < max_attempts:
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    attempt += 1
                    if attempt >= max_attempts:
                        logger.error(f"Failed after {max_attempts} attempts: {str(e)}")
                        raise

                    logger.warning(
                        f"Attempt {attempt}/{max_attempts} failed for {func.__name__}, "
                        f"retrying in {current_delay}s: {str(e)}"
                    )
                    time.sleep(current_delay)
                    current_delay *= backoff

        return wrapper
    return decorator


def timeit(func):
    """Decorator to measure function execution time."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.time()
        result = func(*args, **kwargs)
        elapsed = time.time() - start
        logger.info(f"{func.__name__} took {elapsed:.2f}s")
        return result
    return wrapper


# ============================================================================
# URL Utilities
# ============================================================================

def normalize_url(url: Optional[str]) -> str:
    """
    Normalize URL (ensure https://, remove trailing slash, etc.).

    Args:
        url: Original URL

    Returns:
        Normalized URL, or an empty string for empty input
    """
    if not url or not url.strip():
        return ""
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"
    return url.rstrip("/")


def extract_domain(url: Optional[str]) -> Optional[str]:
    """
    Extract domain from URL.

    Args:
        url: Full URL or bare domain

    Returns:
        Domain name without "www." or None
    """
    if not url or not url.strip():
        return None
    try:
        parsed = urlparse(normalize_url(url))
        domain = (parsed.hostname or "").lower()
        if domain.startswith("www."):
            domain = domain[4:]
        return domain or None
    except ValueError as e:
        logger.error(f"Failed to extract domain from {url}: {str(e)}")
        return None


def favicon_url(website: Optional[str]) -> Optional[str]:
    """Google favicon service URL for a company website."""
    domain = extract_domain(website)
    if not domain:
        return None
    return f"https://www.google.com/s2/favicons?domain={domain}&sz=128"


# ============================================================================
# Validation Utilities
# ============================================================================

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def is_valid_email(email: Optional[str]) -> bool:
    """
    Validate email address.

    Args:
        email: Email to validate

    Returns:
        True if valid email format
    """
    if not email:
        return False
    return EMAIL_PATTERN.match(email.strip()) is not None


def is_masked_email(email: str) -> bool:
    """Detect redacted addresses such as 'o****@gmail.com'."""
    return "*" in email


# ============================================================================
# Collection Utilities
# ============================================================================

def dedupe(items: Iterable[str]) -> List[str]:
    """Remove duplicates while keeping first-seen order."""
    seen = set()
    result = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result


def parse_int(value) -> Optional[int]:
    """
    Leniently parse an integer from LLM output ("2,000", "150+", 12.0).

    Returns:
        Parsed integer or None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        value = int(value)
    if not isinstance(value, int):
        match = re.search(r"-?\d[\d,]*", str(value))
        if not match:
            return None
        value = int(match.group(0).replace(",", ""))
    # Values must fit a signed 64-bit database column
    if not INT64_MIN <= value <= INT64_MAX:
        return None
    return value
