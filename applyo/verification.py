"""
Email Verification Module

Checks candidate addresses against the ZeroBounce validation API so that
only deliverable emails are stored and shown.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional

import requests

from applyo.config import settings
from applyo.exceptions import ConfigurationError
from applyo.utils import dedupe, is_masked_email, is_valid_email

logger = logging.getLogger(__name__)

VALID = "valid"
INVALID = "invalid"
UNKNOWN = "unknown"


def mask_email(email: str) -> str:
    """Mask the local part of an address for logging."""
    local, _, domain = email.partition("@")
    if not domain:
        return "***"
    return f"{local[:1]}***@{domain}"


class EmailVerifier:
    """Verifies email deliverability with an in-process result cache."""

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self.api_key = api_key or settings.zerobounce_api_key
        self.base_url = (base_url or settings.zerobounce_base_url).rstrip('/')
        self.timeout = settings.verification_timeout
        self.session = requests.Session()
        self._cache: Dict[str, str] = {}
        self._lock = threading.Lock()

    def verify(self, email: str) -> str:
        """
        Return the verification status of one address.

        Malformed or masked addresses are "invalid" without an API call;
        API failures are "unknown".

        Raises:
            ConfigurationError: If no API key is configured
        """
        email = (email or "").strip().lower()
        if not is_valid_email(email) or is_masked_email(email):
            return INVALID

        with self._lock:
            cached = self._cache.get(email)
        if cached:
            return cached

        if not self.api_key:
            raise ConfigurationError("ZEROBOUNCE_API_KEY is missing")

        try:
            response = self.session.get(
                f"{self.base_url}/validate",
                params={"api_key": self.api_key, "email": email, "ip_address": ""},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Verification API error for {mask_email(email)}: {e}")
            return UNKNOWN

        status = str(data.get("status") or UNKNOWN).lower()
        logger.info(f"Email {mask_email(email)} verification status: {status}")

        with self._lock:
            self._cache[email] = status
        return status

    def verify_many(self, emails: Iterable[str]) -> List[str]:
        """
        Verify candidates concurrently and keep only valid ones.

        Args:
            emails: Candidate addresses

        Returns:
            Valid addresses, de-duplicated, in input order
        """
        candidates = dedupe(e.strip().lower() for e in emails if e and e.strip())
        if not candidates:
            return []

        logger.info(f"Verifying {len(candidates)} email candidates")

        def check(email: str) -> Optional[str]:
            try:
                return email if self.verify(email) == VALID else None
            except ConfigurationError:
                raise
            except Exception as e:
                logger.error(f"Failed to verify {mask_email(email)}: {e}")
                return None

        with ThreadPoolExecutor(max_workers=min(len(candidates), settings.max_workers)) as pool:
            results = list(pool.map(check, candidates))

        return [email for email in results if email]
