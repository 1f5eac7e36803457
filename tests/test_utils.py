"""Tests for utility helpers."""

import logging
import logging.handlers
from unittest.mock import patch

import pytest

from applyo.utils import (
    dedupe,
    extract_domain,
    favicon_url,
    is_masked_email,
    is_valid_email,
    normalize_url,
    parse_int,
    retry,
    setup_logging,
)


class TestUrls:
    def test_normalize_adds_scheme_and_strips_slash(self):
        assert normalize_url("stripe.com/") == "https://stripe.com"

    def test_normalize_keeps_http(self):
        assert normalize_url("http://example.com") == "http://example.com"

    def test_normalize_empty(self):
        assert normalize_url(None) == ""
        assert normalize_url("  ") == ""

    def test_extract_domain_strips_www(self):
        assert extract_domain("https://www.Stripe.com/about") == "stripe.com"

    def test_extract_domain_bare(self):
        assert extract_domain("shopify.com") == "shopify.com"

    def test_extract_domain_empty(self):
        assert extract_domain("") is None

    def test_favicon_url(self):
        assert favicon_url("https://www.stripe.com") == (
            "https://www.google.com/s2/favicons?domain=stripe.com&sz=128"
        )

    def test_favicon_url_without_website(self):
        assert favicon_url(None) is None


class TestEmails:
    @pytest.mark.parametrize("email", ["jane@stripe.com", "jane.doe+x@sub.example.co"])
    def test_valid(self, email):
        assert is_valid_email(email)

    @pytest.mark.parametrize("email", ["", "jane", "jane@", "@stripe.com", "jane@stripe"])
    def test_invalid(self, email):
        assert not is_valid_email(email)

    def test_masked(self):
        assert is_masked_email("o****@gmail.com")
        assert not is_masked_email("olivia@gmail.com")


class TestParseInt:
    @pytest.mark.parametrize("value,expected", [
        (2020, 2020),
        ("2020", 2020),
        ("2,000", 2000),
        ("150+", 150),
        (12.0, 12),
        (None, None),
        ("unknown", None),
        (True, None),
        (float("nan"), None),
        (float("inf"), None),
        (1e30, None),
        ("99999999999999999999", None),
        (2 ** 63, None),
        (2 ** 63 - 1, 2 ** 63 - 1),
    ])
    def test_parse(self, value, expected):
        assert parse_int(value) == expected


class TestDedupe:
    def test_keeps_first_seen_order(self):
        assert dedupe(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]


class TestRetry:
    def test_retries_then_succeeds(self):
        attempts = []

        @retry(max_attempts=3, delay=0.01)
        def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise ValueError("not yet")
            return "ok"

        with patch("applyo.utils.time.sleep"):
            assert flaky() == "ok"
        assert len(attempts) == 3

    def test_raises_after_last_attempt(self):
        @retry(max_attempts=2, delay=0.01)
        def always_fails():
            raise ValueError("nope")

        with patch("applyo.utils.time.sleep"):
            with pytest.raises(ValueError):
                always_fails()


class TestSetupLogging:
    def test_handlers_added_once(self):
        logger = setup_logging("applyo.test_logging")
        count = len(logger.handlers)
        logger = setup_logging("applyo.test_logging", level="WARNING")

        assert len(logger.handlers) == count
        assert logger.level == logging.WARNING

    def test_no_file_handler_when_testing(self):
        logger = setup_logging("applyo.test_logging_files")
        assert not any(
            isinstance(h, logging.handlers.RotatingFileHandler) for h in logger.handlers
        )
