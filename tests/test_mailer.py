"""Tests for SMTP sending."""

import smtplib
from unittest.mock import patch

import pytest

from applyo.exceptions import ConfigurationError, MailerError
from applyo.mailer import Mailer


@pytest.fixture
def mailer():
    return Mailer(
        host="smtp.test",
        port=465,
        username="me@applyo.test",
        password="secret",
        sender="me@applyo.test",
        use_tls=False,
    )


class TestBuildMessage:
    def test_headers(self, mailer):
        message = mailer.build_message("jane@stripe.com", "Hello", "Body text", reply_to="reply@applyo.test")

        assert message["From"] == "me@applyo.test"
        assert message["To"] == "jane@stripe.com"
        assert message["Subject"] == "Hello"
        assert message["Reply-To"] == "reply@applyo.test"
        assert message["Message-ID"].endswith("@applyo.test>")
        assert message.get_content().strip() == "Body text"


class TestSend:
    def test_ssl(self, mailer):
        with patch("applyo.mailer.smtplib.SMTP_SSL") as smtp_ssl:
            message_id = mailer.send("jane@stripe.com", "Hello", "Body")

        smtp = smtp_ssl.return_value.__enter__.return_value
        assert smtp_ssl.call_args.args == ("smtp.test", 465)
        smtp.login.assert_called_once_with("me@applyo.test", "secret")
        sent = smtp.send_message.call_args.args[0]
        assert sent["Message-ID"] == message_id

    def test_starttls(self, mailer):
        mailer.use_tls = True
        with patch("applyo.mailer.smtplib.SMTP") as smtp_cls:
            mailer.send("jane@stripe.com", "Hello", "Body")

        smtp = smtp_cls.return_value.__enter__.return_value
        smtp.starttls.assert_called_once()
        smtp.send_message.assert_called_once()

    def test_no_login_without_username(self, mailer):
        mailer.username = None
        with patch("applyo.mailer.smtplib.SMTP_SSL") as smtp_ssl:
            mailer.send("jane@stripe.com", "Hello", "Body")
        smtp_ssl.return_value.__enter__.return_value.login.assert_not_called()

    def test_invalid_recipient(self, mailer):
        with patch("applyo.mailer.smtplib.SMTP_SSL") as smtp_ssl:
            with pytest.raises(ValueError):
                mailer.send("not-an-address", "Hello", "Body")
        smtp_ssl.assert_not_called()

    def test_missing_configuration(self, mailer):
        mailer.host = None
        with pytest.raises(ConfigurationError):
            mailer.send("jane@stripe.com", "Hello", "Body")

    def test_smtp_failure(self, mailer):
        with patch("applyo.mailer.smtplib.SMTP_SSL") as smtp_ssl:
            smtp_ssl.return_value.__enter__.return_value.send_message.side_effect = (
                smtplib.SMTPRecipientsRefused({"jane@stripe.com": (550, b"no such user")})
            )
            with pytest.raises(MailerError):
                mailer.send("jane@stripe.com", "Hello", "Body")

    def test_connection_failure(self, mailer):
        with patch("applyo.mailer.smtplib.SMTP_SSL", side_effect=ConnectionRefusedError("refused")):
            with pytest.raises(MailerError):
                mailer.send("jane@stripe.com", "Hello", "Body")
