"""
Tests for SMTP delivery, with smtplib replaced by mocks.
"""

import smtplib
from unittest.mock import MagicMock, patch

from jobtracker.services import mailer

CONFIG = mailer.SmtpSettings(
    host="smtp.example.com",
    port=587,
    secure=False,
    username="alice@example.com",
    password="app-password",
    from_name="Alice Example",
)


def test_html_to_text_keeps_paragraphs():
    html = "<p>Hi Sam,</p><p>I saw the <b>Backend</b> role.</p><p></p>"
    assert mailer.html_to_text(html) == "Hi Sam,\n\nI saw the Backend role."


def test_html_to_text_without_paragraphs():
    assert mailer.html_to_text("Line one<br>Line two") == "Line one\nLine two"


def test_build_message_has_both_parts():
    message = mailer.build_message(CONFIG, "sam@acme.com", "Hello", "<p>Hi</p>")

    assert message["From"] == "Alice Example <alice@example.com>"
    assert message["To"] == "sam@acme.com"
    assert message["Message-ID"]
    assert [part.get_content_type() for part in message.iter_parts()] == ["text/plain", "text/html"]


@patch("jobtracker.services.mailer.smtplib.SMTP")
def test_send_uses_starttls(mock_smtp):
    server = MagicMock()
    server.has_extn.return_value = True
    mock_smtp.return_value = server

    result = mailer.send_email(CONFIG, "sam@acme.com", "Hello", "<p>Hi</p>")

    assert result.success is True
    assert result.message_id
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("alice@example.com", "app-password")
    server.send_message.assert_called_once()
    server.quit.assert_called_once()


@patch("jobtracker.services.mailer.smtplib.SMTP_SSL")
def test_secure_uses_implicit_tls(mock_ssl):
    server = MagicMock()
    mock_ssl.return_value = server
    config = mailer.SmtpSettings(**{**CONFIG.__dict__, "port": 465, "secure": True})

    assert mailer.send_email(config, "sam@acme.com", "Hello", "<p>Hi</p>").success is True
    mock_ssl.assert_called_once()
    server.starttls.assert_not_called()


@patch("jobtracker.services.mailer.smtplib.SMTP")
def test_auth_failure_is_returned(mock_smtp):
    server = MagicMock()
    server.has_extn.return_value = False
    server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"Authentication failed")
    mock_smtp.return_value = server

    result = mailer.send_email(CONFIG, "sam@acme.com", "Hello", "<p>Hi</p>")

    assert result.success is False
    assert "535" in result.error
    server.send_message.assert_not_called()


@patch("jobtracker.services.mailer.smtplib.SMTP", side_effect=ConnectionRefusedError("Connection refused"))
def test_verify_connection_failure(mock_smtp):
    result = mailer.verify_connection(CONFIG)
    assert result.success is False
    assert result.error == "Connection refused"


@patch("jobtracker.services.mailer.smtplib.SMTP")
def test_subject_with_line_break_is_a_failed_send(mock_smtp):
    result = mailer.send_email(CONFIG, "sam@acme.com", "Hello\nthere", "<p>Hi</p>")

    assert result.success is False
    assert "linefeed" in result.error
    mock_smtp.return_value.send_message.assert_not_called()


@patch("jobtracker.services.mailer.smtplib.SMTP")
def test_unencodable_password_is_a_failed_verify(mock_smtp):
    server = MagicMock()
    server.has_extn.return_value = True
    server.login.side_effect = UnicodeEncodeError("ascii", "pässwörd", 1, 2, "ordinal not in range(128)")
    mock_smtp.return_value = server
    config = mailer.SmtpSettings(**{**CONFIG.__dict__, "password": "pässwörd"})

    verified = mailer.verify_connection(config)
    sent = mailer.send_email(config, "sam@acme.com", "Hello", "<p>Hi</p>")

    assert verified.success is False
    assert "ascii" in verified.error
    assert sent.success is False
