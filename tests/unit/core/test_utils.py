"""
Tests for validators, datetime helpers, CV storage and the mail service.
"""

import smtplib
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch
from urllib.parse import parse_qs, urlparse

import pytest

from core.integrations.email import EmailService, EmailTemplates, build_verification_url
from core.storage.local import LocalStorage, generate_cv_filename
from core.utils.datetime import ensure_utc, is_past, now, to_iso
from core.utils.validators import is_url, normalize_email, sanitize_extension, validate_url


class TestValidators:
    @pytest.mark.parametrize(
        "url",
        [
            "https://acme.com",
            "http://www.acme.co.uk/careers",
            "acme.com",
            "linkedin.com/company/acme",
            "http://localhost:3000",
        ],
    )
    def test_valid_urls(self, url):
        assert is_url(url)

    @pytest.mark.parametrize("url", ["not a url", "http://", "acme", "ftp//acme.com"])
    def test_invalid_urls(self, url):
        valid, error = validate_url(url)
        assert valid is False
        assert error

    def test_empty_url(self):
        assert validate_url("") == (False, "URL is required")

    def test_sanitize_extension(self):
        assert sanitize_extension("Resume.PDF") == ".pdf"
        assert sanitize_extension("archive.tar.gz") == ".gz"
        assert sanitize_extension("noext") == ""
        assert sanitize_extension("bad.ext$") == ""
        assert sanitize_extension(None) == ""

    def test_normalize_email(self):
        assert normalize_email("  Jane@Example.COM ") == "jane@example.com"


class TestDatetime:
    def test_naive_treated_as_utc(self):
        naive = datetime(2024, 1, 1, 12, 0)
        assert ensure_utc(naive) == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_is_past(self):
        assert is_past(now() - timedelta(seconds=1))
        assert not is_past(now() + timedelta(minutes=10))

    def test_to_iso(self):
        assert to_iso(None) is None
        assert to_iso(datetime(2024, 1, 1, tzinfo=timezone.utc)) == "2024-01-01T00:00:00+00:00"


class TestLocalStorage:
    def test_save_cv_under_cvs(self, tmp_path):
        storage = LocalStorage(base_path=str(tmp_path))

        path = storage.save_cv(b"resume", "My CV.pdf")

        assert Path(path).parent == tmp_path / "cvs"
        assert path.endswith(".pdf")
        assert Path(path).read_bytes() == b"resume"

    def test_cv_filenames_are_unique(self):
        names = {generate_cv_filename("cv.pdf") for _ in range(50)}
        assert len(names) == 50

    def test_delete(self, tmp_path):
        storage = LocalStorage(base_path=str(tmp_path))
        path = storage.save_cv(b"resume", "cv.pdf")

        assert storage.delete(path) is True
        assert storage.delete(path) is False


class TestEmailService:
    def test_verification_url(self):
        url = build_verification_url("http://localhost:3000/", "tok", "jane@example.com")
        parsed = urlparse(url)

        assert parsed.path == "/user/verify-email"
        assert parse_qs(parsed.query) == {"token": ["tok"], "email": ["jane@example.com"]}

    def test_template_escapes_user_name(self):
        template = EmailTemplates.verification_email(
            "<script>alert(1)</script>", "http://app/user/verify-email?token=t&email=e"
        )

        assert "<script>" not in template["body"]
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in template["body"]
        assert "token=t&amp;email=e" in template["body"]

    @patch("core.integrations.email.smtplib.SMTP")
    def test_send_verification_email(self, smtp_cls):
        server = MagicMock()
        smtp_cls.return_value.__enter__.return_value = server
        service = EmailService(smtp_host="smtp.test", smtp_port=2525)

        sent = service.send_verification_email("Jane", "jane@example.com", "tok", "http://app")

        assert sent is True
        message = server.send_message.call_args.args[0]
        assert message["To"] == "jane@example.com"

    @patch("core.integrations.email.smtplib.SMTP")
    def test_delivery_failure_returns_false(self, smtp_cls):
        smtp_cls.side_effect = smtplib.SMTPConnectError(421, "unavailable")
        service = EmailService(smtp_host="smtp.test")

        assert service.send_verification_email("Jane", "jane@example.com", "tok", "http://app") is False
