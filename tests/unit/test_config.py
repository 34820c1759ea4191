"""
Unit tests for studyhub/core/config.py
"""

import pytest
from pydantic import ValidationError

from studyhub.core.config import Settings


class TestSecretKey:
    @pytest.mark.parametrize("mode", ["production", "development"])
    def test_missing_key_is_rejected_outside_test_mode(self, mode):
        with pytest.raises(ValidationError, match="SECRET_KEY must be set"):
            Settings(_env_file=None, MODE=mode, SECRET_KEY="")

    def test_configured_key_is_shared_between_instances(self):
        first = Settings(_env_file=None, MODE="production", SECRET_KEY="shared-secret")
        second = Settings(_env_file=None, MODE="production", SECRET_KEY="shared-secret")

        assert first.SECRET_KEY == second.SECRET_KEY == "shared-secret"

    def test_test_mode_generates_a_key(self):
        generated = Settings(_env_file=None, MODE="test", SECRET_KEY="")
        assert len(generated.SECRET_KEY) >= 32

    def test_key_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("MODE", "production")
        monkeypatch.setenv("SECRET_KEY", "from-env")

        assert Settings(_env_file=None).SECRET_KEY == "from-env"


class TestAdminEmails:
    def test_allow_list_is_normalised(self):
        configured = Settings(
            _env_file=None,
            SECRET_KEY="k",
            ADMIN_EMAILS=" Root@Example.com ,ops@example.com,, ",
        )
        assert configured.admin_emails == frozenset({"root@example.com", "ops@example.com"})


def test_unknown_email_backend_is_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, SECRET_KEY="k", EMAIL_BACKEND="pigeon")
