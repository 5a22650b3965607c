"""Tests for environment configuration and startup."""

import logging

import pytest
from pydantic import ValidationError

from ad_users_api import bootstrap
from ad_users_api.ad import DirectorySession
from ad_users_api.ad.errors import TransportError
from ad_users_api.env_settings import EnvSettings, get_env
from ad_users_api.log_config import setup_logging

from conftest import FakeConnection, FakeDirectory

REQUIRED_ENV = {
    "LDAP_SERVER": "ldap://dc01.example.com",
    "LOGIN_USERNAME": "svc-api@example.com",
    "LOGIN_PASSWORD": "secret",
    "BASE_DN": "OU=HQ,DC=example,DC=com",
}


@pytest.fixture
def env(monkeypatch, tmp_path):
    for key, value in REQUIRED_ENV.items():
        monkeypatch.setenv(key, value)
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.chdir(tmp_path)
    get_env.cache_clear()
    yield
    get_env.cache_clear()
    root = logging.getLogger()
    for h in list(root.handlers):
        if getattr(h, "baseFilename", "").startswith(str(tmp_path)):
            root.removeHandler(h)
            h.close()


class TestEnvSettings:

    def test_defaults(self, env):
        settings = get_env()

        assert settings.ldap_server == "ldap://dc01.example.com"
        assert settings.base_dn == "OU=HQ,DC=example,DC=com"
        assert settings.starttls is True
        assert settings.retry_max_attempts == 5
        assert settings.provision_strict is True

    @pytest.mark.parametrize("missing", sorted(REQUIRED_ENV))
    def test_required_variables(self, env, monkeypatch, missing):
        monkeypatch.delenv(missing)

        with pytest.raises(ValidationError):
            EnvSettings()

    def test_overrides(self, env, monkeypatch):
        monkeypatch.setenv("LDAP_RETRY_MAX_ATTEMPTS", "2")
        monkeypatch.setenv("PROVISION_STRICT", "false")
        monkeypatch.setenv("LDAP_STARTTLS", "0")

        settings = EnvSettings()

        assert settings.retry_max_attempts == 2
        assert settings.provision_strict is False
        assert settings.starttls is False

    def test_zero_attempts_rejected(self, env, monkeypatch):
        monkeypatch.setenv("LDAP_RETRY_MAX_ATTEMPTS", "0")

        with pytest.raises(ValidationError):
            EnvSettings()

    def test_password_not_in_repr(self, env):
        assert "secret" not in repr(get_env())


class TestBootstrap:

    def test_config_mapping(self, env):
        settings = get_env()

        cfg = bootstrap.ad_cfg_from_env(settings)
        policy = bootstrap.retry_policy_from_env(settings)

        assert cfg.server == "ldap://dc01.example.com"
        assert cfg.bind_principal == "svc-api@example.com"
        assert cfg.bind_password == "secret"
        assert cfg.base_dn == "OU=HQ,DC=example,DC=com"
        assert policy.max_attempts == 5
        assert policy.initial_delay == 0.5

    def test_initialize_binds_session(self, env, monkeypatch):
        directory = FakeDirectory()
        monkeypatch.setattr(
            bootstrap,
            "DirectorySession",
            lambda cfg: DirectorySession(cfg, connection_factory=lambda: FakeConnection(directory)),
        )

        ctx = bootstrap.initialize_application()

        assert ctx.session.is_bound
        assert ctx.base_dn == "OU=HQ,DC=example,DC=com"
        assert ctx.provision_strict is True
        assert ctx.guard.policy.max_attempts == 5

    def test_unreachable_directory_is_fatal(self, env, monkeypatch):
        directory = FakeDirectory()
        directory.unreachable = True
        monkeypatch.setattr(
            bootstrap,
            "DirectorySession",
            lambda cfg: DirectorySession(cfg, connection_factory=lambda: FakeConnection(directory)),
        )

        with pytest.raises(TransportError):
            bootstrap.initialize_application()

    def test_missing_configuration_is_fatal(self, env, monkeypatch):
        monkeypatch.delenv("BASE_DN")
        get_env.cache_clear()

        with pytest.raises(ValidationError):
            bootstrap.initialize_application()


class TestLogging:

    def test_file_handler_created(self, tmp_path):
        log_dir = tmp_path / "logs"

        setup_logging(level="debug", log_dir=str(log_dir))
        logging.getLogger("ad_users_api.test").info("hello")

        assert (log_dir / "users-api.log").exists()
        assert logging.getLogger().level == logging.DEBUG
        setup_logging(level="INFO", log_dir="")

    def test_invalid_level_falls_back_to_info(self):
        setup_logging(level="chatty", log_dir="")

        assert logging.getLogger().level == logging.INFO
