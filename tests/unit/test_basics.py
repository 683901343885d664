import pytest
from pydantic import ValidationError

from relgen import __version__
from relgen import config
from relgen.compiler.schema import KNOWN_FIELDS


def test_get_settings_defaults(override_settings):
    settings = override_settings()
    assert settings.app_env == "development"
    assert settings.pairing_anomaly_policy == "drop"
    assert settings.db_backend == "sqlite"
    assert settings.db_dsn == ":memory:"
    assert settings.db_connect_attempts > 0


def test_settings_read_environment(override_settings):
    settings = override_settings(RELGEN_PAIRING_ANOMALY="raise", LOG_JSON="true", DB_CONNECT_ATTEMPTS="5")
    assert settings.pairing_anomaly_policy == "raise"
    assert settings.log_json is True
    assert settings.db_connect_attempts == 5


def test_settings_reject_unknown_policy(monkeypatch):
    monkeypatch.setenv("RELGEN_PAIRING_ANOMALY", "ignore")
    with pytest.raises(ValidationError):
        config.Settings()


def test_get_settings_is_cached(override_settings):
    override_settings()
    assert config.get_settings() is config.get_settings()


def test_known_fields_cover_declaration_vocabulary():
    assert {"model", "relation_type", "backend", "fk", "join_table", "async", "error_type"} <= KNOWN_FIELDS
    assert __version__
