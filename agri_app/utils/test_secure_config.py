"""
Secure settings: encryption round trip, masking, env fallback and validation
"""
import json

import pytest

from agri_app.utils.secure_config import MAX_PREDICTION_LIMIT, BackendSettings, SecureConfig

ANON_KEY = "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9.anon"
DSN = "postgresql://postgres:pw@db.example.supabase.co:5432/postgres"


@pytest.fixture
def config(tmp_path):
    return SecureConfig(config_path=str(tmp_path / "secure_config.enc"), key_path=str(tmp_path / ".key"))


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("SUPABASE_URL", "SUPABASE_ANON_KEY", "SUPABASE_DB_DSN", "AGRI_PREDICTION_LIMIT", "AGRI_DISPLAY_TZ"):
        monkeypatch.delenv(name, raising=False)


def test_encrypt_decrypt(config):
    encrypted = config.encrypt_value(ANON_KEY)
    assert encrypted != ANON_KEY
    assert config.decrypt_value(encrypted) == ANON_KEY


def test_sensitive_values_are_stored_encrypted(config):
    config.save_config({"SUPABASE_ANON_KEY": ANON_KEY, "REGION": "eu"})

    stored = json.loads(config.config_path.read_text(encoding="utf-8"))
    assert stored["SUPABASE_ANON_KEY"]["encrypted"] is True
    assert ANON_KEY not in config.config_path.read_text(encoding="utf-8")
    assert stored["REGION"] == {"encrypted": False, "value": "eu"}

    assert config.load_config() == {"SUPABASE_ANON_KEY": ANON_KEY, "REGION": "eu"}


def test_changed_key_file_yields_none(tmp_path, config):
    config.set_value("SUPABASE_DB_DSN", DSN)
    other = SecureConfig(config_path=str(config.config_path), key_path=str(tmp_path / "other.key"))
    assert other.load_config()["SUPABASE_DB_DSN"] is None


def test_get_value_falls_back_to_env(config, monkeypatch):
    assert config.get_value("SUPABASE_ANON_KEY") is None
    monkeypatch.setenv("SUPABASE_ANON_KEY", ANON_KEY)
    assert config.get_value("SUPABASE_ANON_KEY") == ANON_KEY

    config.set_value("SUPABASE_ANON_KEY", "stored-" + ANON_KEY)
    assert config.get_value("SUPABASE_ANON_KEY") == "stored-" + ANON_KEY


@pytest.mark.parametrize("secret, masked", [
    (ANON_KEY, "eyJh...anon"),
    ("short", "***"),
    (None, "NOT_SET"),
    ("", "NOT_SET"),
])
def test_mask(secret, masked):
    assert SecureConfig.mask(secret) == masked


def test_backend_settings_validation(config, monkeypatch):
    settings = BackendSettings(config)
    assert settings.validate() == {"url": False, "anon_key": False, "db_dsn": False}

    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co/")
    config.save_config({"SUPABASE_ANON_KEY": ANON_KEY, "SUPABASE_DB_DSN": DSN})
    settings = BackendSettings(config)

    assert settings.supabase_url == "https://example.supabase.co"
    assert settings.validate() == {"url": True, "anon_key": True, "db_dsn": True}
    report = settings.get_status_report()
    assert ANON_KEY not in report
    assert "[FAIL]" not in report


def test_prediction_limit_and_timezone(config, monkeypatch):
    settings = BackendSettings(config)
    assert settings.prediction_limit == 50
    assert settings.display_tz == "UTC"

    monkeypatch.setenv("AGRI_PREDICTION_LIMIT", "0")
    assert settings.prediction_limit == 1
    monkeypatch.setenv("AGRI_PREDICTION_LIMIT", "many")
    assert settings.prediction_limit == 50
    monkeypatch.setenv("AGRI_DISPLAY_TZ", "Africa/Kigali")
    assert settings.display_tz == "Africa/Kigali"


def test_prediction_limit_is_capped_to_fetch_maximum(config, monkeypatch):
    settings = BackendSettings(config)
    monkeypatch.setenv("AGRI_PREDICTION_LIMIT", "5000")
    assert settings.prediction_limit == MAX_PREDICTION_LIMIT
    monkeypatch.setenv("AGRI_PREDICTION_LIMIT", str(MAX_PREDICTION_LIMIT))
    assert settings.prediction_limit == MAX_PREDICTION_LIMIT
