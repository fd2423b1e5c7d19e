from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from catalog.core.config import Settings, load_settings
from catalog.core.exceptions import ConfigError

SHIPPED_CONFIG = Path(__file__).resolve().parent.parent / "config"


def test_defaults_without_settings_file(tmp_path):
    settings = load_settings(tmp_path)
    assert settings.auth.salt_rounds == 12
    assert settings.auth.secret == ""
    assert settings.server.port == 5001
    assert not settings.is_production()


def test_env_substitution(tmp_path, monkeypatch):
    (tmp_path / "settings.yaml").write_text(
        'auth:\n'
        '  secret: "${CATALOG_TEST_SECRET}"\n'
        '  salt_rounds: "${CATALOG_TEST_ROUNDS:10}"\n'
        'app:\n'
        '  environment: "production"\n'
    )
    monkeypatch.setenv("CATALOG_TEST_SECRET", "from-env")
    monkeypatch.delenv("CATALOG_TEST_ROUNDS", raising=False)

    settings = load_settings(tmp_path)
    assert settings.auth.secret == "from-env"
    assert settings.auth.salt_rounds == 10
    assert settings.is_production()


def test_missing_env_var_names_config_path(tmp_path, monkeypatch):
    (tmp_path / "settings.yaml").write_text('auth:\n  secret: "${CATALOG_TEST_UNSET}"\n')
    monkeypatch.delenv("CATALOG_TEST_UNSET", raising=False)
    with pytest.raises(ConfigError, match="auth.secret"):
        load_settings(tmp_path)


@pytest.mark.parametrize("rounds", [2, 40])
def test_salt_rounds_out_of_range(tmp_path, rounds):
    (tmp_path / "settings.yaml").write_text(f"auth:\n  salt_rounds: {rounds}\n")
    with pytest.raises(ConfigError):
        load_settings(tmp_path)


def test_settings_are_immutable():
    settings = Settings()
    with pytest.raises(PydanticValidationError):
        settings.auth.secret = "changed"


def test_shipped_settings_file_loads(monkeypatch):
    monkeypatch.setenv("SECRET", "shipped-config-secret")
    monkeypatch.setenv("SALT_ROUNDS", "11")
    settings = load_settings(SHIPPED_CONFIG)
    assert settings.auth.secret == "shipped-config-secret"
    assert settings.auth.salt_rounds == 11
    assert settings.auth.algorithm == "HS256"
