"""Unit tests for core/config.py -- Settings validation.

Covers:
- Production mode refuses to start without JWT_SECRET
- DEBUG mode generates a throwaway secret of sufficient length
- Secrets shorter than 32 characters are rejected in both modes
- Environment variables map onto fields (PORT, DATABASE_URL)
- Token lifetime and bcrypt cost are range-checked
"""

import pytest
from pydantic import ValidationError

from core.config import Settings

GOOD_SECRET = "a" * 32


def test_production_requires_secret(monkeypatch):
    monkeypatch.delenv("JWT_SECRET", raising=False)
    with pytest.raises(ValidationError, match="JWT_SECRET is required"):
        Settings(debug=False, _env_file=None)


def test_debug_generates_secret(monkeypatch):
    monkeypatch.delenv("JWT_SECRET", raising=False)
    settings = Settings(debug=True, _env_file=None)
    assert len(settings.jwt_secret) >= 32
    assert Settings(debug=True, _env_file=None).jwt_secret != settings.jwt_secret


@pytest.mark.parametrize("debug", [True, False])
def test_short_secret_rejected(debug):
    with pytest.raises(ValidationError, match="at least 32 characters"):
        Settings(debug=debug, jwt_secret="too-short", _env_file=None)


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", GOOD_SECRET)
    monkeypatch.setenv("PORT", "9100")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///elsewhere.db")
    settings = Settings(_env_file=None)
    assert settings.jwt_secret == GOOD_SECRET
    assert settings.port == 9100
    assert settings.database_url == "sqlite:///elsewhere.db"


def test_defaults(monkeypatch):
    for name in ("TOKEN_EXPIRE_SECONDS", "BCRYPT_ROUNDS", "DB_TIMEOUT_SECONDS", "DATABASE_URL"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings(jwt_secret=GOOD_SECRET, _env_file=None)
    assert settings.token_expire_seconds == 24 * 3600
    assert settings.bcrypt_rounds == 12
    assert settings.db_timeout_seconds == 5.0
    assert settings.database_url.startswith("sqlite:///")


@pytest.mark.parametrize(
    "overrides",
    [{"token_expire_seconds": 0}, {"bcrypt_rounds": 3}, {"bcrypt_rounds": 32}, {"db_timeout_seconds": 0}],
)
def test_out_of_range_values_rejected(overrides):
    with pytest.raises(ValidationError):
        Settings(jwt_secret=GOOD_SECRET, _env_file=None, **overrides)
