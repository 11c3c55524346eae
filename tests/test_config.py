import os

import pytest
from pydantic import ValidationError

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from gym_plan.config import Config, _norm_db_url


def test_norm_db_url_sqlite_to_aiosqlite() -> None:
    assert _norm_db_url("sqlite:///test.db") == "sqlite+aiosqlite:///test.db"
    assert _norm_db_url("sqlite:///:memory:") == "sqlite+aiosqlite:///:memory:"
    # already using aiosqlite should stay untouched
    assert _norm_db_url("sqlite+aiosqlite:///test.db") == "sqlite+aiosqlite:///test.db"


def test_norm_db_url_postgres_to_asyncpg() -> None:
    assert _norm_db_url("postgres://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"
    assert _norm_db_url("postgresql://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"
    assert _norm_db_url(None) is None


def test_config_normalizes_values() -> None:
    cfg = Config(DATABASE_URL="sqlite:///x.db", LOG_LEVEL=" debug ")
    assert cfg.DATABASE_URL == "sqlite+aiosqlite:///x.db"
    assert cfg.LOG_LEVEL == "DEBUG"


def test_config_rejects_bad_values() -> None:
    with pytest.raises(ValidationError):
        Config(LOG_LEVEL="chatty")
    with pytest.raises(ValidationError):
        Config(DEFAULT_DAYS_PER_WEEK=9)


def test_feature_flag_from_env(monkeypatch) -> None:
    monkeypatch.setenv("FF_HISTORY_NORMALIZATION", "off")
    assert Config().FF_HISTORY_NORMALIZATION is False
    monkeypatch.setenv("FF_HISTORY_NORMALIZATION", "yes")
    assert Config().FF_HISTORY_NORMALIZATION is True
