from brandmock.config import Settings
from brandmock.infra.sql import _normalize_async_url, backend_name

ENV_VARS = [
    "DATABASE_URL", "UPLOADS_DIR", "MOCKUP_TEMPLATES_DIR", "PAYMENT_BACKEND",
    "STRIPE_SECRET_KEY", "PAYMENT_CURRENCY", "PAYMENT_TIMEOUT_SECONDS",
    "PUBLIC_BASE_URL", "LOG_LEVEL",
]


def _clear(monkeypatch):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)


def test_defaults(monkeypatch):
    _clear(monkeypatch)
    s = Settings.from_env(dotenv=False)
    assert s.database_url == "sqlite:///./brandmock.db"
    assert s.uploads_dir == "public/uploads"
    assert s.templates_dir == "public/templates"
    assert s.payment_backend == "mock"
    assert s.stripe_secret_key is None
    assert s.payment_timeout == 10.0
    assert s.public_base_url is None


def test_stripe_key_selects_stripe(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123")
    monkeypatch.setenv("PAYMENT_TIMEOUT_SECONDS", "2.5")
    s = Settings.from_env(dotenv=False)
    assert s.payment_backend == "stripe"
    assert s.stripe_secret_key == "sk_test_123"
    assert s.payment_timeout == 2.5


def test_explicit_backend_wins(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123")
    monkeypatch.setenv("PAYMENT_BACKEND", "MOCK")
    assert Settings.from_env(dotenv=False).payment_backend == "mock"


def test_async_url_normalization():
    assert _normalize_async_url("sqlite:///./x.db") == (
        "sqlite+aiosqlite:///./x.db"
    )
    assert _normalize_async_url("postgres://u@h/db") == (
        "postgresql+asyncpg://u@h/db"
    )
    assert _normalize_async_url("postgresql://u@h/db") == (
        "postgresql+asyncpg://u@h/db"
    )
    assert backend_name("sqlite:///x.db") == "SQLite"
    assert backend_name("postgres://u@h/db") == "PostgreSQL"
