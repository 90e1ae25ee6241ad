from subscription_tracker.config import Settings


def test_url_assembled_from_db_parts():
    settings = Settings(DATABASE_URL="", DB_HOST="db", DB_PORT=6543, DB_USER="u", DB_PASSWORD="p", DB_NAME="subs")
    assert settings.get_sqlalchemy_url() == "postgresql+psycopg://u:p@db:6543/subs"


def test_plain_postgres_url_gets_psycopg_driver():
    settings = Settings(DATABASE_URL="postgresql://u:p@host:5432/subs")
    assert settings.get_sqlalchemy_url() == "postgresql+psycopg://u:p@host:5432/subs"


def test_other_urls_pass_through():
    settings = Settings(DATABASE_URL="sqlite:///./subs.db")
    assert settings.get_sqlalchemy_url() == "sqlite:///./subs.db"


def test_env_overrides_defaults(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("PORT", "9090")
    settings = Settings()
    assert settings.LOG_LEVEL == "debug"
    assert settings.PORT == 9090
    assert settings.SERVICE_NAME == "subscriptions-api"
