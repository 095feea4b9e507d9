from sqlalchemy.orm import Session

from classroom_backend import database
from classroom_backend.settings import BackendSettings, settings


def test_settings_is_singleton():
    assert BackendSettings() is settings


def test_reload_reads_environment(monkeypatch):
    monkeypatch.setenv("AUTO_ENROLL_ON_APPROVAL", "false")
    monkeypatch.setenv("DEFAULT_ACADEMIC_YEAR", "2027")
    monkeypatch.setenv("DEFAULT_TERM", "Term 3")

    settings.reload()

    assert settings.AUTO_ENROLL_ON_APPROVAL is False
    assert settings.DEFAULT_ACADEMIC_YEAR == "2027"
    assert settings.DEFAULT_TERM == "Term 3"


def test_auto_enroll_defaults_on(monkeypatch):
    monkeypatch.delenv("AUTO_ENROLL_ON_APPROVAL", raising=False)

    settings.reload()

    assert settings.AUTO_ENROLL_ON_APPROVAL is True


def test_database_url_prefers_explicit_url(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    assert database.database_url() == "sqlite://"


def test_database_url_from_postgres_parts(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setattr(database, "POSTGRES_USER", "postgres")
    monkeypatch.setattr(database, "POSTGRES_PASSWORD", "secret")
    monkeypatch.setattr(database, "POSTGRES_URL", "db:5432")
    monkeypatch.setattr(database, "POSTGRES_DB", "school")

    assert database.database_url() == "postgresql://postgres:secret@db:5432/school"


def test_get_db_yields_session(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setattr(database, "_engine", None)
    monkeypatch.setattr(database, "_SessionLocal", None)

    generator = database.get_db()
    db = next(generator)
    try:
        assert isinstance(db, Session)
    finally:
        generator.close()
