"""Tests for settings defaults."""

from sqlalchemy.engine import make_url

from src.config import Settings


def test_default_urls_name_their_drivers():
    fields = Settings.model_fields
    assert make_url(fields["database_url"].default).drivername == "postgresql+asyncpg"
    assert make_url(fields["database_url_sync"].default).drivername == "postgresql+psycopg2"
