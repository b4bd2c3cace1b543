"""
FieldSync Backend: Configuration and Startup Tests
===================================================

What:  Settings parsing and the refuse-to-start behaviour without a datastore.

What we test:
    ✅ Postgres URLs rewritten to the asyncpg dialect
    ✅ Missing DATABASE_URL rejected by validation, lifespan and console entry
    ✅ PORT alias, log level validation, CORS origin list
"""

from unittest.mock import patch

import pytest
from fastapi import FastAPI
from pydantic import ValidationError as PydanticValidationError

from fieldsync.config import Settings
from fieldsync.database import _engine_options


class TestSettings:

    @pytest.mark.parametrize(
        "raw",
        [
            "postgres://u:p@db.example.com:5432/fieldsync",
            "postgresql://u:p@db.example.com:5432/fieldsync",
            "postgresql+asyncpg://u:p@db.example.com:5432/fieldsync",
        ],
    )
    def test_postgres_urls_use_asyncpg(self, raw):
        config = Settings(database_url=raw)
        assert config.database_url == "postgresql+asyncpg://u:p@db.example.com:5432/fieldsync"
        assert config.is_postgres

    def test_sqlite_url_untouched(self):
        config = Settings(database_url="sqlite+aiosqlite:///./local.db")
        assert config.database_url == "sqlite+aiosqlite:///./local.db"
        assert not config.is_postgres

    def test_missing_database_url(self):
        with pytest.raises(ValueError, match="DATABASE_URL"):
            Settings(database_url="  ").validate_required_for_production()

    def test_configured_database_url(self):
        Settings(database_url="postgresql://u:p@h/db").validate_required_for_production()

    def test_port_alias(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        assert Settings(database_url="x").backend_port == 8080

    def test_default_port(self, monkeypatch):
        monkeypatch.delenv("PORT", raising=False)
        monkeypatch.delenv("BACKEND_PORT", raising=False)
        assert Settings(database_url="x", _env_file=None).backend_port == 3000

    def test_log_level(self):
        assert Settings(log_level="debug").log_level == "DEBUG"
        with pytest.raises(PydanticValidationError):
            Settings(log_level="chatty")

    def test_cors_origins_list(self):
        config = Settings(cors_origins="https://a.example, https://b.example ,")
        assert config.cors_origins_list == ["https://a.example", "https://b.example"]

    def test_frozen(self):
        config = Settings(database_url="x")
        with pytest.raises(PydanticValidationError):
            config.database_url = "y"


class TestEngineOptions:

    def test_postgres_pool_and_ssl(self):
        options = _engine_options(
            Settings(database_url="postgresql://u:p@h/db", db_pool_size=5, db_ssl_mode="require")
        )
        assert options["pool_size"] == 5
        assert options["pool_pre_ping"] is True
        assert options["connect_args"] == {"ssl": "require"}

    def test_sqlite_has_no_pool_sizing(self):
        options = _engine_options(Settings(database_url="sqlite+aiosqlite:///./x.db"))
        assert "pool_size" not in options
        assert "connect_args" not in options


class TestStartup:

    @pytest.mark.asyncio
    async def test_lifespan_refuses_without_database_url(self):
        from fieldsync import main

        with patch.object(main, "settings", Settings(database_url="")), \
             patch.object(main, "init_engine") as mock_init:
            with pytest.raises(ValueError):
                async with main.lifespan(FastAPI()):
                    pass

        mock_init.assert_not_called()

    def test_console_entry_exits_without_database_url(self):
        from fieldsync import main

        with patch.object(main, "settings", Settings(database_url="")), \
             patch("uvicorn.run") as mock_run:
            with pytest.raises(SystemExit) as exc_info:
                main.run()

        assert exc_info.value.code == 1
        mock_run.assert_not_called()

    def test_console_entry_starts_server(self):
        from fieldsync import main

        with patch.object(main, "settings", Settings(database_url="postgresql://u:p@h/db")), \
             patch("uvicorn.run") as mock_run:
            main.run()

        mock_run.assert_called_once()
        assert mock_run.call_args.args == ("fieldsync.main:app",)
