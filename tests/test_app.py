"""Tests for settings, storage selection and startup initialisation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from habitkernel.config import Settings, settings
from habitkernel.db import get_repository
from habitkernel.kernel.connector import SqlRepository
from habitkernel.kernel.flatfile import FlatFileRepository
from habitkernel.main import app, init_storage, lifespan

from tests.conftest import FakeSession


class TestSettings:
    def test_utc_normalised(self):
        assert Settings(default_tz="utc").default_tz == "UTC"

    def test_unknown_time_zone_rejected(self):
        with pytest.raises(ValidationError, match="Unknown time zone"):
            Settings(default_tz="Mars/Olympus_Mons")


class TestGetRepository:
    @pytest.mark.asyncio
    async def test_sql_backend_uses_request_session(self, monkeypatch):
        monkeypatch.setattr(settings, "storage_backend", "sql")
        session = FakeSession()

        repo = await get_repository(session=session).__anext__()

        assert isinstance(repo, SqlRepository)
        assert repo.session is session

    @pytest.mark.asyncio
    async def test_file_backend(self, monkeypatch, tmp_path):
        monkeypatch.setattr(settings, "storage_backend", "file")
        monkeypatch.setattr(settings, "config_dir", str(tmp_path))

        repo = await get_repository(session=FakeSession()).__anext__()

        assert isinstance(repo, FlatFileRepository)
        assert repo.config_dir == tmp_path


class TestStartup:
    @pytest.mark.asyncio
    async def test_lifespan_creates_config(self, monkeypatch, tmp_path):
        cfg = tmp_path / "cfg"
        monkeypatch.setattr(settings, "storage_backend", "file")
        monkeypatch.setattr(settings, "config_dir", str(cfg))

        async with lifespan(app):
            pass

        assert (cfg / "habits").exists()
        assert (cfg / "log").read_text().startswith("Date : Habit")

    def test_existing_config_untouched(self, monkeypatch, tmp_path):
        (tmp_path / "habits").write_text("Walk: 1\n")
        (tmp_path / "log").write_text("")
        monkeypatch.setattr(settings, "storage_backend", "file")
        monkeypatch.setattr(settings, "config_dir", str(tmp_path))

        assert init_storage() is False
        assert (tmp_path / "habits").read_text() == "Walk: 1\n"

    def test_sql_backend_skips_files(self, monkeypatch, tmp_path):
        monkeypatch.setattr(settings, "storage_backend", "sql")
        monkeypatch.setattr(settings, "config_dir", str(tmp_path / "cfg"))

        assert init_storage() is False
        assert not (tmp_path / "cfg").exists()

    def test_unwritable_config_does_not_stop_startup(self, monkeypatch, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("")
        monkeypatch.setattr(settings, "storage_backend", "file")
        monkeypatch.setattr(settings, "config_dir", str(blocker / "cfg"))

        assert init_storage() is False
