"""Tests for the run_cron_jobs command."""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock

import pytest
from conftest import FakeAppDatabase, StaticJob

from manageros.cron.registry import CronJobRegistry
from manageros.jobs import run_cron_jobs


class TestBuildParser:
    """Tests for argument parsing."""

    def test_defaults(self) -> None:
        """No arguments runs everything quietly."""
        args = run_cron_jobs.build_parser().parse_args([])

        assert args.job is None
        assert args.org is None
        assert args.verbose is False
        assert args.list is False

    def test_org_must_be_uuid(self) -> None:
        """A malformed organization id is a usage error."""
        with pytest.raises(SystemExit):
            run_cron_jobs.build_parser().parse_args(["--org", "nope"])


class TestMain:
    """Tests for main."""

    @pytest.fixture
    def fake_db(self) -> FakeAppDatabase:
        """Return an in-memory database with connect/close."""
        db = FakeAppDatabase([uuid.uuid4()])
        db.connect = AsyncMock()  # type: ignore[attr-defined]
        db.close = AsyncMock()  # type: ignore[attr-defined]
        return db

    @pytest.fixture(autouse=True)
    def wire(self, monkeypatch: pytest.MonkeyPatch, fake_db: FakeAppDatabase) -> None:
        """Point the command at the fake database and a one-job registry."""
        monkeypatch.setattr(run_cron_jobs, "AppDatabase", lambda dsn: fake_db)
        monkeypatch.setattr(
            run_cron_jobs,
            "build_default_registry",
            lambda db: CronJobRegistry([StaticJob(notifications=2)]),
        )

    async def test_runs_jobs(
        self, fake_db: FakeAppDatabase, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """A run prints one line per pair and a summary."""
        assert await run_cron_jobs.main([]) == 0

        out = capsys.readouterr().out
        assert "OK    static-job" in out
        assert "1 runs, 1 succeeded, 0 failed, 2 notifications created" in out
        fake_db.close.assert_awaited_once()  # type: ignore[attr-defined]

    async def test_unknown_job_exits_nonzero(
        self, fake_db: FakeAppDatabase, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """An unknown job returns exit code 1."""
        assert await run_cron_jobs.main(["--job", "missing"]) == 1

        assert "Job with ID 'missing' not found" in capsys.readouterr().err
        assert fake_db.executions == {}

    async def test_list_does_not_connect(
        self, fake_db: FakeAppDatabase, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """--list prints jobs without touching the database."""
        assert await run_cron_jobs.main(["--list"]) == 0

        assert "static-job" in capsys.readouterr().out
        fake_db.connect.assert_not_called()  # type: ignore[attr-defined]
