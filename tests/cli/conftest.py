"""Fixtures shared by the CLI command tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from typer.testing import CliRunner

from tradeseg.cli import utils as cli_utils
from tradeseg.core.config import EngineConfig, SegmentationConfig, StorageConfig
from tradeseg.core.engine import SegmentEngine

SESSION_START = datetime(2024, 1, 2, 14, 30, tzinfo=UTC)


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def cli_database(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the CLI engine hook at a ten point window engine on a temp file."""

    database = tmp_path / "cli.duckdb"

    def _factory(requested: str | None = None) -> SegmentEngine:
        config = EngineConfig(
            segmentation=SegmentationConfig(window_size=10),
            storage=StorageConfig(database=str(database)),
        )
        return SegmentEngine.from_config(config, clock=lambda: SESSION_START + timedelta(hours=8))

    monkeypatch.setattr(cli_utils, "get_engine", _factory)
    return database


@pytest.fixture()
def write_series(tmp_path: Path) -> Callable[..., Path]:
    """Write a feed style JSON document of minute bars."""

    def _write(count: int = 20, *, skip: int | None = None, name: str = "series.json") -> Path:
        bars = {}
        for index in range(count):
            if index == skip:
                continue
            close = f"{100 + index / 10:.2f}"
            timestamp = (SESSION_START + timedelta(minutes=index)).strftime("%Y-%m-%dT%H:%M:%SZ")
            bars[timestamp] = {
                "1. open": close,
                "2. high": close,
                "3. low": close,
                "4. close": close,
                "5. volume": "500",
            }
        path = tmp_path / name
        path.write_text(json.dumps({"Meta Data": {}, "Time Series (1min)": bars}), encoding="utf-8")
        return path

    return _write
