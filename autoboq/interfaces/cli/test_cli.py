"""Tests for the CLI."""

from __future__ import annotations

import json
from collections.abc import Generator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from autoboq import __version__
from autoboq.config import get_settings

from .main import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def offline_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Force simulation mode with no artificial delay."""
    for name in ("GEMINI_API_KEY", "API_KEY", "GOOGLE_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SIMULATION_DELAY_SECONDS", "0")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_version() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_modules() -> None:
    result = runner.invoke(app, ["modules"])
    assert result.exit_code == 0
    assert "Substructure" in result.output


def test_extract_missing_file(tmp_path: Path) -> None:
    result = runner.invoke(app, ["extract", str(tmp_path / "missing.pdf")])
    assert result.exit_code == 1
    assert "File not found" in result.output


def test_extract_simulated_writes_boq(tmp_path: Path) -> None:
    """Test an offline extraction saves all sample items with aliased keys."""
    drawing = tmp_path / "S-01.pdf"
    drawing.write_bytes(b"%PDF-1.4")
    output = tmp_path / "boq.json"

    result = runner.invoke(app, ["extract", str(drawing), "--simulate", "-o", str(output)])
    assert result.exit_code == 0, result.output

    records = json.loads(output.read_text(encoding="utf-8"))
    assert [record["id"] for record in records] == [1, 2, 3, 4, 5, 6]
    assert set(records[0]["dimensions"]) == {"l", "w", "h"}
