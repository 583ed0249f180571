"""Unit tests for the command-line entry point."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
import yaml

from job_crawler.main import build_parser, main
from job_crawler.models.records import PipelineStats


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_parser_options():
    args = build_parser().parse_args(
        ["--schema-dir", "conf/sites", "--site", "alpha", "--site", "beta", "--headed"]
    )
    assert args.schema_dir == "conf/sites"
    assert args.sites == ["alpha", "beta"]
    assert args.headed is True


def test_no_schemas_exits_with_error(tmp_path: Path):
    assert main(["--schema-dir", str(tmp_path)]) == 1


def test_runs_loaded_schemas_and_prints_summary(tmp_path: Path, capsys):
    (tmp_path / "example.yaml").write_text(
        yaml.dump(
            {
                "name": "Example Jobs",
                "base_url": "https://jobs.example.com",
                "paths": ["/search"],
                "list_selector": "li",
                "listing_link": "a",
            }
        ),
        encoding="utf-8",
    )
    stats = PipelineStats(processed=4, saved=3, duplicate=1)

    with patch("job_crawler.main.run", new_callable=AsyncMock, return_value=stats) as mock_run:
        exit_code = main(["--schema-dir", str(tmp_path), "--headed"])

    assert exit_code == 0
    settings, schemas = mock_run.call_args.args
    assert settings.headless is False
    assert list(schemas) == ["example"]
    out = capsys.readouterr().out
    assert "Saved: 3" in out
    assert "Success rate: 75.0%" in out
