"""Tests for the content validation script."""

import importlib.util
import json
from pathlib import Path

import pytest

from conftest import SITE, write_content

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "validate_content.py"


@pytest.fixture(scope="module")
def validate_content():
    spec = importlib.util.spec_from_file_location("validate_content", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_valid_content_exits_zero(validate_content, content_dir, capsys):
    assert validate_content.main(["--content-dir", str(content_dir)]) == 0
    assert "Content is valid." in capsys.readouterr().out


def test_bundled_content_is_valid(validate_content):
    bundled = SCRIPT.parents[1] / "content"

    assert validate_content.main(["--content-dir", str(bundled)]) == 0


def test_missing_record_exits_one(validate_content, tmp_path, capsys):
    directory = write_content(tmp_path / "partial", site=SITE)

    assert validate_content.main(["--content-dir", str(directory)]) == 1
    assert "not found" in capsys.readouterr().err


def test_duplicate_slugs_exit_one(validate_content, capsys, content_dir):
    project = {"slug": "dup", "title": "Dup"}
    (content_dir / "projects.json").write_text(
        json.dumps({"projects": [project, project]}), encoding="utf-8"
    )

    assert validate_content.main(["--content-dir", str(content_dir)]) == 1
    assert "Duplicate project slugs: dup" in capsys.readouterr().err
