"""
Tests for the project metadata shipped with the package.

Run with: pytest tests/test_packaging.py -v
"""
from __future__ import annotations

import re
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]


def test_readme_declared_and_present():
    pyproject = (ROOT / "pyproject.toml").read_text(encoding="utf-8")
    match = re.search(r'^readme\s*=\s*"([^"]+)"', pyproject, re.MULTILINE)
    assert match is not None
    assert match.group(1) == "README.md"
    assert (ROOT / match.group(1)).is_file()


def test_seed_file_declared_as_package_data():
    pyproject = (ROOT / "pyproject.toml").read_text(encoding="utf-8")
    assert 'funniest = ["seed_content.yml"]' in pyproject
    assert (ROOT / "funniest-service" / "funniest" / "seed_content.yml").is_file()
