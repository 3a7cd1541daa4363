"""Tests for package metadata."""

import re
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent


def test_readme_is_package_documentation():
    pyproject = (ROOT / "pyproject.toml").read_text()
    match = re.search(r'^readme = "([^"]+)"', pyproject, re.M)

    assert match is not None
    readme = ROOT / match.group(1)
    assert readme.name == "README.md"
    assert readme.read_text().startswith("# taintboost")
