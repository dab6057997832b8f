"""
Pytest configuration and shared fixtures.

Puts the repository root on sys.path so both the treegen script module and
the treegen_lib package import without installation.
"""
import json
import os
import sys

import pytest

_ROOT_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _ROOT_PATH not in sys.path:
    sys.path.insert(0, _ROOT_PATH)


@pytest.fixture
def project_doc():
    """The project/src layout used across the suite, as plain data."""
    return {"project": {"src": {"main.txt": None, "lib.txt": None}, "README.md": None}}


@pytest.fixture
def json_spec(tmp_path, project_doc):
    path = tmp_path / "layout.json"
    path.write_text(json.dumps(project_doc), encoding="utf-8")
    return path
