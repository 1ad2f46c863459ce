import os
from pathlib import Path

import pytest

from buildport import TranslationEngine, TranslationOptions


@pytest.fixture(autouse=True)
def ensure_valid_cwd():
    try:
        os.getcwd()
    except FileNotFoundError:
        os.chdir(Path(__file__).resolve().parents[1])
    yield


@pytest.fixture
def write_tree(tmp_path):
    """Write a {relative path: content} mapping under tmp_path and return tmp_path."""

    def _write(files):
        for relative, content in files.items():
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return _write


@pytest.fixture
def options():
    return TranslationOptions()


@pytest.fixture
def engine(options):
    return TranslationEngine(options)
