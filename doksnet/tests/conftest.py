"""Shared fixtures for doksnet tests."""

import pytest

from doksnet.store import DOKS_FILE_ENV, create_mapping, new_config, save_doks


@pytest.fixture(autouse=True)
def _no_doks_file_override(monkeypatch):
    """Keep a DOKSNET_FILE from the environment out of the tests."""
    monkeypatch.delenv(DOKS_FILE_ENV, raising=False)


@pytest.fixture
def write_file(tmp_path):
    """Write a file below tmp_path byte-for-byte and return its path."""

    def _write(relative: str, content: str):
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content.encode("utf-8"))
        return path

    return _write


@pytest.fixture
def sample_project(tmp_path, write_file):
    """A small project with a README and a source module."""
    write_file(
        "README.md",
        "# Calculator\n"
        "\n"
        "## Usage\n"
        "\n"
        "Call `add(a, b)` to sum two numbers.\n"
        "It returns an int.\n",
    )
    write_file(
        "src/calc.py",
        '"""Tiny calculator."""\n'
        "\n"
        "\n"
        "def add(a: int, b: int) -> int:\n"
        "    return a + b\n"
        "\n"
        "\n"
        "def sub(a: int, b: int) -> int:\n"
        "    return a - b\n",
    )
    return tmp_path


@pytest.fixture
def sample_store(sample_project):
    """A .doks file with two passing mappings in sample_project."""
    config = new_config("README.md")
    config.add_mapping(
        create_mapping(
            "README.md:5-6",
            "src/calc.py:4-5",
            description="add() docs",
            root=sample_project,
        )
    )
    config.add_mapping(
        create_mapping("README.md:1", "src/calc.py:8-9", root=sample_project)
    )
    doks_path = sample_project / ".doks"
    save_doks(config, doks_path)
    return doks_path
