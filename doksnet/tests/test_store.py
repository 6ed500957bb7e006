"""Tests for the .doks mapping store."""

import pytest
import yaml

from doksnet.errors import InvalidRangeError, PartitionFileNotFoundError, StoreError
from doksnet.hashing import fingerprint
from doksnet.store import (
    DOKS_FILE_ENV,
    DOKS_FILE_NAME,
    FORMAT_VERSION,
    DoksConfig,
    Mapping,
    create_mapping,
    find_doks_file,
    find_documentation_files,
    load_doks,
    new_config,
    save_doks,
    update_mapping,
)


def _mapping(mapping_id: str = "test-id-123", description: str | None = "Test mapping") -> Mapping:
    return Mapping(
        id=mapping_id,
        doc_partition="README.md:1-5",
        code_partition="src/main.py:10-20",
        doc_hash="abc123",
        code_hash="def456",
        description=description,
    )


class TestDoksConfig:
    """Tests for the in-memory store."""

    def test_new_config(self):
        config = new_config("README.md")
        assert config.version == FORMAT_VERSION
        assert config.default_doc == "README.md"
        assert config.mappings == []

    def test_add_mapping(self):
        config = new_config("README.md")
        config.add_mapping(_mapping())
        assert len(config.mappings) == 1
        assert config.mappings[0].id == "test-id-123"

    def test_find_by_full_id(self):
        config = new_config("README.md")
        config.add_mapping(_mapping("abcdef12-0000"))
        assert config.find_mapping("abcdef12-0000").id == "abcdef12-0000"

    def test_find_by_prefix(self):
        config = new_config("README.md")
        config.add_mapping(_mapping("abcdef12-0000"))
        config.add_mapping(_mapping("99999999-0000"))
        assert config.find_mapping("abcdef12").id == "abcdef12-0000"

    def test_find_exact_beats_prefix(self):
        """An id that is also a prefix of another id still matches itself."""
        config = new_config("README.md")
        config.add_mapping(_mapping("abc"))
        config.add_mapping(_mapping("abcd"))
        assert config.find_mapping("abc").id == "abc"

    def test_find_missing(self):
        config = new_config("README.md")
        config.add_mapping(_mapping())
        with pytest.raises(StoreError) as exc_info:
            config.find_mapping("nonexistent")
        assert exc_info.value.error_type == "mapping_not_found"

    def test_find_empty_prefix(self):
        config = new_config("README.md")
        config.add_mapping(_mapping())
        with pytest.raises(StoreError) as exc_info:
            config.find_mapping("")
        assert exc_info.value.error_type == "mapping_not_found"

    def test_find_ambiguous(self):
        config = new_config("README.md")
        config.add_mapping(_mapping("abc-1"))
        config.add_mapping(_mapping("abc-2"))
        with pytest.raises(StoreError) as exc_info:
            config.find_mapping("abc")
        assert exc_info.value.error_type == "ambiguous_id"

    def test_remove_mapping(self):
        config = new_config("README.md")
        config.add_mapping(_mapping("keep-1"))
        config.add_mapping(_mapping("drop-1"))
        removed = config.remove_mapping("drop")
        assert removed.id == "drop-1"
        assert [m.id for m in config.mappings] == ["keep-1"]


class TestSaveLoad:
    """Tests for save_doks and load_doks."""

    def test_roundtrip(self, tmp_path):
        path = tmp_path / DOKS_FILE_NAME
        config = new_config("README.md")
        config.add_mapping(_mapping())
        config.add_mapping(_mapping("no-desc", description=None))

        save_doks(config, path)
        loaded = load_doks(path)

        assert loaded == config

    def test_serialization_format(self, tmp_path):
        """The file is plain YAML with mappings as a list."""
        path = tmp_path / DOKS_FILE_NAME
        config = new_config("README.md")
        config.add_mapping(_mapping())
        save_doks(config, path)

        data = yaml.safe_load(path.read_text())
        assert data["version"] == FORMAT_VERSION
        assert data["default_doc"] == "README.md"
        assert data["mappings"][0]["id"] == "test-id-123"
        assert data["mappings"][0]["doc_partition"] == "README.md:1-5"

    def test_description_omitted_when_none(self, tmp_path):
        path = tmp_path / DOKS_FILE_NAME
        config = new_config("README.md")
        config.add_mapping(_mapping(description=None))
        save_doks(config, path)
        assert "description" not in path.read_text()

    def test_empty_mappings_key(self, tmp_path):
        """'mappings:' with no entries loads as an empty list."""
        path = tmp_path / DOKS_FILE_NAME
        path.write_text("version: 0.1.0\ndefault_doc: README.md\nmappings:\n")
        assert load_doks(path).mappings == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(StoreError) as exc_info:
            load_doks(tmp_path / "nonexistent.doks")
        assert exc_info.value.error_type == "store_not_found"

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / DOKS_FILE_NAME
        path.write_text("default_doc: [unclosed\n")
        with pytest.raises(StoreError) as exc_info:
            load_doks(path)
        assert exc_info.value.error_type == "store_invalid"
        assert exc_info.value.file == str(path)

    def test_top_level_not_mapping(self, tmp_path):
        path = tmp_path / DOKS_FILE_NAME
        path.write_text("- just\n- a list\n")
        with pytest.raises(StoreError):
            load_doks(path)

    def test_missing_default_doc(self, tmp_path):
        path = tmp_path / DOKS_FILE_NAME
        path.write_text("version: 0.1.0\nmappings: []\n")
        with pytest.raises(StoreError, match="default_doc"):
            load_doks(path)

    def test_mapping_missing_fields(self, tmp_path):
        path = tmp_path / DOKS_FILE_NAME
        path.write_text(yaml.safe_dump({
            "default_doc": "README.md",
            "mappings": [{"id": "x", "doc_partition": "README.md"}],
        }))
        with pytest.raises(StoreError, match="code_partition"):
            load_doks(path)


class TestFindDoksFile:
    """Tests for find_doks_file."""

    def test_not_found(self, tmp_path):
        assert find_doks_file(tmp_path) is None

    def test_found_in_start_dir(self, tmp_path):
        (tmp_path / DOKS_FILE_NAME).write_text("default_doc: README.md\n")
        assert find_doks_file(tmp_path) == (tmp_path / DOKS_FILE_NAME).resolve()

    def test_found_in_parent(self, tmp_path):
        (tmp_path / DOKS_FILE_NAME).write_text("default_doc: README.md\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_doks_file(nested) == (tmp_path / DOKS_FILE_NAME).resolve()

    def test_defaults_to_cwd(self, tmp_path, monkeypatch):
        (tmp_path / DOKS_FILE_NAME).write_text("default_doc: README.md\n")
        monkeypatch.chdir(tmp_path)
        found = find_doks_file()
        assert found is not None
        assert found.name == DOKS_FILE_NAME
        assert found.exists()

    def test_env_override(self, tmp_path, monkeypatch):
        target = tmp_path / "custom.doks"
        monkeypatch.setenv(DOKS_FILE_ENV, str(target))
        assert find_doks_file(tmp_path / "elsewhere") == target


class TestCreateMapping:
    """Tests for create_mapping."""

    def test_hashes_current_content(self, sample_project):
        mapping = create_mapping("README.md:5", "src/calc.py:4-5", root=sample_project)
        assert mapping.doc_hash == fingerprint("Call `add(a, b)` to sum two numbers.")
        assert mapping.code_hash == fingerprint(
            "def add(a: int, b: int) -> int:\n    return a + b"
        )
        assert mapping.doc_partition == "README.md:5"
        assert mapping.code_partition == "src/calc.py:4-5"

    def test_ids_are_unique_uuids(self, sample_project):
        first = create_mapping("README.md", "src/calc.py", root=sample_project)
        second = create_mapping("README.md", "src/calc.py", root=sample_project)
        assert first.id != second.id
        assert len(first.id) == 36

    def test_description_cleanup(self, sample_project):
        blank = create_mapping("README.md", "src/calc.py", "   ", root=sample_project)
        padded = create_mapping("README.md", "src/calc.py", "  add docs ", root=sample_project)
        assert blank.description is None
        assert padded.description == "add docs"

    def test_bad_reference_propagates(self, sample_project):
        with pytest.raises(InvalidRangeError):
            create_mapping("README.md:x", "src/calc.py", root=sample_project)

    def test_missing_file_propagates(self, sample_project):
        with pytest.raises(PartitionFileNotFoundError):
            create_mapping("README.md", "src/missing.py", root=sample_project)


class TestUpdateMapping:
    """Tests for update_mapping."""

    def test_reaccepts_changed_content(self, sample_project):
        mapping = create_mapping("README.md:5", "src/calc.py:4-5", root=sample_project)
        old_code_hash = mapping.code_hash

        calc = sample_project / "src" / "calc.py"
        calc.write_text(calc.read_text().replace("a + b", "b + a"))

        update_mapping(mapping, root=sample_project)
        assert mapping.code_hash != old_code_hash
        assert mapping.code_partition == "src/calc.py:4-5"

    def test_new_references(self, sample_project):
        mapping = create_mapping("README.md:5", "src/calc.py:4-5", root=sample_project)
        update_mapping(
            mapping,
            doc_reference="README.md:6",
            code_reference="src/calc.py:8-9",
            description="sub docs",
            root=sample_project,
        )
        assert mapping.doc_partition == "README.md:6"
        assert mapping.code_partition == "src/calc.py:8-9"
        assert mapping.doc_hash == fingerprint("It returns an int.")
        assert mapping.description == "sub docs"

    def test_description_only_keeps_hashes(self, sample_project):
        """Changing the description does not accept drifted content."""
        mapping = create_mapping("README.md:5", "src/calc.py:4-5", root=sample_project)
        doc_hash, code_hash = mapping.doc_hash, mapping.code_hash

        calc = sample_project / "src" / "calc.py"
        calc.write_text(calc.read_text().replace("a + b", "b + a"))

        update_mapping(mapping, description="new text", root=sample_project)
        assert mapping.description == "new text"
        assert mapping.doc_hash == doc_hash
        assert mapping.code_hash == code_hash

    def test_doc_only_keeps_code_hash(self, sample_project):
        """A new doc reference re-hashes the doc side only."""
        mapping = create_mapping("README.md:5", "src/calc.py:4-5", root=sample_project)
        code_hash = mapping.code_hash

        calc = sample_project / "src" / "calc.py"
        calc.write_text(calc.read_text().replace("a + b", "b + a"))

        update_mapping(mapping, doc_reference="README.md:6", root=sample_project)
        assert mapping.doc_partition == "README.md:6"
        assert mapping.doc_hash == fingerprint("It returns an int.")
        assert mapping.code_hash == code_hash

    def test_code_only_keeps_doc_hash(self, sample_project):
        """A new code reference re-hashes the code side only."""
        mapping = create_mapping("README.md:5", "src/calc.py:4-5", root=sample_project)
        doc_hash = mapping.doc_hash

        readme = sample_project / "README.md"
        readme.write_text(readme.read_text().replace("two numbers", "2 numbers"))

        update_mapping(mapping, code_reference="src/calc.py:9", root=sample_project)
        assert mapping.code_hash == fingerprint("    return a - b")
        assert mapping.doc_hash == doc_hash

    def test_failure_leaves_mapping_unchanged(self, sample_project):
        mapping = create_mapping("README.md:5", "src/calc.py:4-5", root=sample_project)
        before = Mapping(**mapping.to_dict())
        with pytest.raises(PartitionFileNotFoundError):
            update_mapping(mapping, code_reference="src/gone.py", root=sample_project)
        assert mapping == before


class TestFindDocumentationFiles:
    """Tests for find_documentation_files."""

    def test_readme_first(self, tmp_path):
        for name in ["guide.md", "CHANGELOG.md", "README.md", "main.py"]:
            (tmp_path / name).write_text("x")
        assert find_documentation_files(tmp_path) == ["README.md", "CHANGELOG.md", "guide.md"]

    def test_known_names_without_md(self, tmp_path):
        (tmp_path / "readme.rst").write_text("x")
        (tmp_path / "notes.txt").write_text("x")
        assert find_documentation_files(tmp_path) == ["readme.rst"]

    def test_ignores_directories(self, tmp_path):
        (tmp_path / "docs.md").mkdir()
        assert find_documentation_files(tmp_path) == []

    def test_empty(self, tmp_path):
        assert find_documentation_files(tmp_path) == []
