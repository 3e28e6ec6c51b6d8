"""Tests for JSON file read/write/bootstrap."""

import json

import pytest

from configstore.errors import ConfigParseError, ConfigReadError, ConfigWriteError
from configstore.filesync import FileSync


class TestRead:
    def test_reads_json(self, write_config):
        path = write_config({"a": [1, 2]})
        assert FileSync(path).read() == {"a": [1, 2]}

    def test_parse_error_carries_position(self, write_config):
        path = write_config('{\n  "a": 1,\n  oops\n}')
        with pytest.raises(ConfigParseError) as info:
            FileSync(path).read()
        err = info.value
        assert err.path == path
        assert err.lineno == 3
        assert "Invalid JSON" in str(err)

    def test_unreadable_is_read_error(self, tmp_path):
        directory = tmp_path / "config.json"
        directory.mkdir()
        with pytest.raises(ConfigReadError) as info:
            FileSync(directory).read()
        assert info.value.path == directory

    def test_bad_encoding_is_read_error(self, config_path):
        config_path.write_bytes(b'{"a": "\xff"}')
        with pytest.raises(ConfigReadError):
            FileSync(config_path).read()

    def test_read_records_digest(self, write_config):
        path = write_config({"a": 1})
        sync = FileSync(path)
        sync.read()
        assert sync.synced_digest == sync.current_digest()

    def test_failed_parse_keeps_previous_digest(self, write_config):
        path = write_config({"a": 1})
        sync = FileSync(path)
        sync.read()
        before = sync.synced_digest

        path.write_text("{")
        with pytest.raises(ConfigParseError):
            sync.read()
        assert sync.synced_digest == before


class TestWrite:
    def test_atomic_write_pretty_prints(self, config_path):
        sync = FileSync(config_path, indent=4)
        sync.write({"state": {"checkForUpdates": True}})

        text = config_path.read_text()
        assert text.startswith('{\n    "state": {\n        "checkForUpdates": true')
        assert json.loads(text) == {"state": {"checkForUpdates": True}}
        assert not sync.tmp_path.exists()

    def test_in_place_write(self, config_path):
        sync = FileSync(config_path, atomic=False)
        sync.write({"a": 1})
        assert json.loads(config_path.read_text()) == {"a": 1}

    def test_records_digest_of_own_write(self, config_path):
        sync = FileSync(config_path)
        sync.write({"a": 1})
        assert sync.synced_digest == sync.current_digest()

        config_path.write_text('{"a": 2}')
        assert sync.synced_digest != sync.current_digest()

    def test_missing_directory_is_write_error(self, tmp_path):
        sync = FileSync(tmp_path / "nope" / "config.json")
        with pytest.raises(ConfigWriteError):
            sync.write({"a": 1})
        assert sync.synced_digest is None

    def test_unserializable_is_write_error(self, config_path):
        with pytest.raises(ConfigWriteError):
            FileSync(config_path).write({"a": object()})
        assert not config_path.exists()


class TestBootstrap:
    def test_creates_empty_object(self, config_path):
        sync = FileSync(config_path)
        assert sync.bootstrap() is True
        assert config_path.read_text() == "{}"
        assert sync.bootstrap() is False

    def test_existing_file_untouched(self, write_config):
        path = write_config({"keep": True})
        assert FileSync(path).bootstrap() is False
        assert json.loads(path.read_text()) == {"keep": True}

    def test_missing_parent(self, tmp_path):
        path = tmp_path / "a" / "b" / "config.json"
        with pytest.raises(ConfigWriteError):
            FileSync(path).bootstrap()
        assert FileSync(path).bootstrap(create_parents=True) is True
        assert path.read_text() == "{}"
