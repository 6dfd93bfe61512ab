"""Tests for TOML configuration loading."""

from pathlib import Path

from segblock.config import Config, load_config, merge_cli_options


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "segblock.toml"
    path.write_text(text)
    return path


class TestLoadConfig:
    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        config = load_config(tmp_path / "absent.toml")
        assert config == Config()
        assert config.default_segments == 4
        assert config.default_unblock_hours == 2
        assert not config.sync_enabled

    def test_all_sections(self, tmp_path: Path) -> None:
        path = _write(tmp_path, """
[storage]
path = "/tmp/segblock-test/rules.db"

[defaults]
segments = 6
unblock_hours = 3

[sync]
enabled = true
endpoint_url = "http://127.0.0.1:9000/rules"
timeout = 2
attempts = 3
""")
        config = load_config(path)
        assert config.db_path == Path("/tmp/segblock-test/rules.db")
        assert config.default_segments == 6
        assert config.default_unblock_hours == 3
        assert config.sync_enabled
        assert config.sync_endpoint_url == "http://127.0.0.1:9000/rules"
        assert config.sync_timeout == 2.0
        assert config.sync_attempts == 3

    def test_invalid_segments_ignored(self, tmp_path: Path) -> None:
        config = load_config(_write(tmp_path, "[defaults]\nsegments = 5\n"))
        assert config.default_segments == 4

    def test_default_hours_clamped(self, tmp_path: Path) -> None:
        config = load_config(_write(tmp_path, "[defaults]\nsegments = 8\nunblock_hours = 5\n"))
        assert config.default_unblock_hours == 3

    def test_attempts_floor(self, tmp_path: Path) -> None:
        config = load_config(_write(tmp_path, "[sync]\nattempts = 0\n"))
        assert config.sync_attempts == 1

    def test_wrong_types_keep_defaults(self, tmp_path: Path) -> None:
        config = load_config(_write(tmp_path, """
[defaults]
unblock_hours = "3"

[sync]
timeout = "x"
attempts = "many"
"""))
        assert config.default_unblock_hours == 2
        assert config.sync_timeout == 5.0
        assert config.sync_attempts == 1

    def test_malformed_file_uses_defaults(self, tmp_path: Path) -> None:
        config = load_config(_write(tmp_path, "[defaults\nsegments = "))
        assert config == Config()


class TestMergeCliOptions:
    def test_overrides(self) -> None:
        config = merge_cli_options(Config(), db="/tmp/x.db", sync=True, endpoint="http://h/r")
        assert config.db_path == Path("/tmp/x.db")
        assert config.sync_enabled
        assert config.sync_endpoint_url == "http://h/r"

    def test_none_ignored(self) -> None:
        config = merge_cli_options(Config(), db=None, sync=None, endpoint=None)
        assert config == Config()

    def test_no_sync_flag(self) -> None:
        base = Config(sync_enabled=True)
        assert not merge_cli_options(base, sync=False).sync_enabled
