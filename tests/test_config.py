import pytest

from sshdeck.adapters.config.loader import ConfigLoader
from sshdeck.config import SessionConfig, ShellConfig, TransferConfig
from sshdeck.core.exceptions import ConfigError


class TestSessionConfig:
    def test_defaults(self) -> None:
        config = SessionConfig()

        assert config.host_key_policy == "strict"
        assert config.connect_timeout == 30.0
        assert config.transfer.max_read_bytes is None
        assert config.transfer.operation_timeout is None
        assert config.shell.term == "xterm"

    def test_from_partial_dict(self) -> None:
        config = SessionConfig.from_dict({
            "max_workers": "8",
            "shell": {"width": 120},
            "transfer": {"max_read_bytes": 1024},
        })

        assert config.max_workers == 8
        assert config.shell.width == 120
        assert config.shell.height == 24
        assert config.transfer.max_read_bytes == 1024

    def test_dict_round_trip(self) -> None:
        config = SessionConfig(
            host_key_policy="warn",
            shell=ShellConfig(term="vt100"),
            transfer=TransferConfig(operation_timeout=5.0),
        )
        assert SessionConfig.from_dict(config.to_dict()) == config

    @pytest.mark.parametrize(
        "data,message",
        [
            ({"host_key_policy": "yolo"}, "host_key_policy"),
            ({"connect_timeout": 0}, "connect_timeout"),
            ({"max_workers": 0}, "max_workers"),
            ({"transfer": {"chunk_size": 0}}, "chunk_size"),
            ({"shell": {"poll_interval": -1}}, "poll_interval"),
        ],
    )
    def test_out_of_range(self, data, message) -> None:
        with pytest.raises(ConfigError, match=message):
            SessionConfig.from_dict(data)

    def test_wrong_type(self) -> None:
        with pytest.raises(ConfigError, match="Invalid configuration value"):
            SessionConfig.from_dict({"max_workers": "many"})


class TestConfigLoader:
    def test_env_mapping_and_conversion(self) -> None:
        env = ConfigLoader().load_env({
            "SSHDECK_HOST": "example.test",
            "SSHDECK_PORT": "2222",
            "SSHDECK_PASSWORD": "007",
            "SSHDECK_OPERATION_TIMEOUT": "2.5",
            "SSHDECK_TERM": "vt100",
            "UNRELATED": "x",
        })

        assert env == {
            "connection": {"host": "example.test", "port": 2222, "password": "007"},
            "transfer": {"operation_timeout": 2.5},
            "shell": {"term": "vt100"},
        }

    def test_empty_env_values_ignored(self) -> None:
        assert ConfigLoader().load_env({"SSHDECK_HOST": ""}) == {}

    def test_priority_cli_over_env_over_toml(self, tmp_path, monkeypatch) -> None:
        path = tmp_path / "config.toml"
        path.write_text(
            'max_workers = 2\n'
            'connect_timeout = 10\n'
            '[transfer]\n'
            'chunk_size = 1024\n'
            'max_read_bytes = 4096\n',
            encoding="utf-8",
        )
        monkeypatch.setenv("SSHDECK_MAX_WORKERS", "6")
        monkeypatch.setenv("SSHDECK_CHUNK_SIZE", "2048")

        config = ConfigLoader().load_session_config(
            toml_path=path,
            cli_overrides={"transfer": {"chunk_size": 512}},
        )

        assert config.connect_timeout == 10
        assert config.max_workers == 6
        assert config.transfer.chunk_size == 512
        assert config.transfer.max_read_bytes == 4096

    def test_connection_table_not_part_of_session_config(self, tmp_path) -> None:
        path = tmp_path / "config.toml"
        path.write_text('[connection]\nhost = "example.test"\n', encoding="utf-8")

        loader = ConfigLoader()
        assert loader.load(toml_path=path, use_env=False)["connection"] == {"host": "example.test"}
        assert loader.load_session_config(toml_path=path, use_env=False) == SessionConfig()

    def test_default_path_used_when_present(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        default = tmp_path / ".config" / "sshdeck" / "config.toml"
        default.parent.mkdir(parents=True)
        default.write_text('host_key_policy = "accept"\n', encoding="utf-8")

        config = ConfigLoader().load_session_config(use_env=False)

        assert config.host_key_policy == "accept"

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            ConfigLoader().load(toml_path=tmp_path / "absent.toml")

    def test_invalid_toml(self, tmp_path) -> None:
        path = tmp_path / "broken.toml"
        path.write_text("max_workers = [", encoding="utf-8")

        with pytest.raises(ConfigError, match="Failed to parse"):
            ConfigLoader().load(toml_path=path)

    def test_deep_merge_keeps_sibling_keys(self) -> None:
        merged = ConfigLoader().merge_configs(
            {"shell": {"term": "xterm", "width": 80}},
            {"shell": {"width": 132}},
        )
        assert merged == {"shell": {"term": "xterm", "width": 132}}
