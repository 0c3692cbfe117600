"""
Configuration loader with priority: CLI > env > TOML > defaults
"""
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

from ...config import SessionConfig
from ...core.constants import DEFAULT_CONFIG_PATH, ENV_PREFIX
from ...core.exceptions import ConfigError


class ConfigLoader:
    """Configuration loader with priority support"""

    # Environment variable -> dotted config key
    ENV_MAPPINGS = {
        "HOST": "connection.host",
        "PORT": "connection.port",
        "USER": "connection.user",
        "PASSWORD": "connection.password",
        "CONNECT_TIMEOUT": "connect_timeout",
        "HOST_KEY_POLICY": "host_key_policy",
        "KNOWN_HOSTS": "known_hosts",
        "MAX_WORKERS": "max_workers",
        "TERM": "shell.term",
        "CHUNK_SIZE": "transfer.chunk_size",
        "OPERATION_TIMEOUT": "transfer.operation_timeout",
        "MAX_READ_BYTES": "transfer.max_read_bytes",
    }

    def __init__(self, env_prefix: str = ENV_PREFIX):
        self._env_prefix = env_prefix

    def load_toml(self, path: Path) -> Dict[str, Any]:
        """
        Load TOML configuration file.

        Raises:
            ConfigError: If the file is missing or not valid TOML
        """
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            return tomllib.loads(path.read_text(encoding='utf-8'))
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Failed to parse TOML configuration {path}: {e}") from e

    def load_env(self, environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """Load configuration from environment variables"""
        environ = os.environ if environ is None else environ
        config: Dict[str, Any] = {}

        for suffix, config_key in self.ENV_MAPPINGS.items():
            value = environ.get(self._env_prefix + suffix)
            if not value:
                continue
            # Passwords keep their exact text
            converted = value if suffix == "PASSWORD" else self._convert_value(value)
            self._set_dotted(config, config_key, converted)

        return config

    @staticmethod
    def _set_dotted(config: Dict[str, Any], dotted_key: str, value: Any) -> None:
        *parents, leaf = dotted_key.split(".")
        node = config
        for part in parents:
            node = node.setdefault(part, {})
        node[leaf] = value

    def _convert_value(self, value: str) -> Any:
        """Convert string value to appropriate type"""
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value

    def merge_configs(self, *configs: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge multiple configurations with priority.
        Later configs override earlier ones.
        """
        result: Dict[str, Any] = {}

        for config in configs:
            result = self._deep_merge(result, config)

        return result

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries"""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def load(
        self,
        toml_path: Optional[Path] = None,
        cli_overrides: Optional[Dict[str, Any]] = None,
        use_env: bool = True,
    ) -> Dict[str, Any]:
        """
        Load configuration with priority: CLI > env > TOML > defaults

        Without an explicit ``toml_path`` the default file is read when it exists.

        Args:
            toml_path: Path to TOML configuration file
            cli_overrides: CLI parameter overrides
            use_env: Whether to load from environment variables

        Returns:
            Merged configuration dictionary
        """
        configs = []

        if toml_path:
            configs.append(self.load_toml(toml_path))
        else:
            default_path = Path(DEFAULT_CONFIG_PATH).expanduser()
            if default_path.exists():
                configs.append(self.load_toml(default_path))

        if use_env:
            env_config = self.load_env()
            if env_config:
                configs.append(env_config)

        if cli_overrides:
            configs.append(cli_overrides)

        return self.merge_configs(*configs)

    def load_session_config(
        self,
        toml_path: Optional[Path] = None,
        cli_overrides: Optional[Dict[str, Any]] = None,
        use_env: bool = True,
    ) -> SessionConfig:
        """Load and validate a ``SessionConfig``; the ``connection`` table is ignored"""
        data = self.load(toml_path, cli_overrides, use_env)
        data.pop("connection", None)
        return SessionConfig.from_dict(data)
