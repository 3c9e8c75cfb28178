"""
Server Configuration

Loads configuration from environment variables and provides defaults.
Supports loading from .env file using python-dotenv.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from oracle.models.config import DEFAULT_CONFIG, OracleConfig

# Single .env at the project root
root_env = Path(__file__).resolve().parent.parent / ".env"
if root_env.exists():
    load_dotenv(root_env)


@dataclass
class ServerConfig:
    """Server configuration."""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # JSON file with a sectioned engine config (see OracleConfig.from_dict)
    oracle_config_path: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load configuration from environment variables."""
        base_dir = Path(__file__).parent.parent
        config_path = os.getenv("ORACLE_CONFIG_PATH", "").strip()
        path = None
        if config_path:
            path = Path(config_path)
            if not path.is_absolute():
                path = (base_dir / path).resolve()
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            oracle_config_path=path,
        )

    def validate(self) -> tuple[bool, list[str]]:
        """
        Validate the configuration.

        Returns:
            (is_valid, list_of_errors)
        """
        errors = []
        if self.oracle_config_path is not None and not self.oracle_config_path.is_file():
            errors.append(f"Oracle config file not found: {self.oracle_config_path}")
        if not 0 < self.port < 65536:
            errors.append(f"Invalid port: {self.port}")
        return len(errors) == 0, errors

    def load_oracle_config(self) -> OracleConfig:
        """Engine config from oracle_config_path, or the defaults when unset."""
        if self.oracle_config_path is None:
            return DEFAULT_CONFIG
        with open(self.oracle_config_path, encoding="utf-8") as f:
            return OracleConfig.from_dict(json.load(f))


# Global config instance
_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ServerConfig.from_env()
    return _config


def reload_config() -> ServerConfig:
    """Reload configuration from environment."""
    global _config
    _config = None
    return get_config()
