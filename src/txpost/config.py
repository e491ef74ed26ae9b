"""Configuration loading and management."""

from dataclasses import dataclass
from pathlib import Path

try:
    import tomli
except ImportError:  # pragma: no cover
    import tomllib as tomli  # Python 3.11+


@dataclass
class Config:
    """Server configuration."""

    # Server settings
    server_name: str = "txpost"
    log_level: str = "WARNING"

    # Limits
    max_data_size: int = 102400  # 100KB

    # Verification policy
    require_signature: bool = True


DEFAULT_CONFIG = Config()


def load_config(path: Path) -> Config:
    """Load configuration from TOML file.

    Args:
        path: Path to config file

    Returns:
        Loaded configuration, merged with defaults
    """
    if not path.exists():
        return Config()

    with open(path, "rb") as f:
        data = tomli.load(f)

    server = data.get("server", {})
    limits = data.get("limits", {})
    verify = data.get("verify", {})

    return Config(
        server_name=server.get("name", DEFAULT_CONFIG.server_name),
        log_level=server.get("log_level", DEFAULT_CONFIG.log_level).upper(),
        max_data_size=limits.get("max_data_size", DEFAULT_CONFIG.max_data_size),
        require_signature=verify.get("require_signature", DEFAULT_CONFIG.require_signature),
    )
