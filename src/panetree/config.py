"""Configuration for panetree.

Settings come from three layers, later layers winning:

1. Defaults declared on the models below
2. A TOML file (``~/.config/panetree/config.toml`` or ``$PANETREE_CONFIG_FILE``)
3. Environment variables named ``PANETREE_<SECTION>_<FIELD>``
"""
import json
import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

ENV_PREFIX = "PANETREE"
DEFAULT_CONFIG_FILE = "~/.config/panetree/config.toml"


class TreeConfig(BaseModel):
    """Directory walk limits."""

    max_depth: int = Field(4, description="Deepest directory level listed (root is 0)")
    max_entries: int = Field(200, description="Nodes emitted across the whole walk")
    ignore_file: str = Field(".gitignore", description="Root-level file holding ignore globs")


class GitConfig(BaseModel):
    """Version-control status query."""

    status_timeout: float = Field(5.0, description="Seconds before git status is abandoned")


class WatchConfig(BaseModel):
    """Filesystem change notification."""

    debounce_ms: int = Field(300, description="Quiet period before a rebuild fires")
    poll_interval_ms: int = Field(2000, description="Rebuild interval when native watching fails")


class ControlConfig(BaseModel):
    """Control socket client."""

    reply_timeout: float = Field(3.0, description="Seconds to wait for the view to answer")


class PaneConfig(BaseModel):
    """tmux pane lifecycle."""

    split_percent: int = Field(25, description="Width of the tree pane, percent of the window")
    settle_delay_ms: int = Field(150, description="Pause between interrupt and relaunch on reuse")
    state_dir: str = Field("", description="Directory for identity files and sockets")
    tmux_timeout: float = Field(5.0, description="Seconds before a tmux call is abandoned")


class ViewConfig(BaseModel):
    """Live view behaviour."""

    focus_poll_ms: int = Field(200, description="Interval between tmux focus checks")
    editor: str = Field("", description="Editor for opening files ($EDITOR when empty)")
    pager: str = Field("", description="Pager for diffs ($PAGER when empty)")


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field("INFO", description="Log level")
    log_file: str = Field("", description="File the live view logs to (no logging when empty)")


class Config(BaseModel):
    """Complete panetree configuration."""

    tree: TreeConfig = Field(default_factory=TreeConfig)
    git: GitConfig = Field(default_factory=GitConfig)
    watch: WatchConfig = Field(default_factory=WatchConfig)
    control: ControlConfig = Field(default_factory=ControlConfig)
    pane: PaneConfig = Field(default_factory=PaneConfig)
    view: ViewConfig = Field(default_factory=ViewConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def generate_env_var_name(section: str, field: str) -> str:
    """Environment variable that overrides ``section.field``."""
    return f"{ENV_PREFIX}_{section.upper()}_{field.upper()}"


def get_all_env_mappings() -> Dict[str, Tuple[str, str]]:
    """Map every overridable environment variable to its (section, field)."""
    mappings = {}
    for section_name, section_info in Config.model_fields.items():
        section_model = section_info.annotation
        for field_name in section_model.model_fields:
            mappings[generate_env_var_name(section_name, field_name)] = (section_name, field_name)
    return mappings


def _convert_env_value(value: str) -> Any:
    """Convert an environment string to bool, int, float or str."""
    lowered = value.lower()
    if lowered in ("true", "1", "yes", "on"):
        return True
    if lowered in ("false", "0", "no", "off"):
        return False
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return value


def load_all_env_overrides() -> Dict[str, Dict[str, Any]]:
    """Collect overrides from the environment, nested by section."""
    overrides: Dict[str, Dict[str, Any]] = {}
    for env_var, (section, field) in get_all_env_mappings().items():
        if env_var in os.environ:
            overrides.setdefault(section, {})[field] = _convert_env_value(os.environ[env_var])
    return overrides


def load_config(config_file: Optional[str] = None) -> Config:
    """Load configuration from file and environment.

    Args:
        config_file: Explicit TOML path. Falls back to ``$PANETREE_CONFIG_FILE``
            and then to the default location.

    Returns:
        The merged configuration
    """
    path = Path(config_file or os.environ.get(f"{ENV_PREFIX}_CONFIG_FILE") or DEFAULT_CONFIG_FILE).expanduser()

    data: Dict[str, Dict[str, Any]] = {}
    if path.is_file():
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
            logger.debug(f"Loaded config from {path}")
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.warning(f"Ignoring unreadable config file {path}: {e}")

    for section, values in load_all_env_overrides().items():
        data.setdefault(section, {}).update(values)

    return Config(**data)


_config: Optional[Config] = None


def get_config() -> Config:
    """Return the process-wide configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Optional[Config]) -> None:
    """Replace the process-wide configuration (``None`` forces a reload)."""
    global _config
    _config = config


def _toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    # JSON escapes are valid in TOML basic strings; DEL is the one control
    # character JSON leaves raw
    return json.dumps(str(value), ensure_ascii=False).replace("\x7f", "\\u007f")


def _env_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def dump_config_toml(config: Config) -> str:
    """Render ``config`` as TOML."""
    blocks = []
    for section_name, section in config.model_dump().items():
        lines = [f"[{section_name}]"]
        for field_name, value in section.items():
            lines.append(f"{field_name} = {_toml_value(value)}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks) + "\n"


def dump_config_env(config: Config) -> str:
    """Render ``config`` as ``NAME=value`` lines."""
    lines = []
    for section_name, section in config.model_dump().items():
        for field_name, value in section.items():
            lines.append(f"{generate_env_var_name(section_name, field_name)}={_env_value(value)}")
    return "\n".join(lines)
