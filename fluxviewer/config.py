"""
Listener configuration.

Dataclass defaults are the listener defaults; a YAML file can override
any of them:

    loop:
      read_timeout: 0.1
      event_queue_size: 4096
    osc:
      ip: 0.0.0.0
      port: 8000
    artnet:
      ip: 127.0.0.1
      universes: "0-3"
    serial:
      port: /dev/ttyUSB0
      baud_rate: 115200
"""

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "fluxviewer" / "config.yaml"


@dataclass
class LoopConfig:
    """Polling loop timing and event channel capacity."""
    read_timeout: float = 0.1
    idle_interval: float = 0.1
    event_queue_size: int = 4096


@dataclass
class OscConfig:
    ip: str = "0.0.0.0"
    port: int = 8000
    buffer_size: int = 1024
    auto_start: bool = True


@dataclass
class SacnConfig:
    ip: str = "0.0.0.0"
    port: int = 5568
    inbox_size: int = 1024
    universes: str = ""


@dataclass
class ArtnetConfig:
    ip: str = "0.0.0.0"
    port: int = 6454
    buffer_size: int = 1024
    universes: str = ""


@dataclass
class SerialConfig:
    port: str = ""
    baud_rate: int = 115200
    read_buffer_size: int = 256


@dataclass
class MonitorConfig:
    """Configuration for all four listeners."""
    loop: LoopConfig = field(default_factory=LoopConfig)
    osc: OscConfig = field(default_factory=OscConfig)
    sacn: SacnConfig = field(default_factory=SacnConfig)
    artnet: ArtnetConfig = field(default_factory=ArtnetConfig)
    serial: SerialConfig = field(default_factory=SerialConfig)


def _apply_section(target: Any, section: str, values: Dict[str, Any]) -> None:
    known = {f.name for f in fields(target)}
    for key, value in values.items():
        if key not in known:
            logger.warning(f"Ignoring unknown config key {section}.{key}")
            continue
        default = getattr(target, key)
        if isinstance(default, bool):
            if not isinstance(value, bool):
                raise ConfigError(f"{section}.{key} must be true/false, got {value!r}")
        elif isinstance(default, (int, float)):
            try:
                value = type(default)(value)
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"{section}.{key}: {exc}") from exc
        else:
            value = str(value)
        setattr(target, key, value)


def config_from_dict(data: Optional[Dict[str, Any]]) -> MonitorConfig:
    """Build a MonitorConfig from parsed YAML (missing sections keep defaults)."""
    config = MonitorConfig()
    if not data:
        return config
    if not isinstance(data, dict):
        raise ConfigError("Config root must be a mapping")

    for section, values in data.items():
        target = getattr(config, section, None)
        if target is None:
            logger.warning(f"Ignoring unknown config section {section!r}")
            continue
        if not isinstance(values, dict):
            raise ConfigError(f"Config section {section!r} must be a mapping")
        _apply_section(target, section, values)
    return config


def load_config(path: Optional[Path] = None) -> MonitorConfig:
    """
    Load listener configuration from a YAML file.

    Args:
        path: File path (default: ~/.config/fluxviewer/config.yaml)

    Returns:
        MonitorConfig; defaults when the file does not exist

    Raises:
        ConfigError: file is unreadable, not YAML, or has invalid values
    """
    path = Path(path) if path else DEFAULT_CONFIG_PATH

    if not path.exists():
        logger.info(f"No config file at {path}, using defaults")
        return MonitorConfig()

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load config {path}: {e}") from e

    config = config_from_dict(data)
    logger.info(f"Loaded config from {path}")
    return config
