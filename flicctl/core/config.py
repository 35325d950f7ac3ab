"""Client configuration loading and validation.

Settings come from an optional YAML file at
``$XDG_CONFIG_HOME/flicctl/config.yaml``; anything missing keeps its default.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from flicctl.core.errors import ConfigError, ConfigValidationError
from flicctl.core.model import LatencyMode
from flicctl.protocol.commands import DEFAULT_AUTO_DISCONNECT_TIME
from flicctl.protocol.framing import MAX_RECORD_SIZE
from flicctl.transports.tcp import DEFAULT_PORT

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientConfig:
    host: str = "localhost"
    port: int = DEFAULT_PORT
    connect_timeout_s: float = 5.0
    latency_mode: LatencyMode = LatencyMode.NORMAL
    auto_disconnect_time: int = DEFAULT_AUTO_DISCONNECT_TIME
    max_record_size: int = MAX_RECORD_SIZE
    request_info_on_connect: bool = True

    def with_overrides(self, **overrides: Any) -> ClientConfig:
        """Return a copy with every non-``None`` override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ConfigValidationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


def _load_schema_validator() -> Any:
    schema_text = resources.files("flicctl.schemas").joinpath("config.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def default_config_path() -> Path:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "flicctl" / "config.yaml"


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Could not read config file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ConfigValidationError(f"Invalid YAML in {path}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigValidationError(f"Config file {path} must contain a mapping at root")
    return loaded


def _build_config(doc: dict[str, Any], source: Path) -> ClientConfig:
    validator = _load_schema_validator()
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise ConfigValidationError(f"Schema validation failed for {source}{where}: {exc.message}") from exc

    values = dict(doc)
    if "latency_mode" in values:
        values["latency_mode"] = LatencyMode[values["latency_mode"].upper()]
    if "connect_timeout_s" in values:
        values["connect_timeout_s"] = float(values["connect_timeout_s"])
    return ClientConfig(**values)


def load_config(path: Path | None = None) -> ClientConfig:
    """Load settings from ``path`` (or the default location) over the defaults.

    An explicitly given path must exist; the default location is optional.
    """
    explicit = path is not None
    config_path = path if path is not None else default_config_path()
    if not explicit and not config_path.exists():
        LOGGER.debug("No config file at %s, using defaults", config_path)
        return ClientConfig()

    doc = _read_yaml(config_path)
    config = _build_config(doc, config_path)
    LOGGER.debug("Loaded config from %s", config_path)
    return config
