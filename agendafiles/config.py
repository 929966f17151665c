"""
Configuration management for agenda tracking.

The configuration is stored as a TOML file in the config directory.
It names the documents to watch, where the active list lives, which
query engine to use, and the agenda commands and views whose queries
decide which documents are active.
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import tomli_w

from .errors import ConfigError
from .predicates import BlockSpec, CommandDef, ImportRef, ViewDef
from .types import DEFAULT_EXTENSIONS


CONFIG_FILENAME = "agendafiles.toml"
CONFIG_VERSION = 1
AGENDA_LIST_FILENAME = "agenda-files"

# What to do when the query engine fails on a predicate
ERROR_POLICIES = ("raise", "skip")


def get_config_dir() -> Path:
    """Config directory: AGENDAFILES_HOME, or ~/.agendafiles/."""
    env = os.environ.get("AGENDAFILES_HOME")
    if env:
        return Path(env).expanduser()
    return Path.home() / ".agendafiles"


@dataclass
class TrackerConfig:
    """Complete tracker configuration."""
    path: Path
    version: int = CONFIG_VERSION
    root: Optional[Path] = None
    agenda_list: Optional[Path] = None
    extensions: list[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    engine: str = "outline"
    engine_params: dict[str, Any] = field(default_factory=dict)
    on_predicate_error: str = "raise"
    commands: list[CommandDef] = field(default_factory=list)
    views: list[ViewDef] = field(default_factory=list)

    def __post_init__(self):
        if self.on_predicate_error not in ERROR_POLICIES:
            raise ConfigError(
                f"on_predicate_error must be one of {', '.join(ERROR_POLICIES)}: "
                f"{self.on_predicate_error!r}"
            )

    @property
    def config_path(self) -> Path:
        """Path to the TOML config file."""
        return self.path / CONFIG_FILENAME

    @property
    def agenda_list_path(self) -> Path:
        """File backing the active document list."""
        if self.agenda_list is not None:
            return self.agenda_list
        return self.path / AGENDA_LIST_FILENAME

    def exists(self) -> bool:
        """Check if config file exists."""
        return self.config_path.exists()


def create_default_config(config_dir: Path) -> TrackerConfig:
    """Create a new config with no commands or views."""
    return TrackerConfig(path=config_dir)


def _parse_ref(value: Any, where: str) -> ImportRef:
    if not isinstance(value, str):
        raise ConfigError(f"{where}: expected 'module:attr' string, got {value!r}")
    try:
        return ImportRef(value)
    except ValueError as e:
        raise ConfigError(f"{where}: {e}") from e


def _parse_extensions(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)) or not all(isinstance(e, str) for e in value):
        raise ConfigError(f"tracker.extensions: expected a list of strings, got {value!r}")
    return list(value)


def _parse_command(data: dict, index: int) -> CommandDef:
    where = f"commands[{index}]"
    if not isinstance(data, dict):
        raise ConfigError(f"{where}: expected a table")
    blocks = []
    for j, b in enumerate(data.get("blocks", [])):
        if not isinstance(b, dict) or "kind" not in b:
            raise ConfigError(f"{where}.blocks[{j}]: a block needs a 'kind'")
        if "query_factory" in b:
            query = _parse_ref(b["query_factory"], f"{where}.blocks[{j}].query_factory")
        else:
            query = b.get("query")
        blocks.append(BlockSpec(kind=b["kind"], query=query))
    return CommandDef(name=data.get("name", str(index)), blocks=blocks)


def _parse_view(data: dict, index: int) -> ViewDef:
    where = f"views[{index}]"
    if not isinstance(data, dict):
        raise ConfigError(f"{where}: expected a table")
    if "query_builder" in data:
        query = _parse_ref(data["query_builder"], f"{where}.query_builder")
    else:
        query = data.get("query")
    return ViewDef(name=data.get("name", str(index)), query=query)


def load_config(config_dir: Path) -> TrackerConfig:
    """
    Load configuration from a config directory.

    Raises:
        FileNotFoundError: If config doesn't exist
        ConfigError: If config is invalid
    """
    config_path = config_dir / CONFIG_FILENAME

    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

    tracker = data.get("tracker", {})

    # Validate version
    version = tracker.get("version", 1)
    if version > CONFIG_VERSION:
        raise ConfigError(f"Config version {version} is newer than supported ({CONFIG_VERSION})")

    root = tracker.get("root")
    agenda_list = tracker.get("agenda_list")
    engine = data.get("engine", {})

    return TrackerConfig(
        path=config_dir,
        version=version,
        root=Path(root).expanduser() if root else None,
        agenda_list=Path(agenda_list).expanduser() if agenda_list else None,
        extensions=_parse_extensions(tracker.get("extensions", DEFAULT_EXTENSIONS)),
        engine=engine.get("name", "outline"),
        engine_params={k: v for k, v in engine.items() if k != "name"},
        on_predicate_error=tracker.get("on_predicate_error", "raise"),
        commands=[_parse_command(c, i) for i, c in enumerate(data.get("commands", []))],
        views=[_parse_view(v, i) for i, v in enumerate(data.get("views", []))],
    )


def _query_to_toml(query: Any, ref_key: str, where: str) -> dict:
    if isinstance(query, ImportRef):
        return {ref_key: query.spec}
    if query is None:
        return {}
    if callable(query):
        raise ConfigError(f"{where}: only 'module:attr' callables can be saved")
    return {"query": query}


def save_config(config: TrackerConfig) -> None:
    """
    Save configuration to the config directory.

    Creates the directory if it doesn't exist.
    """
    config.path.mkdir(parents=True, exist_ok=True)

    tracker: dict[str, Any] = {
        "version": config.version,
        "extensions": list(config.extensions),
        "on_predicate_error": config.on_predicate_error,
    }
    if config.root is not None:
        tracker["root"] = str(config.root)
    if config.agenda_list is not None:
        tracker["agenda_list"] = str(config.agenda_list)

    commands = []
    for i, c in enumerate(config.commands):
        blocks = []
        for j, b in enumerate(c.blocks):
            d = {"kind": b.kind}
            d.update(_query_to_toml(b.query, "query_factory", f"commands[{i}].blocks[{j}]"))
            blocks.append(d)
        commands.append({"name": c.name, "blocks": blocks})

    views = []
    for i, v in enumerate(config.views):
        d = {"name": v.name}
        d.update(_query_to_toml(v.query, "query_builder", f"views[{i}]"))
        views.append(d)

    data: dict[str, Any] = {
        "tracker": tracker,
        "engine": {"name": config.engine, **config.engine_params},
    }
    if commands:
        data["commands"] = commands
    if views:
        data["views"] = views

    with open(config.config_path, "wb") as f:
        tomli_w.dump(data, f)


def load_or_create_config(config_dir: Optional[Path] = None) -> TrackerConfig:
    """
    Load existing config or create a new one with defaults.

    This is the main entry point for config management.
    """
    config_dir = config_dir or get_config_dir()
    config_path = config_dir / CONFIG_FILENAME

    if config_path.exists():
        return load_config(config_dir)
    else:
        config = create_default_config(config_dir)
        save_config(config)
        return config
