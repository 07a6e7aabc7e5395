"""Layered configuration loaded from TOML files.

Layers, lowest priority first:

1. Built-in defaults
2. User file ``$DOCGRAPH_HOME/config.toml`` (default ``~/.config/docgraph``)
3. Project file: an explicit ``--config`` path, else ``.docgraph.toml`` in
   the documentation root, else ``[tool.docgraph]`` in ``pyproject.toml``
4. Command-line overrides
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import toml

from .errors import ConfigError
from .models import (
    RULE_DEAD_ANCHOR,
    RULE_DEAD_LINK,
    RULE_ORPHAN_FILES,
    ExternalLinkPolicy,
)

logger = logging.getLogger(__name__)

BASE_DIR = Path(
    os.environ.get("DOCGRAPH_HOME", str(Path.home() / ".config" / "docgraph"))
).expanduser()
USER_CONFIG_FILE = BASE_DIR / "config.toml"
PROJECT_CONFIG_NAME = ".docgraph.toml"
PYPROJECT_NAME = "pyproject.toml"

RULE_SEVERITIES = {"error", "warn", "off"}
OUTPUT_FORMATS = {"text", "json", "grep"}
MIN_CONCURRENCY = 1
MAX_CONCURRENCY = 100


def default_rules() -> Dict[str, str]:
    return {
        RULE_ORPHAN_FILES: "error",
        RULE_DEAD_LINK: "error",
        RULE_DEAD_ANCHOR: "error",
    }


@dataclass
class DocGraphConfig:
    entrypoint: str = "README.md"
    depth: Optional[int] = None
    max_concurrency: int = 10
    scope_limit: bool = True
    scope_root: Optional[str] = None
    external_links: ExternalLinkPolicy = ExternalLinkPolicy.VALIDATE
    exclude: List[str] = field(default_factory=list)
    respect_gitignore: bool = False
    exclude_hidden: bool = True
    ignore_file: Optional[str] = None
    rules: Dict[str, str] = field(default_factory=default_rules)
    format: str = "text"
    verbose: bool = False

    @property
    def depth_limited(self) -> bool:
        return self.depth is not None

    def rule_severity(self, rule: str) -> str:
        return self.rules.get(rule, "error")

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["external_links"] = self.external_links.value
        return data


_FIELD_NAMES = {f.name for f in fields(DocGraphConfig)}

SOURCE_DEFAULT = "default"
SOURCE_USER = "user"
SOURCE_PROJECT = "project"
SOURCE_CLI = "cli"

STARTER_CONFIG = """\
# DocGraph configuration. Every key is optional.

entrypoint = "README.md"

# Maximum traversal depth; "unlimited" follows every link.
depth = "unlimited"

# Files validated concurrently (1-100).
max_concurrency = 10

# Links leaving the scope root: validate, warn, error or ignore.
external_links = "validate"
scope_limit = true

# Gitignore-style patterns; prefix with ! to re-include.
exclude = []
respect_gitignore = false
exclude_hidden = true

[rules]
orphan-files = "error"
dead-link = "error"
dead-anchor = "error"
"""


# ===================================================================
# Loading
# ===================================================================

def load_config(
    base_path: Optional[Path] = None,
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> DocGraphConfig:
    """Merge every configuration layer into a validated config."""
    config, _ = load_config_with_sources(base_path, config_path, overrides)
    return config


def load_config_with_sources(
    base_path: Optional[Path] = None,
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Tuple[DocGraphConfig, Dict[str, str]]:
    """Like :func:`load_config`, also naming the layer that set each key."""
    layers = [
        (SOURCE_USER, load_user_config()),
        (SOURCE_PROJECT, load_project_config(base_path or Path.cwd(), config_path)),
        (SOURCE_CLI, {k: v for k, v in (overrides or {}).items() if v is not None}),
    ]
    merged: Dict[str, Any] = {}
    sources = {name: SOURCE_DEFAULT for name in sorted(_FIELD_NAMES)}
    for source, layer in layers:
        layer = _normalize_keys(layer)
        _merge(merged, layer)
        for key in layer:
            if key in sources:
                sources[key] = source
    return validate_config(merged), sources


def write_starter_config(path: Path) -> Path:
    """Write :data:`STARTER_CONFIG` to ``path``; never overwrites."""
    path = Path(path)
    if path.exists():
        raise FileExistsError(f"Configuration file already exists: {path}")
    path.write_text(STARTER_CONFIG, encoding="utf-8")
    logger.info("Created %s", path)
    return path


def load_user_config() -> Dict[str, Any]:
    if not USER_CONFIG_FILE.exists():
        return {}
    return _read_toml(USER_CONFIG_FILE)


def load_project_config(base_path: Path, config_path: Optional[Path] = None) -> Dict[str, Any]:
    if config_path is not None:
        path = Path(config_path)
        if not path.is_file():
            raise ConfigError(f"config file not found: {path}")
        data = _read_toml(path)
        if path.name == PYPROJECT_NAME:
            return data.get("tool", {}).get("docgraph", {})
        return data

    project_file = Path(base_path) / PROJECT_CONFIG_NAME
    if project_file.is_file():
        logger.debug("Using project config %s", project_file)
        return _read_toml(project_file)

    pyproject = Path(base_path) / PYPROJECT_NAME
    if pyproject.is_file():
        section = _read_toml(pyproject).get("tool", {}).get("docgraph", {})
        if section:
            logger.debug("Using [tool.docgraph] from %s", pyproject)
        return section
    return {}


def validate_config(raw: Dict[str, Any]) -> DocGraphConfig:
    """Build a :class:`DocGraphConfig`, rejecting invalid values."""
    values: Dict[str, Any] = {}
    for key, value in raw.items():
        name = key.replace("-", "_")
        if name not in _FIELD_NAMES:
            logger.debug("Ignoring unknown config key: %s", key)
            continue
        values[name] = value

    config = DocGraphConfig()
    if "entrypoint" in values:
        if not isinstance(values["entrypoint"], str) or not values["entrypoint"].strip():
            raise ConfigError("entrypoint must be a non-empty string")
        config.entrypoint = values["entrypoint"]
    if "depth" in values:
        config.depth = parse_depth(values["depth"])
    if "max_concurrency" in values:
        concurrency = values["max_concurrency"]
        if (
            isinstance(concurrency, bool)
            or not isinstance(concurrency, int)
            or not MIN_CONCURRENCY <= concurrency <= MAX_CONCURRENCY
        ):
            raise ConfigError(
                f"max_concurrency must be an integer between {MIN_CONCURRENCY} and {MAX_CONCURRENCY}"
            )
        config.max_concurrency = concurrency
    for flag in ("scope_limit", "respect_gitignore", "exclude_hidden", "verbose"):
        if flag in values:
            if not isinstance(values[flag], bool):
                raise ConfigError(f"{flag} must be true or false")
            setattr(config, flag, values[flag])
    for optional_path in ("scope_root", "ignore_file"):
        if values.get(optional_path) is not None:
            setattr(config, optional_path, str(values[optional_path]))
    if "external_links" in values:
        try:
            config.external_links = ExternalLinkPolicy(values["external_links"])
        except ValueError:
            choices = ", ".join(p.value for p in ExternalLinkPolicy)
            raise ConfigError(f"external_links must be one of: {choices}") from None
    if "exclude" in values:
        exclude = values["exclude"]
        if isinstance(exclude, str):
            exclude = [exclude]
        if not isinstance(exclude, list) or not all(isinstance(p, str) for p in exclude):
            raise ConfigError("exclude must be a list of patterns")
        config.exclude = list(exclude)
    if "rules" in values:
        rules = values["rules"]
        if not isinstance(rules, dict):
            raise ConfigError("rules must be a table of rule = severity")
        for rule, severity in rules.items():
            if severity not in RULE_SEVERITIES:
                raise ConfigError(f"rule '{rule}' has invalid severity '{severity}'")
            config.rules[rule] = severity
    if "format" in values:
        if values["format"] not in OUTPUT_FORMATS:
            raise ConfigError(f"format must be one of: {', '.join(sorted(OUTPUT_FORMATS))}")
        config.format = values["format"]
    return config


def parse_depth(value: Any) -> Optional[int]:
    """``"unlimited"``/None -> None; non-negative integers pass through."""
    if value is None or value == "unlimited":
        return None
    if isinstance(value, str) and value.isdigit():
        return int(value)
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    raise ConfigError(
        f"depth must be a non-negative integer or 'unlimited', got {value!r}"
    )


# ===================================================================
# Helpers
# ===================================================================

def _read_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return toml.load(f)
    except toml.TomlDecodeError as exc:
        raise ConfigError(f"{path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"cannot read {path}: {exc}") from exc


def _normalize_keys(layer: Dict[str, Any]) -> Dict[str, Any]:
    # Top-level keys only; rule names inside [rules] keep their dashes.
    return {key.replace("-", "_"): value for key, value in layer.items()}


def _merge(target: Dict[str, Any], layer: Dict[str, Any]) -> None:
    for key, value in layer.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            target[key] = {**target[key], **value}
        else:
            target[key] = value
