"""ctxload configuration loader.

Layers, later ones winning:
  1. Built-in defaults (the dataclasses below)
  2. Global ~/.ctxload-home/config.yaml (model defaults only, no API keys)
  3. Per-project <marker>/config.yaml
  4. CTXLOAD_* environment variables (see _ENV_OVERRIDES)
  5. CLI flags, applied by the command after load_config() returns

YAML is always read with yaml.safe_load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Iterator

import yaml

from ctxload.errors import ConfigError

CONFIG_NAME: str = "config.yaml"

# Key names that look like credentials. max_tokens and friends do not match.
_SECRET_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)|(?:^|_)(?:token|secret)$|passw(?:ord|d)|credential",
    re.IGNORECASE,
)

__all__ = [
    "ConfigError",
    "ContextCfg",
    "CtxloadConfig",
    "FetchCfg",
    "NamingCfg",
    "ProjectsCfg",
    "TokenizerCfg",
    "ensure_global_config",
    "load_config",
]


@dataclass
class ContextCfg:
    """Context budget (config.yaml: context:).

    Attributes:
        max_tokens: Ceiling for the running context token total.
        url_name_length: Display names of URL units longer than this are
            shortened with a midpoint ellipsis.
    """

    max_tokens: int = 128_000
    url_name_length: int = 40


@dataclass
class TokenizerCfg:
    """Tokenizer (config.yaml: tokenizer:)."""

    model: str = "openai/gpt-4o"


@dataclass
class NamingCfg:
    """File-name derivation for notes and piped data (config.yaml: naming:)."""

    model: str = "openai/gpt-4o-mini"
    max_length: int = 40


@dataclass
class ProjectsCfg:
    """Project lineage discovery (config.yaml: projects:)."""

    descendant_timeout: float = 2.0


@dataclass
class FetchCfg:
    """Remote URL retrieval limits (config.yaml: fetch:)."""

    timeout: int = 30
    max_bytes: int = 5 * 1024 * 1024


@dataclass
class CtxloadConfig:
    """Merged configuration; one attribute per config.yaml section."""

    context: ContextCfg = field(default_factory=ContextCfg)
    tokenizer: TokenizerCfg = field(default_factory=TokenizerCfg)
    naming: NamingCfg = field(default_factory=NamingCfg)
    projects: ProjectsCfg = field(default_factory=ProjectsCfg)
    fetch: FetchCfg = field(default_factory=FetchCfg)


_SECTIONS: dict[str, type] = {f.name: f.default_factory for f in fields(CtxloadConfig)}

# (variable, section, option)
_ENV_OVERRIDES: tuple[tuple[str, str, str], ...] = (
    ("CTXLOAD_MAX_TOKENS", "context", "max_tokens"),
    ("CTXLOAD_TOKENIZER_MODEL", "tokenizer", "model"),
    ("CTXLOAD_NAMING_MODEL", "naming", "model"),
)

# (section, option, smallest allowed value)
_LOWER_BOUNDS: tuple[tuple[str, str, float], ...] = (
    ("context", "max_tokens", 1),
    ("context", "url_name_length", 3),
    ("naming", "max_length", 1),
    ("projects", "descendant_timeout", 0),
    ("fetch", "timeout", 1),
    ("fetch", "max_bytes", 1),
)


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file '{path}' is not valid YAML: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file '{path}' must contain a mapping at the top level.")
    return data


def _walk_keys(data: Any, prefix: str = "") -> Iterator[tuple[str, str]]:
    """Yield (dotted path, key) for every mapping key in *data*."""
    if not isinstance(data, dict):
        return
    for key, value in data.items():
        dotted = f"{prefix}.{key}" if prefix else str(key)
        yield dotted, str(key)
        yield from _walk_keys(value, dotted)


def _reject_secrets(data: dict[str, Any], source: Path) -> None:
    for dotted, key in _walk_keys(data):
        if _SECRET_KEY_RE.search(key):
            env_name = key.upper().replace("-", "_")
            raise ConfigError(
                f"Global config '{source}' contains a forbidden key '{dotted}'.\n"
                f"  Credentials are read from the environment only. Delete the key and run:\n"
                f"    export {env_name}=<value>"
            )


def _warn_unknown(data: dict[str, Any], source: Path) -> None:
    for key, value in data.items():
        if key not in _SECTIONS:
            warnings.warn(f"{source}: unknown section '{key}' is ignored.", UserWarning, stacklevel=3)
            continue
        if isinstance(value, dict):
            known = {f.name for f in fields(_SECTIONS[key])}
            for option in value.keys() - known:
                warnings.warn(
                    f"{source}: unknown option '{key}.{option}' is ignored.",
                    UserWarning,
                    stacklevel=3,
                )


def _overlay(merged: dict[str, Any], layer: dict[str, Any]) -> None:
    """Merge *layer* into *merged* one section at a time."""
    for key, value in layer.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value


def _coerce(raw: Any, default: Any, where: str) -> Any:
    try:
        return type(default)(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid config value for {where}: {raw!r} ({exc})") from exc


def _build(merged: dict[str, Any]) -> CtxloadConfig:
    cfg = CtxloadConfig()
    for name, section_cls in _SECTIONS.items():
        raw = merged.get(name)
        if raw is None:
            continue
        if not isinstance(raw, dict):
            raise ConfigError(f"Invalid config value for '{name}': expected a mapping, got {raw!r}")
        defaults = getattr(cfg, name)
        values = {
            f.name: _coerce(raw[f.name], getattr(defaults, f.name), f"{name}.{f.name}")
            for f in fields(section_cls)
            if f.name in raw
        }
        setattr(cfg, name, replace(defaults, **values))
    return cfg


def _apply_env(cfg: CtxloadConfig) -> None:
    for var, section, option in _ENV_OVERRIDES:
        raw = os.environ.get(var)
        if not raw:
            continue
        target = getattr(cfg, section)
        current = getattr(target, option)
        try:
            setattr(target, option, type(current)(raw))
        except ValueError as exc:
            raise ConfigError(
                f"{var} must be {type(current).__name__}, got '{raw}'"
            ) from exc


def _check_bounds(cfg: CtxloadConfig) -> None:
    for section, option, minimum in _LOWER_BOUNDS:
        value = getattr(getattr(cfg, section), option)
        if value < minimum:
            raise ConfigError(f"{section}.{option} must be >= {minimum}, got {value}")


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> CtxloadConfig:
    """Load the merged configuration for a project.

    Args:
        project_dir: Marker directory holding the per-project *config.yaml*.
            Skipped if None.
        global_config_path: The global config file. Skipped if None or missing.

    Raises:
        ConfigError: A file is not valid YAML, the global file names a
            credential, or a value has the wrong type or is out of range.
    """
    merged: dict[str, Any] = {}

    if global_config_path is not None and global_config_path.exists():
        layer = _read_yaml(global_config_path)
        _reject_secrets(layer, global_config_path)
        _warn_unknown(layer, global_config_path)
        _overlay(merged, layer)

    if project_dir is not None and (project_dir / CONFIG_NAME).exists():
        path = project_dir / CONFIG_NAME
        layer = _read_yaml(path)
        _warn_unknown(layer, path)
        _overlay(merged, layer)

    cfg = _build(merged)
    _apply_env(cfg)
    _check_bounds(cfg)
    return cfg


_GLOBAL_TEMPLATE = """\
# ctxload global configuration (model defaults only).
# Credentials are never read from this file. Export them instead, e.g.
#   export OPENAI_API_KEY=sk-...

context:
  max_tokens: 128000

tokenizer:
  model: openai/gpt-4o
"""


def ensure_global_config(global_config_path: Path) -> Path:
    """Write the default global config unless one exists; return its path.

    The directory is created owner-only (0o700) and the file is 0o600.
    """
    global_config_path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    if not global_config_path.exists():
        global_config_path.write_text(_GLOBAL_TEMPLATE, encoding="utf-8")
        global_config_path.chmod(0o600)
    return global_config_path
