"""
marpdeck Configuration
======================

Dataclass configuration for the compilation pipeline, loaded from a YAML
file (``marpdeck.yaml``) with environment variable overrides.

Keys may be written in snake_case or camelCase (``maxAuthors``, ``etAl``),
so configuration files written for other MARP tooling load unchanged.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = ("marpdeck.yaml", "marpdeck.yml", ".marpdeck.yaml")

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"


# =============================================================================
# Configuration Data Classes
# =============================================================================

@dataclass
class TemplatesConfig:
    """Template trees. ``builtin=None`` uses the packaged templates."""
    builtin: Optional[str] = None
    custom: Optional[str] = None        # overrides built-in templates by name


@dataclass
class IconsConfig:
    """Icon registry location (sources, aliases, defaults)."""
    registry: Optional[str] = None


@dataclass
class ReferenceFormatConfig:
    """Inline citation formatting."""
    max_authors: int = 2
    et_al: str = "et al."
    et_al_ja: str = "ほか"
    author_sep: str = ", "
    identifier_sep: str = "; "

    def __post_init__(self):
        if self.max_authors < 1:
            raise ValueError(f"max_authors must be >= 1, got {self.max_authors}")


@dataclass
class ReferencesConfig:
    """Citation handling."""
    enabled: bool = True
    format: ReferenceFormatConfig = field(default_factory=ReferenceFormatConfig)


@dataclass
class OutputConfig:
    """Rendering options."""
    include_theme: bool = True
    max_parallel: int = 1               # concurrent slide transforms (1 = sequential)

    def __post_init__(self):
        self.max_parallel = max(1, self.max_parallel)


@dataclass
class LoggingConfig:
    level: str = "INFO"

    def __post_init__(self):
        valid = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        self.level = self.level.upper()
        if self.level not in valid:
            raise ValueError(f"Invalid log level {self.level!r}, must be one of {valid}")


@dataclass
class DeckConfig:
    """Root configuration container."""
    templates: TemplatesConfig = field(default_factory=TemplatesConfig)
    icons: IconsConfig = field(default_factory=IconsConfig)
    references: ReferencesConfig = field(default_factory=ReferencesConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeckConfig":
        """Build a DeckConfig from a (possibly camelCase) dictionary."""
        data = _snake_keys(data or {})
        config = cls()

        if "templates" in data:
            t = data["templates"] or {}
            config.templates = TemplatesConfig(
                builtin=t.get("builtin", config.templates.builtin),
                custom=t.get("custom", config.templates.custom),
            )

        if "icons" in data:
            i = data["icons"] or {}
            config.icons = IconsConfig(registry=i.get("registry", config.icons.registry))

        if "references" in data:
            r = data["references"] or {}
            fmt = r.get("format") or {}
            defaults = ReferenceFormatConfig()
            config.references = ReferencesConfig(
                enabled=r.get("enabled", True),
                format=ReferenceFormatConfig(
                    max_authors=fmt.get("max_authors", defaults.max_authors),
                    et_al=fmt.get("et_al", defaults.et_al),
                    et_al_ja=fmt.get("et_al_ja", defaults.et_al_ja),
                    author_sep=fmt.get("author_sep", defaults.author_sep),
                    identifier_sep=fmt.get("identifier_sep", defaults.identifier_sep),
                ),
            )

        if "output" in data:
            o = data["output"] or {}
            config.output = OutputConfig(
                include_theme=o.get("include_theme", config.output.include_theme),
                max_parallel=o.get("max_parallel", config.output.max_parallel),
            )

        if "logging" in data:
            log = data["logging"] or {}
            config.logging = LoggingConfig(level=log.get("level", config.logging.level))

        return config


# =============================================================================
# Configuration Loader
# =============================================================================

def find_config_file(start_path: Optional[Path] = None) -> Optional[Path]:
    """Find a marpdeck config file in start_path or its parents."""
    current = Path(start_path or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        for name in CONFIG_FILENAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None


def load_config(config_path: Optional[Path] = None) -> DeckConfig:
    """
    Load configuration from YAML with environment variable overrides.

    Environment variables override config file values:
    - MARPDECK_TEMPLATES_CUSTOM -> templates.custom
    - MARPDECK_REFERENCES_ENABLED -> references.enabled
    - MARPDECK_LOG_LEVEL -> logging.level

    Args:
        config_path: Path to config file (auto-detected if None)

    Returns:
        DeckConfig instance

    Raises:
        ValueError: If the file is not a YAML mapping or holds invalid values
    """
    config = DeckConfig()

    if config_path is None:
        config_path = find_config_file()

    if config_path and Path(config_path).exists():
        logger.info("Loading config from: %s", config_path)
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping")
        config = DeckConfig.from_dict(data)
    else:
        logger.info("No config file found, using defaults")

    return _apply_env_overrides(config)


def _apply_env_overrides(config: DeckConfig) -> DeckConfig:
    if os.environ.get("MARPDECK_TEMPLATES_CUSTOM"):
        config.templates.custom = os.environ["MARPDECK_TEMPLATES_CUSTOM"]

    if os.environ.get("MARPDECK_REFERENCES_ENABLED"):
        value = os.environ["MARPDECK_REFERENCES_ENABLED"].lower()
        config.references.enabled = value in ("1", "true", "yes", "on")

    if os.environ.get("MARPDECK_LOG_LEVEL"):
        config.logging = LoggingConfig(level=os.environ["MARPDECK_LOG_LEVEL"])

    return config


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for command-line and script use."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _snake_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            _CAMEL_RE.sub("_", k).lower() if isinstance(k, str) else k: _snake_keys(v)
            for k, v in value.items()
        }
    return value
