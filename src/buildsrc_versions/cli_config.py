"""
Configuration management for buildsrc-versions.

Settings come from a config file (JSON, YAML or TOML), then environment
variables, then command-line options. The naming section is turned into an
immutable NamingOptions value before it reaches the resolver.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import toml
import yaml
from rich.console import Console

from .grouping import OrderBy
from .naming import MEANINGLESS_NAMES, NamingOptions
from .renderer import RenderOptions
from .virtual_groups import DEFAULT_VIRTUAL_GROUPS, VirtualGroupRegistry

console = Console(stderr=True)

CONFIG_FILE_NAMES = (
    ".buildsrc-versions.json",
    ".buildsrc-versions.yaml",
    ".buildsrc-versions.yml",
    ".buildsrc-versions.toml",
)
ENV_PREFIX = "BUILDSRC_VERSIONS_"


@dataclass
class NamingConfig:
    """Naming and grouping configuration."""

    use_fqdn_for: List[str] = field(default_factory=list)
    meaningless_names: List[str] = field(
        default_factory=lambda: list(MEANINGLESS_NAMES)
    )
    virtual_groups: List[Any] = field(
        default_factory=lambda: list(DEFAULT_VIRTUAL_GROUPS)
    )
    reject_non_stable: bool = False

    def to_options(self, extra_use_fqdn_for: Optional[List[str]] = None) -> NamingOptions:
        """Freeze this section into the options consumed by the resolver."""
        use_fqdn_for = list(self.use_fqdn_for) + list(extra_use_fqdn_for or [])
        return NamingOptions(
            use_fqdn_for=tuple(dict.fromkeys(use_fqdn_for)),
            meaningless_names=tuple(self.meaningless_names),
            virtual_groups=VirtualGroupRegistry.from_config(self.virtual_groups),
            reject_non_stable=self.reject_non_stable,
        )


@dataclass
class OutputConfig:
    """Generated output configuration."""

    libs_name: str = "Libs"
    versions_name: str = "Versions"
    indent: str = "    "
    output_dir: str = "buildSrc/src/main/kotlin"
    properties_file: str = "gradle.properties"
    report_path: str = "build/dependencyUpdates/report.json"
    order_by: str = OrderBy.GROUP_AND_LENGTH.value

    def to_render_options(self) -> RenderOptions:
        return RenderOptions(
            libs_name=self.libs_name,
            versions_name=self.versions_name,
            indent=self.indent,
            order_by=OrderBy(self.order_by),
        )


@dataclass
class LoggingConfig:
    """Logging configuration."""

    log_level: str = "WARNING"


@dataclass
class ComprehensiveConfig:
    """Main configuration containing all subsections."""

    naming: NamingConfig = field(default_factory=NamingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


_global_config: Optional[ComprehensiveConfig] = None

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def validate_config_values(config: ComprehensiveConfig) -> List[str]:
    """
    Validate configuration values and return any errors.

    Returns:
        List[str]: List of validation errors (empty if valid)
    """
    errors = []

    for name in ("libs_name", "versions_name"):
        value = getattr(config.output, name)
        if not value or not value.isidentifier():
            errors.append(f"output.{name} must be a valid identifier")
    if config.output.libs_name == config.output.versions_name:
        errors.append("output.libs_name and output.versions_name must differ")
    if config.output.indent.strip():
        errors.append("output.indent must only contain spaces or tabs")
    if config.output.order_by not in {o.value for o in OrderBy}:
        errors.append(
            f"output.order_by must be one of {', '.join(o.value for o in OrderBy)}"
        )

    if not all(isinstance(n, str) and n for n in config.naming.use_fqdn_for):
        errors.append("naming.use_fqdn_for must be a list of non-empty strings")
    if not all(isinstance(n, str) and n for n in config.naming.meaningless_names):
        errors.append("naming.meaningless_names must be a list of non-empty strings")
    if not isinstance(config.naming.reject_non_stable, bool):
        errors.append("naming.reject_non_stable must be true or false")
    try:
        VirtualGroupRegistry.from_config(config.naming.virtual_groups)
    except (ValueError, KeyError, TypeError) as e:
        errors.append(f"naming.virtual_groups is invalid: {e}")

    if config.logging.log_level.upper() not in _VALID_LOG_LEVELS:
        errors.append(
            f"logging.log_level must be one of {', '.join(sorted(_VALID_LOG_LEVELS))}"
        )

    return errors


def load_config_file(config_path: Path) -> Optional[Dict[str, Any]]:
    """Load config from a JSON, YAML or TOML file."""
    if not config_path.exists():
        return None

    try:
        with open(config_path, encoding="utf-8") as f:
            suffix = config_path.suffix.lower()
            if suffix in [".yaml", ".yml"]:
                return yaml.safe_load(f)
            elif suffix == ".toml":
                return toml.load(f)
            elif suffix == ".json":
                return json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        console.print(f"⚠️  Error loading config from {config_path}: {e}", style="yellow")

    return None


def find_config_file() -> Optional[Path]:
    """Find config file in standard locations."""
    locations = [Path.cwd() / name for name in CONFIG_FILE_NAMES] + [
        Path.home() / ".config" / "buildsrc-versions" / "config.json",
        Path.home() / ".config" / "buildsrc-versions" / "config.yaml",
        Path.home() / ".config" / "buildsrc-versions" / "config.toml",
    ]

    for location in locations:
        if location.exists():
            return location

    return None


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def load_environment_overrides(config: ComprehensiveConfig) -> None:
    """Apply BUILDSRC_VERSIONS_* environment variables."""

    def get_env_bool(key: str, default: bool = False) -> bool:
        value = os.environ.get(key, "").lower()
        return value in ["true", "1", "yes", "on"] if value else default

    if use_fqdn := os.environ.get(f"{ENV_PREFIX}USE_FQDN_FOR"):
        config.naming.use_fqdn_for = _split_list(use_fqdn)
    if virtual_groups := os.environ.get(f"{ENV_PREFIX}VIRTUAL_GROUPS"):
        config.naming.virtual_groups = _split_list(virtual_groups)

    if libs_name := os.environ.get(f"{ENV_PREFIX}LIBS_NAME"):
        config.output.libs_name = libs_name
    if versions_name := os.environ.get(f"{ENV_PREFIX}VERSIONS_NAME"):
        config.output.versions_name = versions_name
    if output_dir := os.environ.get(f"{ENV_PREFIX}OUTPUT_DIR"):
        config.output.output_dir = output_dir
    if properties_file := os.environ.get(f"{ENV_PREFIX}PROPERTIES_FILE"):
        config.output.properties_file = properties_file
    if order_by := os.environ.get(f"{ENV_PREFIX}ORDER_BY"):
        config.output.order_by = order_by.upper()
    config.naming.reject_non_stable = get_env_bool(
        f"{ENV_PREFIX}REJECT_NON_STABLE", config.naming.reject_non_stable
    )

    if log_level := os.environ.get(f"{ENV_PREFIX}LOG_LEVEL"):
        config.logging.log_level = log_level.upper()


def apply_config_section(
    config: Any, section_data: Dict[str, Any], section_name: str
) -> None:
    """Apply configuration from dictionary to config section."""
    for key, value in section_data.items():
        if hasattr(config, key):
            setattr(config, key, value)
        else:
            console.print(
                f"⚠️  Unknown config key in {section_name}: {key}", style="yellow"
            )


def build_config(file_config: Optional[Dict[str, Any]] = None) -> ComprehensiveConfig:
    """Build a configuration from decoded file data plus environment overrides."""
    config = ComprehensiveConfig()

    if file_config:
        for section in ("naming", "output", "logging"):
            if isinstance(file_config.get(section), dict):
                apply_config_section(
                    getattr(config, section), file_config[section], section
                )

    load_environment_overrides(config)
    return config


def load_config(config_path: Optional[Path] = None) -> ComprehensiveConfig:
    """Load configuration from file and environment, falling back on defaults when invalid."""
    global _global_config

    if _global_config is not None and config_path is None:
        return _global_config

    config_file = config_path or find_config_file()
    file_config = load_config_file(config_file) if config_file else None
    config = build_config(file_config)

    validation_errors = validate_config_values(config)
    if validation_errors:
        console.print("⚠️  Configuration validation errors:", style="red")
        for error in validation_errors:
            console.print(f"  • {error}", style="red")
        console.print("Using default values.", style="yellow")
        config = ComprehensiveConfig()

    _global_config = config
    return config


def get_config() -> ComprehensiveConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = load_config()
    return _global_config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _global_config
    _global_config = None


def create_sample_config() -> str:
    """Generate a sample configuration file."""
    sample_config = {
        "naming": {
            "use_fqdn_for": [],
            "meaningless_names": list(MEANINGLESS_NAMES),
            "virtual_groups": list(DEFAULT_VIRTUAL_GROUPS),
            "reject_non_stable": False,
        },
        "output": {
            "libs_name": "Libs",
            "versions_name": "Versions",
            "indent": "    ",
            "output_dir": "buildSrc/src/main/kotlin",
            "properties_file": "gradle.properties",
            "report_path": "build/dependencyUpdates/report.json",
            "order_by": OrderBy.GROUP_AND_LENGTH.value,
        },
        "logging": {
            "log_level": "WARNING",
        },
    }

    return json.dumps(sample_config, indent=2)
