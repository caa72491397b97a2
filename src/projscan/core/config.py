"""
Configuration module for projscan.

Supports loading from YAML/JSON files with environment variable overrides.
Default values are loaded from defaults.yaml for maintainability.
"""

import json
import logging
import os
import re
import tempfile
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from projscan.core.errors import ConfigurationMissingError

logger = logging.getLogger(__name__)

# Path to the default configuration file
_DEFAULTS_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

# Cache for default values
_defaults_cache: dict[str, Any] | None = None


def _load_defaults() -> dict[str, Any]:
    """Load default configuration values from defaults.yaml."""
    global _defaults_cache

    if _defaults_cache is not None:
        return _defaults_cache

    if not _DEFAULTS_CONFIG_PATH.exists():
        logger.warning(f"Defaults config not found: {_DEFAULTS_CONFIG_PATH}")
        _defaults_cache = {}
        return _defaults_cache

    try:
        content = _DEFAULTS_CONFIG_PATH.read_text(encoding="utf-8")
        _defaults_cache = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse defaults config: {e}")
        _defaults_cache = {}

    return _defaults_cache


def _get_default(section: str, key: str, fallback: Any = None) -> Any:
    """Get a default value from the defaults config."""
    defaults = _load_defaults()
    section_defaults = defaults.get(section) or {}
    value = section_defaults.get(key, fallback)
    # Copy lists so instances never share one default object
    if isinstance(value, list):
        return list(value)
    return value


@dataclass
class ScanConfig:
    """Configuration for the directory tree walk."""

    ignore_patterns: list[str] = field(
        default_factory=lambda: _get_default("scan", "ignore_patterns", [])
    )
    countable_extensions: list[str] = field(
        default_factory=lambda: _get_default("scan", "countable_extensions", ["php"])
    )


@dataclass
class AnalysisConfig:
    """Configuration for rule analysis and quality checks."""

    rules_file: str = field(default_factory=lambda: _get_default("analysis", "rules_file", ""))
    max_workers: int = field(default_factory=lambda: _get_default("analysis", "max_workers", 4))
    snippet_length: int = field(
        default_factory=lambda: _get_default("analysis", "snippet_length", 200)
    )
    max_file_size_bytes: int = field(
        default_factory=lambda: _get_default("analysis", "max_file_size_bytes", 10 * 1024 * 1024)
    )
    quality_extensions: list[str] = field(
        default_factory=lambda: _get_default("analysis", "quality_extensions", ["php"])
    )
    logger_patterns: list[str] = field(
        default_factory=lambda: _get_default("analysis", "logger_patterns", [])
    )
    logger_expected_patterns: list[str] = field(
        default_factory=lambda: _get_default("analysis", "logger_expected_patterns", [])
    )


@dataclass
class ReportConfig:
    """Configuration for report aggregation and rendering."""

    important_files: list[str] = field(
        default_factory=lambda: _get_default("report", "important_files", [])
    )
    legacy_list_limit: int = field(
        default_factory=lambda: _get_default("report", "legacy_list_limit", 10)
    )
    default_format: str = field(
        default_factory=lambda: _get_default("report", "default_format", "text")
    )


@dataclass
class ProjectsConfig:
    """Configuration for project discovery."""

    projects_root: str = field(
        default_factory=lambda: _get_default("projects", "projects_root", "")
    )


@dataclass
class ServerConfig:
    """Configuration for the HTTP server."""

    host: str = field(default_factory=lambda: _get_default("server", "host", "127.0.0.1"))
    port: int = field(default_factory=lambda: _get_default("server", "port", 8765))
    max_view_bytes: int = field(
        default_factory=lambda: _get_default("server", "max_view_bytes", 2 * 1024 * 1024)
    )


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = field(default_factory=lambda: _get_default("logging", "level", "INFO"))
    format: str = field(
        default_factory=lambda: _get_default(
            "logging", "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    )


@dataclass
class ProjScanConfig:
    """Main configuration class for projscan."""

    scan: ScanConfig = field(default_factory=ScanConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    projects: ProjectsConfig = field(default_factory=ProjectsConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: Path | str) -> "ProjScanConfig":
        """
        Load configuration from a YAML or JSON file.

        Args:
            path: Path to the configuration file (.yaml, .yml, or .json)

        Returns:
            ProjScanConfig instance with loaded values

        Raises:
            ConfigurationMissingError: If the config file doesn't exist
            ValueError: If the file format is unsupported or malformed
        """
        path = Path(path)
        if not path.exists():
            raise ConfigurationMissingError(f"Configuration file not found: {path}")

        content = path.read_text(encoding="utf-8")

        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(content) or {}
        elif path.suffix == ".json":
            data = json.loads(content) if content.strip() else {}
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")

        if not isinstance(data, dict):
            raise ValueError(f"Invalid config format: expected mapping, got {type(data).__name__}")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "ProjScanConfig":
        """Create ProjScanConfig from a dictionary."""
        config = cls()

        sections = {
            "scan": ScanConfig,
            "analysis": AnalysisConfig,
            "report": ReportConfig,
            "projects": ProjectsConfig,
            "server": ServerConfig,
            "logging": LoggingConfig,
        }
        for name, section_cls in sections.items():
            section_data = data.get(name)
            if section_data is None:
                continue
            try:
                setattr(config, name, section_cls(**section_data))
            except TypeError as e:
                raise ValueError(f"Invalid keys in config section '{name}': {e}") from e

        config.validate()
        return config

    def validate(self) -> None:
        """
        Check value ranges and logger patterns once at load time.

        Raises:
            ValueError: If a value is outside its allowed range or a
                logger pattern is not a valid regular expression
        """
        if self.analysis.max_workers < 1:
            raise ValueError("analysis.max_workers must be at least 1")
        if self.analysis.snippet_length < 10:
            raise ValueError("analysis.snippet_length must be at least 10")
        if self.analysis.max_file_size_bytes < 1:
            raise ValueError("analysis.max_file_size_bytes must be positive")
        if self.report.legacy_list_limit < 0:
            raise ValueError("report.legacy_list_limit must not be negative")
        if not isinstance(logging.getLevelName(self.logging.level.upper()), int):
            raise ValueError(f"Unknown logging level: {self.logging.level}")
        for key in ("logger_patterns", "logger_expected_patterns"):
            for pattern in getattr(self.analysis, key):
                try:
                    re.compile(pattern)
                except re.error as e:
                    raise ValueError(f"Invalid regex in analysis.{key}: {pattern!r} - {e}") from e

    def apply_env_overrides(self) -> "ProjScanConfig":
        """
        Apply environment variable overrides to the configuration.

        Environment variables follow the pattern: PROJSCAN_<SECTION>_<KEY>
        Examples:
            - PROJSCAN_SCAN_IGNORE_PATTERNS (comma separated)
            - PROJSCAN_ANALYSIS_MAX_WORKERS
            - PROJSCAN_PROJECTS_PROJECTS_ROOT
            - PROJSCAN_LOGGING_LEVEL

        Returns:
            Self with environment overrides applied
        """
        env_mappings = {
            # Scan config
            "PROJSCAN_SCAN_IGNORE_PATTERNS": ("scan", "ignore_patterns", _parse_list),
            "PROJSCAN_SCAN_COUNTABLE_EXTENSIONS": ("scan", "countable_extensions", _parse_list),
            # Analysis config
            "PROJSCAN_ANALYSIS_RULES_FILE": ("analysis", "rules_file", str),
            "PROJSCAN_ANALYSIS_MAX_WORKERS": ("analysis", "max_workers", int),
            "PROJSCAN_ANALYSIS_SNIPPET_LENGTH": ("analysis", "snippet_length", int),
            "PROJSCAN_ANALYSIS_MAX_FILE_SIZE_BYTES": ("analysis", "max_file_size_bytes", int),
            "PROJSCAN_ANALYSIS_QUALITY_EXTENSIONS": ("analysis", "quality_extensions", _parse_list),
            # Report config
            "PROJSCAN_REPORT_IMPORTANT_FILES": ("report", "important_files", _parse_list),
            "PROJSCAN_REPORT_LEGACY_LIST_LIMIT": ("report", "legacy_list_limit", int),
            "PROJSCAN_REPORT_DEFAULT_FORMAT": ("report", "default_format", str),
            # Projects config
            "PROJSCAN_PROJECTS_PROJECTS_ROOT": ("projects", "projects_root", str),
            # Server config
            "PROJSCAN_SERVER_HOST": ("server", "host", str),
            "PROJSCAN_SERVER_PORT": ("server", "port", int),
            "PROJSCAN_SERVER_MAX_VIEW_BYTES": ("server", "max_view_bytes", int),
            # Logging config
            "PROJSCAN_LOGGING_LEVEL": ("logging", "level", str),
        }

        for env_var, (section, key, converter) in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                section_obj = getattr(self, section)
                setattr(section_obj, key, converter(value))

        self.validate()
        return self

    def to_dict(self) -> dict:
        """Convert configuration to a dictionary."""
        return asdict(self)

    def to_yaml(self) -> str:
        """Serialize configuration to YAML string."""
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    def to_json(self) -> str:
        """Serialize configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    def save(self, path: Path | str) -> None:
        """
        Save configuration to a file.

        The file is replaced atomically so readers never see a partial write.

        Args:
            path: Path to save the configuration (.yaml, .yml, or .json)

        Raises:
            ValueError: If the file format is unsupported
        """
        path = Path(path)

        if path.suffix in (".yaml", ".yml"):
            content = self.to_yaml()
        elif path.suffix == ".json":
            content = self.to_json()
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")

        path.parent.mkdir(parents=True, exist_ok=True)
        atomic_write_text(path, content)


def atomic_write_text(path: Path, content: str) -> None:
    """Write text to a sibling temp file and move it over the target."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


def _parse_list(value: str) -> list[str]:
    """Parse a comma separated string into a list of non-empty items."""
    return [item.strip() for item in value.split(",") if item.strip()]


def load_config(config_path: Optional[Path | str] = None, apply_env: bool = True) -> ProjScanConfig:
    """
    Load configuration with optional environment variable overrides.

    Args:
        config_path: Optional path to config file. If None, uses defaults.
        apply_env: Whether to apply environment variable overrides.

    Returns:
        ProjScanConfig instance
    """
    if config_path:
        config = ProjScanConfig.from_file(config_path)
    else:
        config = ProjScanConfig()

    if apply_env:
        config.apply_env_overrides()

    return config
