"""
Property-based tests for ProjScanConfig serialization and loading.

Configuration written with save() must load back unchanged, and
environment overrides must take precedence over file values.
"""

import tempfile
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from projscan.core.config import (
    AnalysisConfig,
    LoggingConfig,
    ProjectsConfig,
    ProjScanConfig,
    ReportConfig,
    ScanConfig,
    ServerConfig,
    load_config,
)
from projscan.core.errors import ConfigurationMissingError

# Strategies for generating valid configuration values
safe_text = st.text(
    alphabet=st.characters(
        whitelist_categories=("L", "N", "P", "S"),
        blacklist_characters="\x00\n\r\t",
    ),
    min_size=1,
    max_size=50,
).filter(lambda s: s.strip() != "")

extension = st.from_regex(r"[a-z]{1,5}", fullmatch=True)

ignore_pattern = st.from_regex(r"[a-zA-Z0-9_\-\.]+/?", fullmatch=True)

log_level = st.sampled_from(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])


@st.composite
def scan_config_strategy(draw):
    """Generate valid ScanConfig instances."""
    return ScanConfig(
        ignore_patterns=draw(st.lists(ignore_pattern, max_size=10)),
        countable_extensions=draw(st.lists(extension, min_size=1, max_size=5)),
    )


@st.composite
def analysis_config_strategy(draw):
    """Generate valid AnalysisConfig instances."""
    return AnalysisConfig(
        rules_file=draw(st.one_of(st.just(""), safe_text)),
        max_workers=draw(st.integers(min_value=1, max_value=64)),
        snippet_length=draw(st.integers(min_value=10, max_value=1000)),
        max_file_size_bytes=draw(st.integers(min_value=1, max_value=100 * 1024 * 1024)),
        quality_extensions=draw(st.lists(extension, min_size=1, max_size=3)),
        logger_patterns=draw(st.lists(safe_text, max_size=3)),
        logger_expected_patterns=draw(st.lists(safe_text, max_size=3)),
    )


@st.composite
def report_config_strategy(draw):
    """Generate valid ReportConfig instances."""
    return ReportConfig(
        important_files=draw(st.lists(safe_text, max_size=5)),
        legacy_list_limit=draw(st.integers(min_value=0, max_value=100)),
        default_format=draw(st.sampled_from(["text", "json", "yaml", "context"])),
    )


@st.composite
def server_config_strategy(draw):
    """Generate valid ServerConfig instances."""
    return ServerConfig(
        host=draw(st.sampled_from(["127.0.0.1", "0.0.0.0", "localhost"])),
        port=draw(st.integers(min_value=1, max_value=65535)),
        max_view_bytes=draw(st.integers(min_value=1, max_value=10 * 1024 * 1024)),
    )


@st.composite
def projscan_config_strategy(draw):
    """Generate valid ProjScanConfig instances."""
    return ProjScanConfig(
        scan=draw(scan_config_strategy()),
        analysis=draw(analysis_config_strategy()),
        report=draw(report_config_strategy()),
        projects=ProjectsConfig(projects_root=draw(st.one_of(st.just(""), safe_text))),
        server=draw(server_config_strategy()),
        logging=LoggingConfig(level=draw(log_level)),
    )


@given(config=projscan_config_strategy())
@settings(max_examples=100)
def test_config_yaml_round_trip(config: ProjScanConfig):
    """Saving to YAML and loading back yields an equal configuration."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "config.yaml"
        config.save(path)
        loaded = ProjScanConfig.from_file(path)

    assert loaded == config


@given(config=projscan_config_strategy())
@settings(max_examples=100)
def test_config_json_round_trip(config: ProjScanConfig):
    """Saving to JSON and loading back yields an equal configuration."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "config.json"
        config.save(path)
        loaded = ProjScanConfig.from_file(path)

    assert loaded == config


@given(config=projscan_config_strategy())
@settings(max_examples=50)
def test_to_dict_has_every_section(config: ProjScanConfig):
    """to_dict() exposes all configuration sections."""
    data = config.to_dict()
    assert set(data) == {"scan", "analysis", "report", "projects", "server", "logging"}
    assert data["analysis"]["max_workers"] == config.analysis.max_workers


class TestConfigLoading:
    """Tests for file loading, validation and environment overrides."""

    def test_defaults_come_from_defaults_yaml(self):
        config = ProjScanConfig()
        assert "vendor/" in config.scan.ignore_patterns
        assert "README.md" in config.report.important_files
        assert config.server.max_view_bytes == 2 * 1024 * 1024
        assert config.report.default_format == "text"

    def test_default_lists_are_not_shared(self):
        first = ProjScanConfig()
        second = ProjScanConfig()
        first.scan.ignore_patterns.append("build/")
        assert "build/" not in second.scan.ignore_patterns

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ConfigurationMissingError):
            ProjScanConfig.from_file(tmp_path / "missing.yaml")

    def test_unsupported_suffix_raises(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("x = 1", encoding="utf-8")
        with pytest.raises(ValueError, match="Unsupported"):
            ProjScanConfig.from_file(path)

    def test_partial_file_keeps_other_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("analysis:\n  max_workers: 2\n", encoding="utf-8")
        config = ProjScanConfig.from_file(path)
        assert config.analysis.max_workers == 2
        assert config.analysis.snippet_length == 200
        assert "vendor/" in config.scan.ignore_patterns

    def test_unknown_key_is_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("scan:\n  bogus: 1\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid keys"):
            ProjScanConfig.from_file(path)

    def test_out_of_range_value_is_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("analysis:\n  max_workers: 0\n", encoding="utf-8")
        with pytest.raises(ValueError, match="max_workers"):
            ProjScanConfig.from_file(path)

    def test_unknown_log_level_is_rejected(self):
        config = ProjScanConfig()
        config.logging.level = "LOUD"
        with pytest.raises(ValueError, match="logging level"):
            config.validate()

    @pytest.mark.parametrize("key", ["logger_patterns", "logger_expected_patterns"])
    def test_invalid_logger_regex_is_rejected(self, tmp_path, key):
        path = tmp_path / "config.yaml"
        path.write_text(f"analysis:\n  {key}: ['(unclosed']\n", encoding="utf-8")
        with pytest.raises(ValueError, match=f"analysis.{key}"):
            ProjScanConfig.from_file(path)

    def test_env_overrides_file_values(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("analysis:\n  max_workers: 2\n", encoding="utf-8")
        monkeypatch.setenv("PROJSCAN_ANALYSIS_MAX_WORKERS", "8")
        monkeypatch.setenv("PROJSCAN_SCAN_IGNORE_PATTERNS", "build/, dist/ ,")
        monkeypatch.setenv("PROJSCAN_PROJECTS_PROJECTS_ROOT", "/srv/projects")

        config = load_config(path)

        assert config.analysis.max_workers == 8
        assert config.scan.ignore_patterns == ["build/", "dist/"]
        assert config.projects.projects_root == "/srv/projects"

    def test_env_overrides_can_be_disabled(self, monkeypatch):
        monkeypatch.setenv("PROJSCAN_SERVER_PORT", "9999")
        assert load_config(apply_env=False).server.port == 8765
        assert load_config().server.port == 9999

    def test_invalid_env_value_is_rejected(self, monkeypatch):
        monkeypatch.setenv("PROJSCAN_ANALYSIS_SNIPPET_LENGTH", "3")
        with pytest.raises(ValueError, match="snippet_length"):
            load_config()

    def test_save_leaves_no_temp_files(self, tmp_path):
        path = tmp_path / "nested" / "config.yaml"
        ProjScanConfig().save(path)
        assert [p.name for p in path.parent.iterdir()] == ["config.yaml"]
