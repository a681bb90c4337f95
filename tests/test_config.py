"""Tests for instrumentation config loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from opmetrics.config import Config, load_config


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_without_file(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("OPMETRICS_DISABLE_SAMPLING", raising=False)
        monkeypatch.delenv("OPMETRICS_SAMPLE_INTERVAL_MS", raising=False)

        config = load_config()

        assert config.sampler.interval_ms == 100.0
        assert config.sampler.enabled is True
        assert config.logging.level == "INFO"
        assert config.logging.json_logs is False
        assert config.logging.log_dir is None

    def test_missing_file_uses_defaults(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("OPMETRICS_SAMPLE_INTERVAL_MS", raising=False)

        config = load_config(tmp_path / "absent.yaml")

        assert config.sampler.interval_ms == 100.0

    def test_reads_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("OPMETRICS_DISABLE_SAMPLING", raising=False)
        monkeypatch.delenv("OPMETRICS_SAMPLE_INTERVAL_MS", raising=False)
        path = tmp_path / "opmetrics.yaml"
        path.write_text(
            "sampler:\n"
            "  interval_ms: 250\n"
            "logging:\n"
            "  level: DEBUG\n"
            "  json_logs: true\n"
            f"  log_dir: {tmp_path / 'logs'}\n",
            encoding="utf-8",
        )

        config = load_config(path)

        assert config.sampler.interval_ms == 250.0
        assert config.sampler.enabled is True
        assert config.logging.level == "DEBUG"
        assert config.logging.json_logs is True
        assert config.logging.log_dir == tmp_path / "logs"

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert isinstance(load_config(path), Config)

    def test_rejects_unknown_keys(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("sampler:\n  period: 5\n", encoding="utf-8")

        with pytest.raises(ValueError):
            load_config(path)

    def test_env_disables_sampling(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPMETRICS_DISABLE_SAMPLING", "1")

        assert load_config().sampler.enabled is False

    def test_env_overrides_interval(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPMETRICS_SAMPLE_INTERVAL_MS", "20")
        path = tmp_path / "opmetrics.yaml"
        path.write_text("sampler:\n  interval_ms: 250\n", encoding="utf-8")

        assert load_config(path).sampler.interval_ms == 20.0

    def test_env_interval_must_be_numeric(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPMETRICS_SAMPLE_INTERVAL_MS", "fast")

        with pytest.raises(ValueError, match="OPMETRICS_SAMPLE_INTERVAL_MS"):
            load_config()
