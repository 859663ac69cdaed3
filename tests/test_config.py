"""
Tests for kernel configuration and operation execution.
"""

import logging
from pathlib import Path

import pytest

from colony_kernel.config import ConfigError, KernelConfig
from colony_kernel.operations import execute_operations


class TestKernelConfig:
    """Test configuration loading."""

    def test_defaults(self):
        config = KernelConfig()
        assert config.cloner.min_clone_energy == 100
        assert config.cloner.max_worker_energy == 1500
        assert config.cloner.max_workers == 8
        assert config.cloner.max_heavy_workers == 4
        assert config.business.ideal_clone_energy == 1000
        assert config.business.max_clone_energy == 2000
        assert config.business.hostile_radius == 5

    def test_from_yaml_partial(self, tmp_path):
        path = tmp_path / "kernel.yaml"
        path.write_text(
            "cloner:\n"
            "  max_workers: 12\n"
            "kernel:\n"
            "  snapshot_dir: ~/colony-test\n"
        )

        config = KernelConfig.from_yaml(path)

        assert config.cloner.max_workers == 12
        assert config.cloner.min_clone_energy == 100
        assert config.kernel.snapshot_dir == Path.home() / "colony-test"

    def test_healthy_population_follows_cloner_ceiling(self):
        config = KernelConfig.from_dict({"cloner": {"max_workers": 12}})
        assert config.business.healthy_population == 12

        config = KernelConfig.from_dict({
            "cloner": {"max_workers": 12},
            "business": {"healthy_population": 6},
        })
        assert config.business.healthy_population == 6

    def test_empty_file(self, tmp_path):
        path = tmp_path / "kernel.yaml"
        path.write_text("")
        assert KernelConfig.from_yaml(path) == KernelConfig()

    def test_unknown_keys_warn(self, caplog):
        with caplog.at_level(logging.WARNING, logger="colony_kernel.config"):
            config = KernelConfig.from_dict({"cloner": {"max_wrokers": 3}, "extra": {}})
        assert config.cloner.max_workers == 8
        assert len(caplog.records) == 2

    def test_bad_section(self):
        with pytest.raises(ConfigError):
            KernelConfig.from_dict({"business": [1, 2]})

    def test_bad_top_level(self, tmp_path):
        path = tmp_path / "kernel.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigError):
            KernelConfig.from_yaml(path)


class TestExecuteOperations:
    """Test independent operation execution."""

    def test_failure_does_not_stop_others(self, caplog):
        ran = []

        def first():
            ran.append("first")

        def broken():
            raise RuntimeError("boom")

        def last():
            ran.append("last")

        with caplog.at_level(logging.ERROR, logger="colony_kernel.operations"):
            succeeded, failed = execute_operations([first, broken, last])

        assert ran == ["first", "last"]
        assert (succeeded, failed) == (2, 1)
        assert any("broken" in r.message for r in caplog.records)
