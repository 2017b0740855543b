"""Tests for run configuration and index-location resolution."""

from pathlib import Path

import pytest

from revdeps.config import (
    INDEX_DIR,
    RunConfig,
    cargo_home,
    default_index_path,
    resolve_index_path,
)
from revdeps.errors import ConfigurationError
from revdeps.graph import EdgeFilter
from revdeps.report import MODE_MILESTONES


class TestCargoHome:
    def test_env_var_wins(self, tmp_path):
        home = cargo_home(environ={"CARGO_HOME": "/opt/cargo"}, cwd=tmp_path, home=tmp_path)
        assert home == Path("/opt/cargo")

    def test_relative_env_var_resolved_against_cwd(self, tmp_path):
        home = cargo_home(environ={"CARGO_HOME": "cargo"}, cwd=tmp_path, home=Path("/h"))
        assert home == tmp_path / "cargo"

    def test_falls_back_to_home(self):
        assert cargo_home(environ={}, home=Path("/home/u")) == Path("/home/u/.cargo")

    @pytest.mark.parametrize("value", ["", "   ", "/home/u/.multirust/cargo"])
    def test_ignored_env_values(self, value):
        home = cargo_home(environ={"CARGO_HOME": value}, home=Path("/home/u"))
        assert home == Path("/home/u/.cargo")

    def test_default_index_path(self):
        path = default_index_path(environ={}, home=Path("/home/u"))
        assert path == Path("/home/u/.cargo/registry/index") / INDEX_DIR


class TestResolveIndexPath:
    def test_explicit(self, tmp_path):
        assert resolve_index_path(tmp_path) == tmp_path

    def test_explicit_missing(self, tmp_path):
        with pytest.raises(ConfigurationError, match="does not exist"):
            resolve_index_path(tmp_path / "nope")

    def test_explicit_file(self, tmp_path):
        f = tmp_path / "file.txt"
        f.write_text("x")
        with pytest.raises(ConfigurationError, match="not a directory"):
            resolve_index_path(f)

    def test_default_from_cargo_home(self, tmp_path):
        index = tmp_path / "registry" / "index" / INDEX_DIR
        index.mkdir(parents=True)
        path = resolve_index_path(None, environ={"CARGO_HOME": str(tmp_path)})
        assert path == index

    def test_default_missing(self, tmp_path):
        with pytest.raises(ConfigurationError, match="does not exist"):
            resolve_index_path(None, environ={}, home=tmp_path)


class TestRunConfig:
    def test_defaults(self, tmp_path):
        config = RunConfig(index_path=tmp_path, mode=MODE_MILESTONES)
        assert config.edge_filter == EdgeFilter()
        assert config.workers == 1
        assert config.json_output is False

    def test_unknown_mode(self, tmp_path):
        with pytest.raises(ConfigurationError, match="unknown query mode"):
            RunConfig(index_path=tmp_path, mode="everything")

    def test_bad_workers(self, tmp_path):
        with pytest.raises(ConfigurationError, match="workers"):
            RunConfig(index_path=tmp_path, mode=MODE_MILESTONES, workers=0)
