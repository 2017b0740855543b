"""Shared test fixtures for revdeps tests."""

import json
import sys
from pathlib import Path

import pytest

# Add src to path so tests can import revdeps
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


def _dep(name, req="^1", kind=None, optional=False, package=None, target=None):
    dep = {
        "name": name,
        "req": req,
        "features": [],
        "optional": optional,
        "default_features": True,
        "target": target,
        "kind": kind,
    }
    if package is not None:
        dep["package"] = package
    return dep


@pytest.fixture
def dep():
    """Factory for a dependency object as it appears in an index line."""
    return _dep


@pytest.fixture
def record_line():
    """Factory for one index line (JSON text)."""

    def _make(name, vers, deps=(), yanked=False, features=None):
        deps = [d if isinstance(d, dict) else _dep(d) for d in deps]
        return json.dumps({
            "name": name,
            "vers": vers,
            "deps": deps,
            "cksum": "0" * 64,
            "features": features or {},
            "yanked": yanked,
        })

    return _make


@pytest.fixture
def write_index(tmp_path, record_line):
    """Factory that lays out an index tree under tmp_path.

    ``packages`` maps a package name to a list of ``(version, deps)`` tuples.
    Files go under a crates.io-like prefix directory, and a ``config.json``
    plus a ``.git`` directory are added to make sure they get skipped.
    """

    def _make(packages):
        root = tmp_path / "index"
        root.mkdir(exist_ok=True)
        (root / "config.json").write_text('{"dl": "https://example.invalid"}\n')
        git = root / ".git"
        git.mkdir(exist_ok=True)
        (git / "HEAD").write_text("ref: refs/heads/master\n")
        for name, versions in packages.items():
            prefix = root / name[:2] / name[2:4]
            prefix.mkdir(parents=True, exist_ok=True)
            lines = [record_line(name, vers, deps) for vers, deps in versions]
            (prefix / name).write_text("\n".join(lines) + "\n")
        return root

    return _make


@pytest.fixture
def scenario_index(write_index):
    """bar 0.5.0; foo 1.0.0 -> bar; baz 2.0.0 -> foo."""
    return write_index({
        "bar": [("0.5.0", [])],
        "foo": [("1.0.0", ["bar"])],
        "baz": [("2.0.0", ["foo"])],
    })
