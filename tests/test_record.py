"""Tests for the Record Parser.

Covers: version parsing, Cargo requirement grammar, full record decoding,
optional-field defaults, renamed dependencies, features2 merging, and every
ParseError path.
"""

import json

import pytest
import semver

from revdeps.errors import ParseError
from revdeps.record import (
    KIND_BUILD,
    KIND_DEV,
    KIND_NORMAL,
    Comparator,
    Dependency,
    PackageVersionRecord,
    parse_record,
    parse_requirement,
    parse_version,
)


def _line(**overrides):
    obj = {
        "name": "foo",
        "vers": "1.2.3",
        "deps": [],
        "cksum": "abc123",
        "features": {},
        "yanked": False,
    }
    obj.update(overrides)
    return json.dumps(obj)


# ── Versions ──


class TestParseVersion:
    def test_release(self):
        assert parse_version("1.2.3") == semver.Version(1, 2, 3)

    def test_prerelease_and_build(self):
        v = parse_version("1.0.0-alpha.1+build.5")
        assert v.prerelease == "alpha.1"
        assert v.build == "build.5"

    def test_partial_version_rejected(self):
        with pytest.raises(ParseError, match="invalid version"):
            parse_version("1.0")

    def test_leading_zero_rejected(self):
        with pytest.raises(ParseError):
            parse_version("01.0.0")

    def test_garbage_rejected(self):
        with pytest.raises(ParseError):
            parse_version("latest")

    def test_non_string_rejected(self):
        with pytest.raises(ParseError, match="must be a string"):
            parse_version(100)

    def test_prerelease_orders_below_release(self):
        assert parse_version("1.0.0-rc.1") < parse_version("1.0.0")

    def test_build_metadata_ignored_for_ordering(self):
        assert not parse_version("1.0.0+a") < parse_version("1.0.0+b")
        assert not parse_version("1.0.0+b") < parse_version("1.0.0+a")


# ── Requirements ──


class TestParseRequirement:
    def test_caret(self):
        req = parse_requirement("^1.2")
        assert req.comparators == (Comparator("^", 1, 2, None),)

    def test_bare_version_is_caret(self):
        req = parse_requirement("0.3.1")
        assert req.comparators == (Comparator("^", 0, 3, 1),)

    def test_range(self):
        req = parse_requirement(">=0.5, <2.0")
        assert [c.op for c in req.comparators] == [">=", "<"]
        assert req.comparators[1] == Comparator("<", 2, 0, None)

    def test_space_after_operator(self):
        req = parse_requirement(">= 0.2.0")
        assert req.comparators == (Comparator(">=", 0, 2, 0),)

    def test_tilde(self):
        assert parse_requirement("~1").comparators[0].op == "~"

    def test_exact_with_prerelease(self):
        req = parse_requirement("=1.0.0-beta.2")
        assert req.comparators == (Comparator("=", 1, 0, 0, "beta.2"),)

    def test_star(self):
        req = parse_requirement("*")
        assert req.comparators == (Comparator("*"),)

    def test_minor_wildcard(self):
        req = parse_requirement("1.2.*")
        assert req.comparators == (Comparator("^", 1, 2, None),)

    def test_x_wildcard(self):
        assert parse_requirement("1.x").comparators[0].minor is None

    def test_raw_preserved(self):
        assert str(parse_requirement(">=0.5, <2.0")) == ">=0.5, <2.0"

    @pytest.mark.parametrize("text", [
        "",
        "   ",
        "abc",
        "^1.2.3.4",
        ">=1.0,",
        "1.*.3",
        "01.2",
        "1.2.3-",
        "1.2.3-beta..1",
        "=>1.0",
        "^1.0 || ^2.0",
    ])
    def test_invalid(self, text):
        with pytest.raises(ParseError):
            parse_requirement(text)

    def test_non_string(self):
        with pytest.raises(ParseError, match="must be a string"):
            parse_requirement(None)


# ── Records ──


class TestParseRecord:
    def test_minimal_record(self):
        record = parse_record(_line())
        assert isinstance(record, PackageVersionRecord)
        assert record.name == "foo"
        assert record.vers == semver.Version(1, 2, 3)
        assert record.deps == []
        assert record.cksum == "abc123"
        assert record.yanked is False
        assert record.links is None

    def test_full_dependency(self):
        record = parse_record(_line(deps=[{
            "name": "serde",
            "req": "^1.0",
            "features": ["derive"],
            "optional": True,
            "default_features": False,
            "target": "cfg(unix)",
            "kind": "normal",
        }]))
        dep = record.deps[0]
        assert isinstance(dep, Dependency)
        assert dep.name == "serde"
        assert str(dep.req) == "^1.0"
        assert dep.features == ["derive"]
        assert dep.optional is True
        assert dep.default_features is False
        assert dep.target == "cfg(unix)"
        assert dep.kind == KIND_NORMAL

    def test_dependency_defaults(self):
        record = parse_record(_line(deps=[{"name": "log", "req": "0.4"}]))
        dep = record.deps[0]
        assert dep.features == []
        assert dep.optional is False
        assert dep.default_features is True
        assert dep.target is None
        assert dep.kind == KIND_NORMAL

    def test_null_kind_is_normal(self):
        record = parse_record(_line(deps=[{"name": "log", "req": "0.4", "kind": None}]))
        assert record.deps[0].kind == KIND_NORMAL

    def test_dev_and_build_kinds(self):
        record = parse_record(_line(deps=[
            {"name": "cc", "req": "1", "kind": "build"},
            {"name": "quickcheck", "req": "1", "kind": "dev"},
        ]))
        assert [d.kind for d in record.deps] == [KIND_BUILD, KIND_DEV]

    def test_dependency_order_preserved(self):
        names = ["c", "a", "b"]
        record = parse_record(_line(deps=[{"name": n, "req": "*"} for n in names]))
        assert [d.name for d in record.deps] == names

    def test_renamed_dependency_targets_real_package(self):
        record = parse_record(_line(deps=[
            {"name": "futures01", "req": "0.1", "package": "futures"},
        ]))
        dep = record.deps[0]
        assert dep.name == "futures01"
        assert dep.target_name == "futures"

    def test_plain_dependency_target_name(self):
        record = parse_record(_line(deps=[{"name": "log", "req": "0.4"}]))
        assert record.deps[0].target_name == "log"

    def test_features_and_features2_merged(self):
        record = parse_record(_line(
            features={"default": ["std"], "std": []},
            features2={"serde": ["dep:serde"]},
        ))
        assert record.features == {
            "default": ["std"],
            "std": [],
            "serde": ["dep:serde"],
        }

    def test_missing_features_and_yanked_default(self):
        obj = json.loads(_line())
        del obj["features"]
        del obj["yanked"]
        record = parse_record(json.dumps(obj))
        assert record.features == {}
        assert record.yanked is False

    def test_yanked_and_links(self):
        record = parse_record(_line(yanked=True, links="ssl"))
        assert record.yanked is True
        assert record.links == "ssl"

    def test_unknown_fields_ignored(self):
        record = parse_record(_line(v=2, rust_version="1.60"))
        assert record.name == "foo"


class TestParseRecordErrors:
    def test_malformed_json(self):
        with pytest.raises(ParseError, match="malformed JSON"):
            parse_record('{"name": "foo",')

    def test_not_an_object(self):
        with pytest.raises(ParseError, match="JSON object"):
            parse_record("[1, 2]")

    @pytest.mark.parametrize("field", ["name", "vers", "deps", "cksum"])
    def test_missing_required_field(self, field):
        obj = json.loads(_line())
        del obj[field]
        with pytest.raises(ParseError, match=field):
            parse_record(json.dumps(obj))

    def test_empty_name(self):
        with pytest.raises(ParseError, match="empty name"):
            parse_record(_line(name=""))

    def test_wrong_type(self):
        with pytest.raises(ParseError, match="'deps' must be list"):
            parse_record(_line(deps={}))

    def test_yanked_must_be_bool(self):
        with pytest.raises(ParseError, match="yanked"):
            parse_record(_line(yanked="no"))

    def test_invalid_version(self):
        with pytest.raises(ParseError, match="invalid version"):
            parse_record(_line(vers="1.0"))

    def test_invalid_requirement(self):
        with pytest.raises(ParseError, match="invalid requirement"):
            parse_record(_line(deps=[{"name": "log", "req": "not-a-req"}]))

    def test_unknown_kind(self):
        with pytest.raises(ParseError, match="unknown kind"):
            parse_record(_line(deps=[{"name": "log", "req": "1", "kind": "peer"}]))

    def test_dependency_not_object(self):
        with pytest.raises(ParseError, match="dependency must be an object"):
            parse_record(_line(deps=["log"]))

    def test_dependency_features_must_be_strings(self):
        with pytest.raises(ParseError, match="only strings"):
            parse_record(_line(deps=[{"name": "log", "req": "1", "features": [1]}]))

    def test_feature_table_values_must_be_lists(self):
        with pytest.raises(ParseError, match="must map to a list"):
            parse_record(_line(features={"default": "std"}))

    def test_parse_error_has_no_location(self):
        with pytest.raises(ParseError) as excinfo:
            parse_record("nope")
        assert excinfo.value.source is None
        assert excinfo.value.lineno is None
