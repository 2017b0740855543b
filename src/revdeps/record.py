"""Record Parser — decodes one index line into a package-version record.

Each line of a package file is a JSON object describing one published
version: its name, SemVer version, declared dependencies, checksum, feature
table and yanked flag.  Versions must satisfy the SemVer 2.0 grammar and
requirements the Cargo range grammar; anything else is a ``ParseError``.

Pure function of its input. No I/O.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Optional

import semver

from revdeps.errors import ParseError

# ── Constants ──

KIND_NORMAL = "normal"
KIND_BUILD = "build"
KIND_DEV = "dev"
DEPENDENCY_KINDS = frozenset({KIND_NORMAL, KIND_BUILD, KIND_DEV})

REQUIREMENT_OPS = ("=", ">", ">=", "<", "<=", "~", "^")

_WILDCARDS = frozenset({"*", "x", "X"})

# One comparator of a requirement: optional operator, then a (possibly
# partial or wildcarded) version.  Pre-release and build metadata are only
# allowed after a full major.minor.patch triple.
_COMPARATOR_RE = re.compile(
    r"""^\s*
    (?P<op>>=|<=|=|>|<|~|\^)?\s*
    (?P<major>\d+|[*xX])
    (?:\.(?P<minor>\d+|[*xX])
        (?:\.(?P<patch>\d+|[*xX])
            (?:-(?P<pre>[0-9A-Za-z.-]+))?
            (?:\+(?P<build>[0-9A-Za-z.-]+))?
        )?
    )?
    \s*$""",
    re.VERBOSE,
)

_NUMERIC_RE = re.compile(r"^(0|[1-9]\d*)$")
_IDENT_RE = re.compile(r"^[0-9A-Za-z-]+$")


# ── Data Classes ──


@dataclass(frozen=True)
class Comparator:
    """A single comparator inside a version requirement.

    Missing components (``"^1"`` has no minor or patch) and wildcards are both
    stored as ``None``; ``op`` is ``"*"`` for a bare wildcard with no operator.
    """

    op: str
    major: Optional[int] = None
    minor: Optional[int] = None
    patch: Optional[int] = None
    pre: str = ""


@dataclass(frozen=True)
class VersionRequirement:
    """A parsed requirement such as ``"^1.2"`` or ``">=0.5, <2.0"``.

    Requirements only declare an edge; they are never solved against the set
    of published versions.
    """

    raw: str
    comparators: tuple[Comparator, ...] = ()

    def __str__(self) -> str:
        return self.raw


@dataclass
class Dependency:
    """One dependency declaration of a published version."""

    name: str
    req: VersionRequirement
    features: list[str] = field(default_factory=list)
    optional: bool = False
    default_features: bool = True
    target: Optional[str] = None  # platform qualifier, e.g. cfg(windows)
    kind: str = KIND_NORMAL
    package: Optional[str] = None  # real package name when renamed

    @property
    def target_name(self) -> str:
        """The package this declaration points at (honours renames)."""
        return self.package or self.name


@dataclass
class PackageVersionRecord:
    """Metadata for one published version of a package."""

    name: str
    vers: semver.Version
    deps: list[Dependency] = field(default_factory=list)
    cksum: str = ""
    features: dict[str, list[str]] = field(default_factory=dict)
    yanked: bool = False
    links: Optional[str] = None


# ── Version / Requirement Parsing ──


def parse_version(text: str) -> semver.Version:
    """Parse a full SemVer string (``major.minor.patch[-pre][+build]``)."""
    if not isinstance(text, str):
        raise ParseError(f"version must be a string, got {type(text).__name__}")
    try:
        return semver.Version.parse(text)
    except ValueError as exc:
        raise ParseError(f"invalid version {text!r}: {exc}") from exc


def _component(value: Optional[str], raw: str) -> Optional[int]:
    if value is None or value in _WILDCARDS:
        return None
    if not _NUMERIC_RE.match(value):
        raise ParseError(f"invalid requirement {raw!r}: leading zero in {value!r}")
    return int(value)


def _check_identifiers(value: str, raw: str) -> None:
    for ident in value.split("."):
        if not _IDENT_RE.match(ident):
            raise ParseError(f"invalid requirement {raw!r}: bad identifier {ident!r}")
        if ident.isdigit() and not _NUMERIC_RE.match(ident):
            raise ParseError(f"invalid requirement {raw!r}: leading zero in {ident!r}")


def _parse_comparator(part: str, raw: str) -> Comparator:
    match = _COMPARATOR_RE.match(part)
    if not match:
        raise ParseError(f"invalid requirement {raw!r}")

    parts = [match.group("major"), match.group("minor"), match.group("patch")]
    # A wildcard may only be followed by more wildcards: "1.*.3" is invalid.
    seen_wildcard = False
    for value in parts:
        if value is None:
            continue
        if value in _WILDCARDS:
            seen_wildcard = True
        elif seen_wildcard:
            raise ParseError(f"invalid requirement {raw!r}: wildcard before number")

    pre = match.group("pre") or ""
    if pre:
        if seen_wildcard:
            raise ParseError(f"invalid requirement {raw!r}: pre-release on wildcard")
        _check_identifiers(pre, raw)
    if match.group("build"):
        _check_identifiers(match.group("build"), raw)

    op = match.group("op")
    if op is None:
        op = "*" if parts[0] in _WILDCARDS else "^"

    return Comparator(
        op=op,
        major=_component(parts[0], raw),
        minor=_component(parts[1], raw),
        patch=_component(parts[2], raw),
        pre=pre,
    )


def parse_requirement(text: str) -> VersionRequirement:
    """Parse a Cargo-style version requirement.

    Comparators are comma separated.  A bare version means caret
    (``"1.2"`` == ``"^1.2"``).

    Raises:
        ParseError: If the text is not a valid requirement.
    """
    if not isinstance(text, str):
        raise ParseError(f"requirement must be a string, got {type(text).__name__}")
    if not text.strip():
        raise ParseError("empty version requirement")
    comparators = tuple(_parse_comparator(part, text) for part in text.split(","))
    return VersionRequirement(raw=text, comparators=comparators)


# ── Record Parsing ──


def _require(obj: dict, key: str, expected: type, what: str):
    if key not in obj or obj[key] is None:
        raise ParseError(f"{what} is missing required field {key!r}")
    value = obj[key]
    if not isinstance(value, expected):
        raise ParseError(
            f"{what} field {key!r} must be {expected.__name__}, "
            f"got {type(value).__name__}"
        )
    return value


def _optional(obj: dict, key: str, expected: type, default, what: str):
    if obj.get(key) is None:
        return default
    return _require(obj, key, expected, what)


def _string_list(values: list, what: str) -> list[str]:
    for v in values:
        if not isinstance(v, str):
            raise ParseError(f"{what} must contain only strings, got {type(v).__name__}")
    return list(values)


def _feature_table(obj: dict, key: str) -> dict[str, list[str]]:
    table = _optional(obj, key, dict, {}, "record")
    features: dict[str, list[str]] = {}
    for feature, activates in table.items():
        if not isinstance(activates, list):
            raise ParseError(f"feature {feature!r} must map to a list")
        features[feature] = _string_list(activates, f"feature {feature!r}")
    return features


def _parse_dependency(obj) -> Dependency:
    if not isinstance(obj, dict):
        raise ParseError(f"dependency must be an object, got {type(obj).__name__}")
    name = _require(obj, "name", str, "dependency")
    what = f"dependency {name!r}"

    kind = _optional(obj, "kind", str, KIND_NORMAL, what)
    if kind not in DEPENDENCY_KINDS:
        raise ParseError(f"{what} has unknown kind {kind!r}")

    return Dependency(
        name=name,
        req=parse_requirement(_require(obj, "req", str, what)),
        features=_string_list(_optional(obj, "features", list, [], what), what),
        optional=_optional(obj, "optional", bool, False, what),
        default_features=_optional(obj, "default_features", bool, True, what),
        target=_optional(obj, "target", str, None, what),
        kind=kind,
        package=_optional(obj, "package", str, None, what),
    )


def parse_record(line: str) -> PackageVersionRecord:
    """Decode one JSON line into a ``PackageVersionRecord``.

    Raises:
        ParseError: On malformed JSON, missing/mistyped fields, or an invalid
            version or requirement string.
    """
    try:
        obj = json.loads(line)
    except json.JSONDecodeError as exc:
        raise ParseError(f"malformed JSON: {exc.msg} (column {exc.colno})") from exc
    if not isinstance(obj, dict):
        raise ParseError(f"record must be a JSON object, got {type(obj).__name__}")

    name = _require(obj, "name", str, "record")
    if not name:
        raise ParseError("record has an empty name")

    features = _feature_table(obj, "features")
    # features2 holds entries using the newer "dep:"/"?" syntax; same table
    features.update(_feature_table(obj, "features2"))

    return PackageVersionRecord(
        name=name,
        vers=parse_version(_require(obj, "vers", str, "record")),
        deps=[_parse_dependency(d) for d in _require(obj, "deps", list, "record")],
        cksum=_require(obj, "cksum", str, "record"),
        features=features,
        yanked=_optional(obj, "yanked", bool, False, "record"),
        links=_optional(obj, "links", str, None, "record"),
    )
