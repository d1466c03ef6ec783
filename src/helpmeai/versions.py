from __future__ import annotations

import re
from dataclasses import dataclass

# npm-style ranges (node-semver grammar), since the manifests scanned are npm manifests.

_STRICT_RE = re.compile(
    r"^\s*[v=]*\s*(\d+)\.(\d+)\.(\d+)(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?(?:\+[0-9A-Za-z.-]+)?\s*$"
)
_COERCE_RE = re.compile(r"(?:^|[^\d])(\d{1,16})(?:\.(\d{1,16}))?(?:\.(\d{1,16}))?(?:$|[^\d])")
_PARTIAL_RE = re.compile(
    r"^[v=]*(\d+|[xX*])(?:\.(\d+|[xX*]))?(?:\.(\d+|[xX*]))?"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?(?:\+[0-9A-Za-z.-]+)?$"
)
_OPERATOR_RE = re.compile(r"^(\^|~>?|>=|<=|>|<|=)?(.*)$")
_OPERATOR_SPACE_RE = re.compile(r"(\^|~>?|>=|<=|>|<|=)\s+")
_HYPHEN_RE = re.compile(r"^(\S+)\s+-\s+(\S+)$")

# Pre-release sentinel used for exclusive upper bounds, e.g. "<2.0.0-0".
_LOWEST_PRE = ("0",)


@dataclass(frozen=True)
class SemVer:
    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()

    @property
    def core(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            return base + "-" + ".".join(self.prerelease)
        return base


Comparator = tuple[str, SemVer]


def _split_prerelease(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(p for p in value.split(".") if p != "")


def parse_version(version: str) -> SemVer | None:
    """Strict ``major.minor.patch[-pre][+build]`` parse, ``None`` when invalid."""
    if not isinstance(version, str):
        return None
    m = _STRICT_RE.match(version)
    if not m:
        return None
    return SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)), _split_prerelease(m.group(4)))


def coerce(version: str) -> SemVer | None:
    """
    Best-effort normalisation of a loose version string.

    The first ``major[.minor[.patch]]`` run in the string wins; missing parts
    become 0 and any pre-release or build suffix is dropped:

        coerce("v2") -> 2.0.0
        coerce("^5.1") -> 5.1.0
        coerce("5.x") -> 5.0.0
    """
    if not isinstance(version, str):
        return None
    m = _COERCE_RE.search(version)
    if not m:
        return None
    return SemVer(int(m.group(1)), int(m.group(2) or 0), int(m.group(3) or 0))


def compare_versions(a: SemVer, b: SemVer) -> int:
    if a.core < b.core:
        return -1
    if a.core > b.core:
        return 1

    pa = a.prerelease
    pb = b.prerelease
    if not pa and not pb:
        return 0
    if not pa:
        return 1
    if not pb:
        return -1

    for i in range(max(len(pa), len(pb))):
        if i >= len(pa):
            return -1
        if i >= len(pb):
            return 1
        x = pa[i]
        y = pb[i]
        x_num = x.isdigit()
        y_num = y.isdigit()
        if x_num and y_num:
            xi = int(x)
            yi = int(y)
            if xi < yi:
                return -1
            if xi > yi:
                return 1
            continue
        if x_num and not y_num:
            return -1
        if not x_num and y_num:
            return 1
        if x < y:
            return -1
        if x > y:
            return 1
    return 0


def _parse_partial(value: str) -> tuple[int | None, int | None, int | None, tuple[str, ...]]:
    if value == "":
        return None, None, None, ()
    m = _PARTIAL_RE.match(value)
    if not m:
        raise ValueError(f"Invalid version in range: {value!r}")
    parts: list[int | None] = []
    for raw in (m.group(1), m.group(2), m.group(3)):
        # Anything after a wildcard is a wildcard too.
        if raw is None or raw in ("x", "X", "*") or (parts and parts[-1] is None):
            parts.append(None)
        else:
            parts.append(int(raw))
    major, minor, patch = parts
    prerelease = _split_prerelease(m.group(4)) if patch is not None else ()
    return major, minor, patch, prerelease


def _upper(major: int, minor: int = 0, patch: int = 0) -> SemVer:
    return SemVer(major, minor, patch, _LOWEST_PRE)


def _expand_primitive(op: str, major, minor, patch, pre) -> list[Comparator]:
    if major is None:
        if op in (">", "<"):
            # ">*" and "<*" can never be satisfied.
            return [("<", SemVer(0, 0, 0, _LOWEST_PRE))]
        return []

    if patch is not None:
        return [(op or "=", SemVer(major, minor, patch, pre))]

    if op in ("", "="):
        if minor is None:
            return [(">=", SemVer(major, 0, 0)), ("<", _upper(major + 1))]
        return [(">=", SemVer(major, minor, 0)), ("<", _upper(major, minor + 1))]
    if op == ">":
        if minor is None:
            return [(">=", SemVer(major + 1, 0, 0))]
        return [(">=", SemVer(major, minor + 1, 0))]
    if op == ">=":
        return [(">=", SemVer(major, minor or 0, 0))]
    if op == "<":
        return [("<", _upper(major, minor or 0))]
    if op == "<=":
        if minor is None:
            return [("<", _upper(major + 1))]
        return [("<", _upper(major, minor + 1))]
    raise ValueError(f"Unsupported operator: {op!r}")


def _expand_tilde(major, minor, patch, pre) -> list[Comparator]:
    if major is None:
        return []
    if minor is None:
        return [(">=", SemVer(major, 0, 0)), ("<", _upper(major + 1))]
    if patch is None:
        return [(">=", SemVer(major, minor, 0)), ("<", _upper(major, minor + 1))]
    return [(">=", SemVer(major, minor, patch, pre)), ("<", _upper(major, minor + 1))]


def _expand_caret(major, minor, patch, pre) -> list[Comparator]:
    if major is None:
        return []
    if minor is None:
        return [(">=", SemVer(major, 0, 0)), ("<", _upper(major + 1))]
    if patch is None:
        if major == 0:
            return [(">=", SemVer(0, minor, 0)), ("<", _upper(0, minor + 1))]
        return [(">=", SemVer(major, minor, 0)), ("<", _upper(major + 1))]

    lower = (">=", SemVer(major, minor, patch, pre))
    if major > 0:
        return [lower, ("<", _upper(major + 1))]
    if minor > 0:
        return [lower, ("<", _upper(0, minor + 1))]
    return [lower, ("<", _upper(0, 0, patch + 1))]


def _expand_hyphen(low: str, high: str) -> list[Comparator]:
    out: list[Comparator] = []
    major, minor, patch, pre = _parse_partial(low)
    if major is not None:
        out.append((">=", SemVer(major, minor or 0, patch or 0, pre)))

    major, minor, patch, pre = _parse_partial(high)
    if major is None:
        return out
    if minor is None:
        out.append(("<", _upper(major + 1)))
    elif patch is None:
        out.append(("<", _upper(major, minor + 1)))
    else:
        out.append(("<=", SemVer(major, minor, patch, pre)))
    return out


def _expand_token(token: str) -> list[Comparator]:
    m = _OPERATOR_RE.match(token)
    if not m:  # pragma: no cover
        raise ValueError(f"Invalid comparator: {token!r}")
    op = m.group(1) or ""
    parts = _parse_partial(m.group(2))
    if op == "^":
        return _expand_caret(*parts)
    if op.startswith("~"):
        return _expand_tilde(*parts)
    return _expand_primitive(op, *parts)


def parse_range(range_: str) -> list[list[Comparator]]:
    """
    Parse a range into comparator sets. The range is satisfied when every
    comparator of at least one set is. Raises ``ValueError`` when malformed.
    """
    if not isinstance(range_, str):
        raise ValueError("range must be str")
    sets: list[list[Comparator]] = []
    for alternative in range_.split("||"):
        part = alternative.strip()
        hyphen = _HYPHEN_RE.match(part)
        if hyphen:
            sets.append(_expand_hyphen(hyphen.group(1), hyphen.group(2)))
            continue
        part = _OPERATOR_SPACE_RE.sub(r"\1", part)
        comparators: list[Comparator] = []
        for token in part.split():
            comparators.extend(_expand_token(token))
        sets.append(comparators)
    return sets


def _test(version: SemVer, op: str, bound: SemVer) -> bool:
    cmp = compare_versions(version, bound)
    if op == "=":
        return cmp == 0
    if op == ">":
        return cmp > 0
    if op == ">=":
        return cmp >= 0
    if op == "<":
        return cmp < 0
    if op == "<=":
        return cmp <= 0
    return False


def _set_allows(version: SemVer, comparators: list[Comparator]) -> bool:
    if not all(_test(version, op, bound) for op, bound in comparators):
        return False
    if not version.prerelease:
        return True
    # A pre-release only matches when the set opts into pre-releases of that exact core version.
    return any(bound.prerelease and bound.core == version.core for _, bound in comparators)


def satisfies(version: SemVer, range_: str) -> bool:
    return any(_set_allows(version, comparators) for comparators in parse_range(range_))


def matches(version: str, range_: str) -> bool:
    """
    Does a declared dependency version satisfy a skill's version range?

    ``"*"`` matches anything. Otherwise the coerced version is tried first and
    the raw version second. Malformed input never raises; it does not match.
    """
    if range_ == "*":
        return True
    try:
        comparator_sets = parse_range(range_)
    except ValueError:
        return False

    coerced = coerce(version)
    if coerced is not None and any(_set_allows(coerced, s) for s in comparator_sets):
        return True

    strict = parse_version(version)
    if strict is not None and any(_set_allows(strict, s) for s in comparator_sets):
        return True
    return False
