"""Maven version ordering and version range semantics.

Versions are compared the way Maven compares them: numeric items
numerically, qualifiers by their well-known order
(alpha < beta < milestone < rc < snapshot < release < sp < anything else),
with missing trailing items treated as ``0`` / release.
"""

from __future__ import annotations

import functools
import re
from typing import Iterable, List, Optional, Tuple, Union

_QUALIFIERS = ["alpha", "beta", "milestone", "rc", "snapshot", "", "sp"]
_ALIASES = {"a": "alpha", "b": "beta", "m": "milestone", "cr": "rc", "ga": "", "final": "", "release": ""}
_RELEASE_INDEX = _QUALIFIERS.index("")
_TOKEN_RE = re.compile(r"\d+|[a-z]+")

Item = Union[int, str]


def _qualifier_key(q: str) -> Tuple[int, str]:
    if q in _QUALIFIERS:
        return _QUALIFIERS.index(q), ""
    return len(_QUALIFIERS), q


def _tokenize(raw: str) -> List[Item]:
    items: List[Item] = []
    for token in _TOKEN_RE.findall(raw.strip().lower()):
        if token.isdigit():
            items.append(int(token))
        else:
            items.append(_ALIASES.get(token, token))
    return items


def _compare_items(a: Optional[Item], b: Optional[Item]) -> int:
    if a is None and b is None:
        return 0
    if a is None:
        return -_compare_items(b, None)
    if b is None:
        if isinstance(a, int):
            return (a > 0) - (a < 0)
        ka = _qualifier_key(a)
        return (ka > (_RELEASE_INDEX, "")) - (ka < (_RELEASE_INDEX, ""))
    if isinstance(a, int) and isinstance(b, int):
        return (a > b) - (a < b)
    if isinstance(a, int):
        return 1
    if isinstance(b, int):
        return -1
    ka, kb = _qualifier_key(a), _qualifier_key(b)
    return (ka > kb) - (ka < kb)


@functools.total_ordering
class MavenVersion:
    """Comparable Maven version."""

    __slots__ = ("raw", "_items")

    def __init__(self, raw: str):
        self.raw = raw
        self._items = _tokenize(raw)

    def _compare(self, other: "MavenVersion") -> int:
        length = max(len(self._items), len(other._items))
        for i in range(length):
            a = self._items[i] if i < len(self._items) else None
            b = other._items[i] if i < len(other._items) else None
            result = _compare_items(a, b)
            if result:
                return result
        return 0

    def _canonical(self) -> Tuple[Item, ...]:
        items = list(self._items)
        while items and items[-1] in (0, ""):
            items.pop()
        return tuple(items)

    def __eq__(self, other) -> bool:
        if not isinstance(other, MavenVersion):
            return NotImplemented
        return self._compare(other) == 0

    def __lt__(self, other: "MavenVersion") -> bool:
        return self._compare(other) < 0

    def __hash__(self) -> int:
        return hash(self._canonical())

    def __repr__(self) -> str:
        return f"MavenVersion({self.raw!r})"

    def __str__(self) -> str:
        return self.raw


class _Restriction:
    """One bracketed interval of a version range."""

    def __init__(self, lower: Optional[MavenVersion], lower_inclusive: bool,
                 upper: Optional[MavenVersion], upper_inclusive: bool):
        self.lower = lower
        self.lower_inclusive = lower_inclusive
        self.upper = upper
        self.upper_inclusive = upper_inclusive

    def contains(self, ver: MavenVersion) -> bool:
        if self.lower is not None:
            if self.lower_inclusive and ver < self.lower:
                return False
            if not self.lower_inclusive and ver <= self.lower:
                return False
        if self.upper is not None:
            if self.upper_inclusive and ver > self.upper:
                return False
            if not self.upper_inclusive and ver >= self.upper:
                return False
        return True


class VersionRange:
    """Maven version range such as ``[1.0,2.0)``, ``(,1.5]``, ``[1.2]`` or ``[1,2),[3,4]``.

    A bare version without brackets is treated as an exact requirement.
    """

    def __init__(self, spec: str):
        self.spec = spec.strip()
        if not self.spec:
            raise ValueError("Empty version range")
        self._restrictions = self._parse(self.spec)

    @staticmethod
    def _split(spec: str) -> List[str]:
        ranges = []
        current = ""
        depth = 0
        for char in spec:
            if char in "[(":
                if depth:
                    raise ValueError(f"Nested brackets in version range '{spec}'")
                depth += 1
                current = char
            elif char in "])":
                if not depth:
                    raise ValueError(f"Unbalanced brackets in version range '{spec}'")
                depth -= 1
                current += char
                ranges.append(current)
                current = ""
            elif depth:
                current += char
            elif char not in ", ":
                raise ValueError(f"Unexpected '{char}' in version range '{spec}'")
        if depth:
            raise ValueError(f"Unbalanced brackets in version range '{spec}'")
        return ranges

    def _parse(self, spec: str) -> List[_Restriction]:
        if spec[0] not in "[(":
            exact = MavenVersion(spec)
            return [_Restriction(exact, True, exact, True)]
        restrictions = []
        for part in self._split(spec):
            lower_inclusive = part.startswith("[")
            upper_inclusive = part.endswith("]")
            inner = part[1:-1]
            if "," not in inner:
                if not inner.strip() or not (lower_inclusive and upper_inclusive):
                    raise ValueError(f"Invalid single version restriction '{part}'")
                exact = MavenVersion(inner.strip())
                restrictions.append(_Restriction(exact, True, exact, True))
                continue
            lower_str, upper_str = (s.strip() for s in inner.split(",", 1))
            lower = MavenVersion(lower_str) if lower_str else None
            upper = MavenVersion(upper_str) if upper_str else None
            if lower is not None and upper is not None and upper < lower:
                raise ValueError(f"Range '{part}' has an upper bound below its lower bound")
            restrictions.append(_Restriction(lower, lower_inclusive, upper, upper_inclusive))
        if not restrictions:
            raise ValueError(f"Invalid version range '{spec}'")
        return restrictions

    def contains(self, version: Union[str, MavenVersion]) -> bool:
        ver = version if isinstance(version, MavenVersion) else MavenVersion(version)
        return any(r.contains(ver) for r in self._restrictions)

    def __repr__(self) -> str:
        return f"VersionRange({self.spec!r})"


def highest(versions: Iterable[str]) -> Optional[str]:
    """Return the highest version of ``versions`` or None when empty."""
    best: Optional[MavenVersion] = None
    for v in versions:
        candidate = MavenVersion(v)
        if best is None or candidate > best:
            best = candidate
    return best.raw if best is not None else None
