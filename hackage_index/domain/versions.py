"""
Package names, versions and version ranges in Cabal syntax.

Only the subset of the grammar that appears in repository indexes is
understood: simple comparisons, ``^>=`` major bounds, ``==x.y.*`` wildcards,
``{a, b}`` version sets, ``&&``, ``||`` and parentheses.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

_NAME_COMPONENT_RE = re.compile(r"^[A-Za-z0-9]+$")
# Components have at most nine digits, as in Cabal.
_VERSION_RE = re.compile(r"^(0|[1-9][0-9]{0,8})(\.(0|[1-9][0-9]{0,8}))*$")

_TOKEN_RE = re.compile(
    r"""
    (?P<space>\s+)
  | (?P<op>\^>=|>=|<=|==|>|<|&&|\|\||\(|\)|\{|\}|,)
  | (?P<keyword>-any|-none)
  | (?P<version>[0-9]+(?:\.[0-9]+)*)(?P<wildcard>\.\*)?
    """,
    re.VERBOSE,
)


def is_package_name(text: str) -> bool:
    """
    Cabal package names are dash-separated alphanumeric components, each
    containing at least one letter.
    """
    if not text:
        return False
    for component in text.split("-"):
        if not _NAME_COMPONENT_RE.match(component) or component.isdigit():
            return False
    return True


def parse_package_name(text: str) -> str:
    if not is_package_name(text):
        raise ValueError(f"Invalid package name {text!r}")
    return text


@dataclass(frozen=True, order=True)
class Version:
    parts: Tuple[int, ...]

    @classmethod
    def parse(cls, text: str) -> "Version":
        if not _VERSION_RE.match(text):
            raise ValueError(f"Invalid version {text!r}")
        return cls(tuple(int(p) for p in text.split(".")))

    @classmethod
    def try_parse(cls, text: str) -> Optional["Version"]:
        try:
            return cls.parse(text)
        except ValueError:
            return None

    def __str__(self) -> str:
        return ".".join(str(p) for p in self.parts)

    def __repr__(self) -> str:
        return f"Version({str(self)!r})"


# Operators of the range tree. The order is part of the cache file format.
RANGE_OPS = ("any", "none", "==", ">", ">=", "<", "<=", "^>=", "==*", "||", "&&")
_LEAF_OPS = ("==", ">", ">=", "<", "<=", "^>=", "==*")


@dataclass(frozen=True)
class VersionRange:
    """
    Version range expression tree.

    Leaves carry ``version``; ``||`` and ``&&`` nodes carry ``left`` and
    ``right``; ``any`` and ``none`` carry nothing.
    """

    op: str
    version: Optional[Version] = None
    left: Optional["VersionRange"] = None
    right: Optional["VersionRange"] = None

    @classmethod
    def parse(cls, text: str) -> "VersionRange":
        return _RangeParser(text).parse()

    def contains(self, version: Version) -> bool:
        op = self.op
        if op == "any":
            return True
        if op == "none":
            return False
        if op == "||":
            return self.left.contains(version) or self.right.contains(version)
        if op == "&&":
            return self.left.contains(version) and self.right.contains(version)
        bound = self.version
        if op == "==":
            return version == bound
        if op == ">":
            return version > bound
        if op == ">=":
            return version >= bound
        if op == "<":
            return version < bound
        if op == "<=":
            return version <= bound
        if op == "^>=":
            return bound <= version < _major_upper_bound(bound)
        if op == "==*":
            upper = Version(bound.parts[:-1] + (bound.parts[-1] + 1,))
            return bound <= version < upper
        raise ValueError(f"Unknown range operator {op!r}")

    def __str__(self) -> str:
        op = self.op
        if op == "any":
            return "-any"
        if op == "none":
            return "-none"
        if op == "==*":
            return f"=={self.version}.*"
        if op in _LEAF_OPS:
            return f"{op}{self.version}"
        if op == "||":
            left = str(self.left)
            right = _parens(self.right) if self.right.op == "||" else str(self.right)
            return f"{left} || {right}"
        left = _parens(self.left) if self.left.op == "||" else str(self.left)
        right = _parens(self.right) if self.right.op in ("||", "&&") else str(self.right)
        return f"{left} && {right}"


ANY_VERSION = VersionRange("any")
NO_VERSION = VersionRange("none")


def _parens(r: VersionRange) -> str:
    return f"({r})"


def _major_upper_bound(v: Version) -> Version:
    if len(v.parts) == 1:
        return Version((v.parts[0], 1))
    return Version((v.parts[0], v.parts[1] + 1))


def parse_preferred_versions(package: str, text: str) -> VersionRange:
    """
    Parse a ``preferred-versions`` file body: the package name followed by
    a version range.
    """
    if not text.startswith(package):
        raise ValueError(f"expected {package!r} at the start of {text!r}")
    return VersionRange.parse(text[len(package):])


class _RangeParser:
    def __init__(self, text: str):
        self.text = text
        self.tokens = self._tokenize(text)
        self.pos = 0

    def _tokenize(self, text: str) -> List[Tuple[str, str, bool]]:
        tokens = []
        pos = 0
        while pos < len(text):
            m = _TOKEN_RE.match(text, pos)
            if m is None:
                raise ValueError(f"Unexpected {text[pos:]!r} in version range {text!r}")
            pos = m.end()
            kind = m.lastgroup if m.lastgroup != "wildcard" else "version"
            if kind == "space":
                continue
            if kind == "version":
                if not _VERSION_RE.match(m.group("version")):
                    raise ValueError(f"Invalid version {m.group('version')!r} in {text!r}")
                tokens.append(("version", m.group("version"), m.group("wildcard") is not None))
            else:
                tokens.append((kind, m.group(kind), False))
        return tokens

    def _peek(self) -> Optional[str]:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos][1]
        return None

    def _next(self) -> Tuple[str, str, bool]:
        if self.pos >= len(self.tokens):
            raise ValueError(f"Unexpected end of version range {self.text!r}")
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def _expect(self, value: str) -> None:
        kind, got, _ = self._next()
        if got != value:
            raise ValueError(f"Expected {value!r}, got {got!r} in {self.text!r}")

    def parse(self) -> VersionRange:
        result = self._union()
        if self.pos != len(self.tokens):
            raise ValueError(
                f"Unexpected {self.tokens[self.pos][1]!r} in version range {self.text!r}"
            )
        return result

    def _union(self) -> VersionRange:
        result = self._intersection()
        while self._peek() == "||":
            self.pos += 1
            result = VersionRange("||", left=result, right=self._intersection())
        return result

    def _intersection(self) -> VersionRange:
        result = self._atom()
        while self._peek() == "&&":
            self.pos += 1
            result = VersionRange("&&", left=result, right=self._atom())
        return result

    def _atom(self) -> VersionRange:
        kind, value, _ = self._next()
        if value == "(":
            inner = self._union()
            self._expect(")")
            return inner
        if kind == "keyword":
            return ANY_VERSION if value == "-any" else NO_VERSION
        if kind != "op" or value not in _LEAF_OPS:
            raise ValueError(f"Unexpected {value!r} in version range {self.text!r}")
        if self._peek() == "{":
            if value not in ("==", "^>="):
                raise ValueError(f"Version sets are not allowed after {value!r}")
            return self._version_set(value)
        _, text, wildcard = self._version_token()
        if wildcard:
            if value != "==":
                raise ValueError(f"Wildcard versions are only allowed after '==' in {self.text!r}")
            return VersionRange("==*", Version.parse(text))
        return VersionRange(value, Version.parse(text))

    def _version_token(self) -> Tuple[str, str, bool]:
        token = self._next()
        if token[0] != "version":
            raise ValueError(f"Expected a version, got {token[1]!r} in {self.text!r}")
        return token

    def _version_set(self, op: str) -> VersionRange:
        self._expect("{")
        members: List[VersionRange] = []
        while True:
            _, text, wildcard = self._version_token()
            if wildcard:
                raise ValueError(f"Wildcards are not allowed in version sets: {self.text!r}")
            members.append(VersionRange(op, Version.parse(text)))
            _, sep, _ = self._next()
            if sep == "}":
                break
            if sep != ",":
                raise ValueError(f"Expected ',' or '}}', got {sep!r} in {self.text!r}")
        result = members[0]
        for member in members[1:]:
            result = VersionRange("||", left=result, right=member)
        return result
