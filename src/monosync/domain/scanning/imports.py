"""Import specifier extraction and workspace resolution."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

SOURCE_EXTENSIONS: tuple[str, ...] = (
    ".ts",
    ".tsx",
    ".mts",
    ".cts",
    ".js",
    ".jsx",
    ".mjs",
    ".cjs",
)

_COMMENT_OR_STRING = re.compile(
    r"""
    (?P<string>"(?:\\.|[^"\\\n])*"|'(?:\\.|[^'\\\n])*'|`(?:\\.|[^`\\])*`)
    | (?P<block>/\*.*?\*/)
    | (?P<line>//[^\n]*)
    """,
    re.VERBOSE | re.DOTALL,
)

# template literals with substitutions are not static specifiers
_QUOTED = r"""["'`]([^"'`\n$]+)["'`]"""
_IMPORT_FROM = re.compile(r"\bimport\s+(type\s+)?[^\"'`;]*?\bfrom\s*" + _QUOTED)
_SIDE_EFFECT_IMPORT = re.compile(r"\bimport\s*" + _QUOTED)
_EXPORT_FROM = re.compile(r"\bexport\s+(type\s+)?[^\"'`;]*?\bfrom\s*" + _QUOTED)
_DYNAMIC_IMPORT = re.compile(r"\bimport\s*\(\s*" + _QUOTED + r"\s*\)")
_REQUIRE = re.compile(r"\brequire\s*\(\s*" + _QUOTED + r"\s*\)")


@dataclass(frozen=True, slots=True)
class ImportSpecifier:
    specifier: str
    type_only: bool = False


def _drop_comment(match: re.Match[str]) -> str:
    if match.group("string") is not None:
        return match.group(0)
    if match.group("block") is not None:
        # keep line breaks
        return "\n" * match.group(0).count("\n") or " "
    return ""


def strip_comments(source: str) -> str:
    """Drop ``//`` and ``/* */`` comments that sit outside string literals.

    Regular expression literals are not recognised, so a ``//`` inside one
    is read as the start of a line comment.
    """

    return _COMMENT_OR_STRING.sub(_drop_comment, source)


def extract_specifiers(source: str) -> list[ImportSpecifier]:
    """Return the static import specifiers of ``source`` in source order."""

    text = strip_comments(source)
    found: dict[int, ImportSpecifier] = {}

    for match in _IMPORT_FROM.finditer(text):
        found[match.start()] = ImportSpecifier(match.group(2), type_only=bool(match.group(1)))
    for match in _EXPORT_FROM.finditer(text):
        found[match.start()] = ImportSpecifier(match.group(2), type_only=bool(match.group(1)))
    for pattern in (_SIDE_EFFECT_IMPORT, _DYNAMIC_IMPORT, _REQUIRE):
        for match in pattern.finditer(text):
            found.setdefault(match.start(), ImportSpecifier(match.group(1)))

    return [found[position] for position in sorted(found)]


def is_relative(specifier: str) -> bool:
    return specifier.startswith((".", "/"))


def package_name(specifier: str) -> str:
    """Strip any subpath, keeping the scope of ``@scope/name`` specifiers.

    >>> package_name("@scope/ui/button")
    '@scope/ui'
    >>> package_name("lodash/fp")
    'lodash'
    """

    parts = specifier.split("/")
    if specifier.startswith("@") and len(parts) >= 2:
        return f"{parts[0]}/{parts[1]}"
    return parts[0]


def matches_specifier_pattern(pattern: str, specifier: str) -> bool:
    if any(char in pattern for char in "*?["):
        return fnmatchcase(specifier, pattern)
    return specifier == pattern or specifier.startswith(f"{pattern}/")


@dataclass(frozen=True, slots=True, kw_only=True)
class SpecifierResolver:
    """Map import specifiers onto workspace package identities.

    Only whole package names match: ``@scope/ui/button`` resolves to
    ``@scope/ui`` but ``@scope/ui-extra`` never does.
    """

    identities: frozenset[str]
    aliases: Mapping[str, str] = field(default_factory=dict["str", "str"])
    ignore_patterns: tuple[str, ...] = ()

    @classmethod
    def for_packages(
        cls,
        identities: Iterable[str],
        *,
        aliases: Mapping[str, str] | None = None,
        ignore_patterns: Iterable[str] = (),
    ) -> SpecifierResolver:
        return cls(
            identities=frozenset(identities),
            aliases=dict(aliases or {}),
            ignore_patterns=tuple(ignore_patterns),
        )

    def is_ignored(self, specifier: str) -> bool:
        return any(
            matches_specifier_pattern(pattern, specifier) for pattern in self.ignore_patterns
        )

    def resolve(self, specifier: str) -> str | None:
        """Return the package identity ``specifier`` refers to, or ``None`` if external."""

        if not specifier or is_relative(specifier) or self.is_ignored(specifier):
            return None

        name = package_name(specifier)
        for candidate in (specifier, name):
            target = self.aliases.get(candidate)
            if target is not None and target in self.identities:
                return target

        if specifier in self.identities:
            return specifier
        if name in self.identities:
            return name
        return None


__all__ = [
    "SOURCE_EXTENSIONS",
    "ImportSpecifier",
    "SpecifierResolver",
    "extract_specifiers",
    "is_relative",
    "matches_specifier_pattern",
    "package_name",
    "strip_comments",
]
