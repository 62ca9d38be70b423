"""Segment-aware path globbing.

Patterns and candidate paths are split on ``/`` and compared one segment at a
time. ``*`` and ``?`` never cross a segment boundary and ``**`` stands for any
number of whole segments, so ``**/dist/**`` matches ``dist/x.js`` but not
``distribution/x.js``.
"""

from __future__ import annotations

from dataclasses import dataclass
from fnmatch import fnmatchcase
from functools import cache
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

GLOBSTAR = "**"

DEFAULT_EXCLUDE_PATTERNS: tuple[str, ...] = (
    "**/node_modules/**",
    "**/dist/**",
    "**/.turbo/**",
    "**/.moon/**",
    "**/build/**",
    "**/out/**",
    "**/coverage/**",
    "**/.next/**",
    "**/__tests__/**",
    "**/*.test.ts",
    "**/*.test.tsx",
    "**/*.spec.ts",
    "**/*.spec.tsx",
)


def split_segments(path: str) -> tuple[str, ...]:
    """Split a path on either separator, dropping empty and ``.`` segments."""

    normalized = path.replace("\\", "/")
    return tuple(segment for segment in normalized.split("/") if segment and segment != ".")


def _segment_matches(pattern_segment: str, segment: str) -> bool:
    if pattern_segment == segment:
        return True
    if not any(char in pattern_segment for char in "*?["):
        return False
    return fnmatchcase(segment, pattern_segment)


def match_segments(pattern: tuple[str, ...], parts: tuple[str, ...]) -> bool:
    """Return whether ``parts`` matches ``pattern`` over whole segments."""

    @cache
    def match(pattern_index: int, part_index: int) -> bool:
        if pattern_index == len(pattern):
            return part_index == len(parts)
        token = pattern[pattern_index]
        if token == GLOBSTAR:
            return any(
                match(pattern_index + 1, next_index)
                for next_index in range(part_index, len(parts) + 1)
            )
        if part_index == len(parts):
            return False
        return _segment_matches(token, parts[part_index]) and match(
            pattern_index + 1, part_index + 1
        )

    return match(0, 0)


@dataclass(frozen=True, slots=True)
class ExcludeRule:
    """A compiled path glob."""

    pattern: str
    segments: tuple[str, ...]

    @classmethod
    def compile(cls, pattern: str) -> ExcludeRule:
        segments = split_segments(pattern.strip())
        if not segments:
            raise ValueError(f"Empty exclude pattern: {pattern!r}")
        # a run of globstars is equivalent to a single one
        collapsed: list[str] = []
        for segment in segments:
            if segment == GLOBSTAR and collapsed and collapsed[-1] == GLOBSTAR:
                continue
            collapsed.append(segment)
        return cls(pattern=pattern, segments=tuple(collapsed))

    def matches(self, relative_path: str) -> bool:
        return match_segments(self.segments, split_segments(relative_path))


def compile_exclude_rules(
    patterns: Iterable[str] = (),
    *,
    include_defaults: bool = True,
) -> tuple[ExcludeRule, ...]:
    """Compile ``patterns`` (plus the defaults) into rules, dropping duplicates."""

    ordered: list[str] = list(DEFAULT_EXCLUDE_PATTERNS) if include_defaults else []
    ordered.extend(patterns)
    seen: set[str] = set()
    rules: list[ExcludeRule] = []
    for pattern in ordered:
        if pattern in seen:
            continue
        seen.add(pattern)
        rules.append(ExcludeRule.compile(pattern))
    return tuple(rules)


def is_excluded(relative_path: str, rules: Iterable[ExcludeRule]) -> bool:
    parts = split_segments(relative_path)
    return any(match_segments(rule.segments, parts) for rule in rules)


def excludes_directory(relative_dir: str, rules: Iterable[ExcludeRule]) -> bool:
    """Return whether every path below ``relative_dir`` is excluded.

    Only rules ending in ``**`` can exclude a whole subtree.
    """

    parts = split_segments(relative_dir)
    return any(
        rule.segments[-1] == GLOBSTAR and match_segments(rule.segments, parts) for rule in rules
    )


__all__ = [
    "DEFAULT_EXCLUDE_PATTERNS",
    "ExcludeRule",
    "compile_exclude_rules",
    "excludes_directory",
    "is_excluded",
    "match_segments",
    "split_segments",
]
