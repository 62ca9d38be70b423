"""Import scanning: path exclusion, specifier extraction and resolution."""

from __future__ import annotations

from .exclude import (
    DEFAULT_EXCLUDE_PATTERNS,
    ExcludeRule,
    compile_exclude_rules,
    excludes_directory,
    is_excluded,
)
from .imports import ImportSpecifier, SpecifierResolver, extract_specifiers, package_name
from .scanner import PackageScan, ScanSettings, merge_scans, scan_package, scan_workspace

__all__ = [
    "DEFAULT_EXCLUDE_PATTERNS",
    "ExcludeRule",
    "ImportSpecifier",
    "PackageScan",
    "ScanSettings",
    "SpecifierResolver",
    "compile_exclude_rules",
    "excludes_directory",
    "extract_specifiers",
    "is_excluded",
    "merge_scans",
    "package_name",
    "scan_package",
    "scan_workspace",
]
