# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Helpers for parsing and comparing dotted release versions."""

from __future__ import annotations

from packaging.version import InvalidVersion, Version

VersionTriple = tuple[int, int, int]


def parse_version(raw: str | None) -> VersionTriple | None:
    """Return ``(major, minor, patch)`` for ``raw`` or ``None`` when unparsable.

    Missing components count as zero and anything past the patch component is
    ignored, so ``"1.2"`` parses as ``(1, 2, 0)``.
    """

    if not raw or not raw.strip():
        return None
    try:
        release = Version(raw.strip()).release
    except InvalidVersion:
        return None
    padded = (*release, 0, 0, 0)
    return padded[0], padded[1], padded[2]


def compare_versions(left: str | None, right: str | None) -> int:
    """Compare two versions returning ``-1``, ``0`` or ``1``.

    An unparsable version is treated as older than any parsable version so a
    garbled remote answer never triggers an upgrade.
    """

    left_parsed = parse_version(left)
    right_parsed = parse_version(right)
    if left_parsed is None or right_parsed is None:
        if left_parsed is None and right_parsed is None:
            return 0
        return -1 if left_parsed is None else 1
    return (left_parsed > right_parsed) - (left_parsed < right_parsed)


def is_newer(candidate: str | None, current: str | None) -> bool:
    """Return ``True`` when ``candidate`` is strictly newer than ``current``."""

    return compare_versions(current, candidate) < 0


__all__ = ["VersionTriple", "compare_versions", "is_newer", "parse_version"]
