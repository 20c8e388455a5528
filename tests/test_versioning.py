# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for release version comparison."""

from __future__ import annotations

import pytest

from linthis.versioning import compare_versions, is_newer, parse_version


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("1.2.3", (1, 2, 3)),
        ("1.2", (1, 2, 0)),
        ("2", (2, 0, 0)),
        ("v0.10.1", (0, 10, 1)),
        ("1.2.3.4", (1, 2, 3)),
        (" 3.0.0 ", (3, 0, 0)),
    ],
)
def test_parse_version_pads_and_truncates(raw: str, expected: tuple[int, int, int]) -> None:
    assert parse_version(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "   ", "latest", "1.x"])
def test_parse_version_rejects_garbage(raw: str | None) -> None:
    assert parse_version(raw) is None


def test_compare_versions_orders_numerically() -> None:
    assert compare_versions("0.10.0", "0.9.9") == 1
    assert compare_versions("0.9.9", "0.10.0") == -1
    assert compare_versions("1.0", "1.0.0") == 0


def test_unparsable_version_is_older_than_any_release() -> None:
    assert compare_versions("garbage", "0.0.1") == -1
    assert compare_versions("0.0.1", "garbage") == 1
    assert compare_versions("garbage", "") == 0


def test_is_newer_requires_strictly_greater() -> None:
    assert is_newer("0.3.0", "0.2.9")
    assert not is_newer("0.2.9", "0.2.9")
    assert not is_newer("0.2.0", "0.2.9")
    assert not is_newer("not-a-version", "0.2.9")
