"""
tests/test_classifier.py — Join Event Classification
=====================================================

Full truth table over old/new ∈ {None, AFK, A, B}.
"""

from __future__ import annotations

import pytest

from vcnotify.engine.classifier import is_join_event

AFK = 10
A = 20
B = 30


def _is_afk(channel_id: int) -> bool:
    return channel_id == AFK


@pytest.mark.parametrize(
    "old, new, expected",
    [
        # Leaving is never a join
        (None, None, False),
        (AFK, None, False),
        (A, None, False),
        (B, None, False),
        # Moving into AFK is never a join
        (None, AFK, False),
        (AFK, AFK, False),
        (A, AFK, False),
        (B, AFK, False),
        # Fresh connection
        (None, A, True),
        (None, B, True),
        # Back from AFK
        (AFK, A, True),
        (AFK, B, True),
        # Hopping between active channels / no real movement
        (A, A, False),
        (A, B, False),
        (B, A, False),
        (B, B, False),
    ],
)
def test_truth_table(old, new, expected):
    assert is_join_event(old, new, _is_afk) is expected


class TestAfkLookup:
    def test_afk_checked_against_destination(self):
        """The predicate is consulted for the destination channel."""
        seen: list[int] = []

        def is_afk(channel_id: int) -> bool:
            seen.append(channel_id)
            return False

        assert is_join_event(None, A, is_afk) is True
        assert seen == [A]

    def test_no_afk_lookup_when_leaving(self):
        def is_afk(channel_id: int) -> bool:
            raise AssertionError("should not be called")

        assert is_join_event(A, None, is_afk) is False
