"""Unit tests for game/selector.py - MoleSelector."""
import random

import pytest

from game.selector import MoleSelector


class TestMoleSelector:
    """Tests for picking the next target holder."""

    def test_pick_returns_a_participant(self):
        selector = MoleSelector(random.Random(1))
        participants = ["a", "b", "c"]

        for _ in range(20):
            assert selector.pick(participants) in participants

    def test_never_repeats_previous_holder(self):
        selector = MoleSelector(random.Random(3))
        participants = ["a", "b", "c"]
        previous = "a"

        for _ in range(200):
            holder = selector.pick(participants, previous)
            assert holder != previous
            previous = holder

    def test_two_participants_alternate(self):
        selector = MoleSelector(random.Random(5))

        assert selector.pick(["a", "b"], "a") == "b"
        assert selector.pick(["a", "b"], "b") == "a"

    def test_single_participant_keeps_the_mole(self):
        selector = MoleSelector(random.Random(9))

        assert selector.pick(["solo"], "solo") == "solo"

    def test_same_seed_same_sequence(self):
        participants = ["a", "b", "c", "d"]
        first = MoleSelector(random.Random(11))
        second = MoleSelector(random.Random(11))

        picks_a = [first.pick(participants) for _ in range(10)]
        picks_b = [second.pick(participants) for _ in range(10)]

        assert picks_a == picks_b

    def test_empty_participants_rejected(self):
        with pytest.raises(ValueError):
            MoleSelector().pick([], None)

    def test_uses_module_random_by_default(self):
        random.seed(42)
        holder = MoleSelector().pick(["a", "b", "c"])

        assert holder in ("a", "b", "c")
