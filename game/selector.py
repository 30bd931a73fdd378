"""Target holder selection."""

import random
from typing import Optional, Sequence


class MoleSelector:
    """Picks which participant holds the mole next."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def pick(self, participants: Sequence[str], previous_holder: Optional[str] = None) -> str:
        """Pick a participant uniformly at random.

        With two or more participants the previous holder is never picked
        again. A lone participant is always returned.

        Raises:
            ValueError: If participants is empty.
        """
        if not participants:
            raise ValueError("Cannot pick a target holder without participants")

        choice = self._rng.choice(participants)
        while choice == previous_holder and len(participants) > 1:
            choice = self._rng.choice(participants)
        return choice
