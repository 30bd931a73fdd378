"""Difficulty policy deciding when the mole relocates."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict


class DifficultyTier(Enum):
    """Spawn-speed tiers, slowest first."""
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


@dataclass(frozen=True)
class DifficultyTiers:
    """Spawn intervals per tier and the remaining-time bands that enable them."""

    easy_ms: int = 2000
    medium_ms: int = 1000
    hard_ms: int = 500
    medium_below_ms: int = 45000
    hard_below_ms: int = 30000

    def interval_for(self, tier: DifficultyTier) -> int:
        """Get the spawn interval for a tier."""
        if tier == DifficultyTier.HARD:
            return self.hard_ms
        if tier == DifficultyTier.MEDIUM:
            return self.medium_ms
        return self.easy_ms

    def band_for(self, remaining_ms: int) -> DifficultyTier:
        """Get the tier that applies by remaining time alone."""
        if remaining_ms < self.hard_below_ms:
            return DifficultyTier.HARD
        if remaining_ms < self.medium_below_ms:
            return DifficultyTier.MEDIUM
        return DifficultyTier.EASY

    def to_dict(self) -> Dict[str, int]:
        return {
            DifficultyTier.EASY.value: self.easy_ms,
            DifficultyTier.MEDIUM.value: self.medium_ms,
            DifficultyTier.HARD.value: self.hard_ms,
        }


@dataclass(frozen=True)
class RespawnDecision:
    """Outcome of one policy evaluation."""

    should_respawn: bool
    interval_ms: int
    tier: DifficultyTier


def next_interval(
    remaining_ms: int,
    last_score_at_remaining_ms: int,
    tiers: DifficultyTiers
) -> RespawnDecision:
    """Decide whether the mole should move on this respawn tick.

    Tiers are checked HARD, MEDIUM, EASY and the first one that qualifies
    wins. A tier qualifies when the remaining time is inside its band, the
    remaining time is aligned to the tier interval, and at least one interval
    has passed since the last score.

    Args:
        remaining_ms: Time left on the match clock.
        last_score_at_remaining_ms: Remaining time recorded at the last hit,
            or a value above the match duration when nobody scored yet.
        tiers: Interval and band configuration.

    Returns:
        A RespawnDecision. When nothing qualifies, should_respawn is False and
        the tier is the band for the remaining time.
    """
    since_score_ms = last_score_at_remaining_ms - remaining_ms
    bands = (
        (DifficultyTier.HARD, tiers.hard_below_ms),
        (DifficultyTier.MEDIUM, tiers.medium_below_ms),
        (DifficultyTier.EASY, None),
    )

    for tier, below_ms in bands:
        interval = tiers.interval_for(tier)
        in_band = below_ms is None or remaining_ms < below_ms
        if in_band and remaining_ms % interval == 0 and since_score_ms >= interval:
            return RespawnDecision(should_respawn=True, interval_ms=interval, tier=tier)

    band = tiers.band_for(remaining_ms)
    return RespawnDecision(
        should_respawn=False,
        interval_ms=tiers.interval_for(band),
        tier=band
    )
