"""Tunable match constants."""

from dataclasses import dataclass, field
from typing import Any, Dict

from game.config_loader import ConfigLoader
from game.difficulty import DifficultyTiers


@dataclass(frozen=True)
class MatchSettings:
    """Clock, scoring and difficulty settings for a match."""

    match_duration_ms: int = 60000
    tick_ms: int = 500
    points_per_hit: int = 10
    min_players_to_start: int = 3
    tiers: DifficultyTiers = field(default_factory=DifficultyTiers)

    def __post_init__(self):
        for name in ("match_duration_ms", "tick_ms", "points_per_hit", "min_players_to_start"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        for name in ("easy_ms", "medium_ms", "hard_ms", "medium_below_ms", "hard_below_ms"):
            if getattr(self.tiers, name) <= 0:
                raise ValueError(f"difficulty.{name} must be positive")
        if self.match_duration_ms % self.tick_ms != 0:
            raise ValueError("match_duration_ms must be a multiple of tick_ms")

    @property
    def no_score_sentinel_ms(self) -> int:
        """Last-score marker meaning nobody has scored this match."""
        return self.match_duration_ms + self.tiers.easy_ms

    @classmethod
    def from_config(cls, loader: ConfigLoader) -> "MatchSettings":
        """Build settings from a loaded config, falling back to defaults per key."""
        defaults = cls()
        match = loader.get_match_settings()
        difficulty = loader.get_difficulty_settings()
        tiers = DifficultyTiers(
            easy_ms=int(difficulty.get("easy_ms", defaults.tiers.easy_ms)),
            medium_ms=int(difficulty.get("medium_ms", defaults.tiers.medium_ms)),
            hard_ms=int(difficulty.get("hard_ms", defaults.tiers.hard_ms)),
            medium_below_ms=int(difficulty.get("medium_below_ms", defaults.tiers.medium_below_ms)),
            hard_below_ms=int(difficulty.get("hard_below_ms", defaults.tiers.hard_below_ms)),
        )
        return cls(
            match_duration_ms=int(match.get("duration_ms", defaults.match_duration_ms)),
            tick_ms=int(match.get("tick_ms", defaults.tick_ms)),
            points_per_hit=int(match.get("points_per_hit", defaults.points_per_hit)),
            min_players_to_start=int(match.get("min_players_to_start", defaults.min_players_to_start)),
            tiers=tiers,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "match_duration_ms": self.match_duration_ms,
            "tick_ms": self.tick_ms,
            "points_per_hit": self.points_per_hit,
            "min_players_to_start": self.min_players_to_start,
            "difficulty_tiers": self.tiers.to_dict(),
        }
