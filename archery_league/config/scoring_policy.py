"""
League scoring policy.

Points awarded per match outcome and the bonus rules. Each value can be
overridden by an environment variable of the same name.
"""
import os


def get_int_env(key: str, default: int) -> int:
    """Get an integer value from environment variable."""
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    return int(value)


class ScoringPolicy:
    """Fixed policy values used when deciding a match."""

    LEAGUE_POINTS_FOR_WIN: int = get_int_env('LEAGUE_POINTS_FOR_WIN', 3)
    LEAGUE_POINTS_FOR_DRAW: int = get_int_env('LEAGUE_POINTS_FOR_DRAW', 1)
    LEAGUE_POINTS_FOR_LOSS: int = get_int_env('LEAGUE_POINTS_FOR_LOSS', 0)

    BONUS_POINTS_FOR_HANDICAP_HIT: int = get_int_env('BONUS_POINTS_FOR_HANDICAP_HIT', 1)
    BONUS_POINTS_FOR_CLOSE_LOSS: int = get_int_env('BONUS_POINTS_FOR_CLOSE_LOSS', 1)

    # Largest adjusted-point gap that still earns the loser a bonus
    CLOSE_LOSS_THRESHOLD: int = get_int_env('CLOSE_LOSS_THRESHOLD', 5)

    # Adjusted score that "hits" the handicap (a perfect 1440 round)
    HANDICAP_HIT_THRESHOLD: int = get_int_env('HANDICAP_HIT_THRESHOLD', 1440)


scoring_policy = ScoringPolicy()
