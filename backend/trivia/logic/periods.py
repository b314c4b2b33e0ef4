"""Time window arithmetic for cooldown periods and leaderboard weeks.

All timestamps are integer epoch seconds. Windows are aligned to the epoch,
so a window is identified by its start (cooldown) or its index (week).
"""


def cooldown_period_start(timestamp: int, cooldown_seconds: int) -> int:
    """Return the start of the cooldown period containing ``timestamp``."""
    return timestamp - (timestamp % cooldown_seconds)


def next_cooldown_period_start(timestamp: int, cooldown_seconds: int) -> int:
    return cooldown_period_start(timestamp, cooldown_seconds) + cooldown_seconds


def week_number(timestamp: int, week_seconds: int) -> int:
    return timestamp // week_seconds


def next_week_start(week: int, week_seconds: int) -> int:
    """Return the first second of the week after ``week``.

    Week N covers ``[N * week_seconds, next_week_start(N))``; its last second
    is ``next_week_start(N) - 1``.
    """
    return (week + 1) * week_seconds


def has_week_ended(week: int, now: int, week_seconds: int) -> bool:
    """True once ``now`` is strictly past the last second of ``week``."""
    return now > next_week_start(week, week_seconds) - 1
