"""Level ladder based on completed lessons."""

from typing import List, NamedTuple, Optional


class Level(NamedTuple):
    name: str
    min_lessons: int


LEVELS: List[Level] = [
    Level("Beginner Trader", 0),
    Level("Intermediate Trader", 15),
    Level("Advanced Trader", 30),
    Level("Expert Trader", 45),
]


class LevelStatus(NamedTuple):
    current_level: str
    next_level: Optional[str]
    next_level_progress: int


def level_for_lessons(completed_lessons: int) -> LevelStatus:
    """Return the level reached after ``completed_lessons`` and progress toward the next one.

    Progress is the rounded percentage through the current band; the top
    level reports 100 and no next level.
    """
    completed_lessons = max(completed_lessons, 0)
    index = 0
    for i, level in enumerate(LEVELS):
        if completed_lessons >= level.min_lessons:
            index = i

    current = LEVELS[index]
    if index + 1 >= len(LEVELS):
        return LevelStatus(current.name, None, 100)

    upcoming = LEVELS[index + 1]
    band = upcoming.min_lessons - current.min_lessons
    progress = round((completed_lessons - current.min_lessons) / band * 100)
    return LevelStatus(current.name, upcoming.name, progress)


def next_level_name(current_level: str) -> Optional[str]:
    """Name of the level after ``current_level``, None at the top or for unknown names."""
    names = [level.name for level in LEVELS]
    if current_level not in names:
        return None
    index = names.index(current_level)
    return names[index + 1] if index + 1 < len(names) else None
