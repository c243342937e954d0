"""Level thresholds and computation."""

from dataclasses import dataclass

LEVEL_THRESHOLDS: list[dict] = [
    {"level": 1, "title": "Couch Scout", "cumulative": 0},
    {"level": 2, "title": "Street Walker", "cumulative": 100},
    {"level": 3, "title": "Block Runner", "cumulative": 300},
    {"level": 4, "title": "Park Claimer", "cumulative": 700},
    {"level": 5, "title": "District Raider", "cumulative": 1500},
    {"level": 6, "title": "Borough Holder", "cumulative": 3000},
    {"level": 7, "title": "City Strider", "cumulative": 6000},
    {"level": 8, "title": "Metro Warden", "cumulative": 12000},
    {"level": 9, "title": "Region Conqueror", "cumulative": 25000},
    {"level": 10, "title": "Realm Sovereign", "cumulative": 50000},
]


@dataclass(frozen=True)
class LevelInfo:
    level: int
    title: str
    xp_into_level: int
    xp_for_level: int


def compute_level(total_xp: int) -> LevelInfo:
    """Compute level info from total XP.

    Non-decreasing in ``total_xp``; negative XP is treated as zero.
    """
    total_xp = max(total_xp, 0)

    index = 0
    for i, threshold in enumerate(LEVEL_THRESHOLDS):
        if total_xp >= threshold["cumulative"]:
            index = i

    current = LEVEL_THRESHOLDS[index]
    next_level = LEVEL_THRESHOLDS[min(index + 1, len(LEVEL_THRESHOLDS) - 1)]

    xp_for_level = next_level["cumulative"] - current["cumulative"]
    # At max level, avoid division by zero
    if xp_for_level == 0:
        xp_for_level = 1

    return LevelInfo(
        level=current["level"],
        title=current["title"],
        xp_into_level=total_xp - current["cumulative"],
        xp_for_level=xp_for_level,
    )
