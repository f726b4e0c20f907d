# src/fcrank/schemas/common.py

"""Tier helpers shared by snapshots, live lookups and statistics."""

# Upstream tiers run 1..6 and map to letter grades E..S.
TIER_LETTERS = ("E", "D", "C", "B", "A", "S")
MIN_TIER = 1
MAX_TIER = len(TIER_LETTERS)

# Score assigned to the lowest tier; each tier above adds TIER_SCORE_STEP.
BASE_SCORE = 1000
TIER_SCORE_STEP = 200


def clamp_tier(tier: int | None) -> int:
    """Coerce a possibly missing or out-of-range tier into 1..6."""
    if not tier:
        return MIN_TIER
    return max(MIN_TIER, min(MAX_TIER, int(tier)))


def tier_to_score(tier: int | None) -> int:
    """Convert a coarse tier into an ELO-like score (E=1000 ... S=2000)."""
    return BASE_SCORE + (clamp_tier(tier) - 1) * TIER_SCORE_STEP


def tier_letter(tier: int | None) -> str:
    """Return the letter grade for a tier, or 'Unknown'."""
    if tier is None or not MIN_TIER <= tier <= MAX_TIER:
        return "Unknown"
    return TIER_LETTERS[tier - 1]
