"""
Equipment text parser - turns raw OCR output into an Equipment record.

Input is the concatenation of two OCR passes: the main stat region, a newline,
then the sub-stats region. Typical text:

    Epic Item
    Attack 12%
    Speed 4 (1)
    Critical Hit Chance 15%(3)

Parsing never fails. Unreadable lines are skipped, an unreadable rank becomes
EquipmentRank.UNKNOWN and an empty read yields an Equipment without stats.

OCR noise handled:
- Case, spacing and punctuation inside labels ("CRITICAL  HIT-CHANCE")
- Digit/letter swaps inside labels ("Crit1cal", "Defen5e", "He|alth")
- Near misses via difflib close matching ("Attaok", "Effectivenss")
- Thousands separators ("2,700") vs decimal commas ("1,5")
"""
from __future__ import annotations

import difflib
import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import IntEnum

from gearscan.stats import PERCENT_VARIANTS, StatRecord, StatType

logger = logging.getLogger(__name__)

MAX_SUB_STATS = 4
DEFAULT_ROLL_COUNT = 0  # Used when a line has no readable "(n)" annotation
MAX_ROLL_COUNT = 99

# difflib ratio required for a fuzzy label match
LABEL_MATCH_CUTOFF = 0.8


class EquipmentRank(IntEnum):
    """Equipment quality tiers, lowest first."""
    UNKNOWN = 0
    NORMAL = 1
    GOOD = 2
    RARE = 3
    HEROIC = 4
    EPIC = 5
    LEGENDARY = 6

    @property
    def display_name(self) -> str:
        return self.name.title()


@dataclass(frozen=True)
class Equipment:
    """Parsed equipment: rank plus stat lines in the order they were read."""
    rank: EquipmentRank = EquipmentRank.UNKNOWN
    stats: tuple[StatRecord, ...] = field(default_factory=tuple)

    @property
    def main_stat(self) -> StatRecord | None:
        return self.stats[0] if self.stats else None

    @property
    def sub_stats(self) -> tuple[StatRecord, ...]:
        return self.stats[1:]


# Common OCR confusions inside words. Applied to labels only, never to values.
OCR_SUBSTITUTIONS = str.maketrans({
    "0": "o",
    "1": "i",
    "!": "i",
    "|": "l",
    "5": "s",
    "$": "s",
})

RANK_KEYWORDS = {
    "normal": EquipmentRank.NORMAL,
    "good": EquipmentRank.GOOD,
    "rare": EquipmentRank.RARE,
    "heroic": EquipmentRank.HEROIC,
    "epic": EquipmentRank.EPIC,
    "legendary": EquipmentRank.LEGENDARY,
}

# Normalized label -> stat type. Flat types are promoted to their percent
# variant when the value carries a "%".
STAT_LABEL_ALIASES = {
    "attack": StatType.ATTACK,
    "atk": StatType.ATTACK,
    "defense": StatType.DEFENSE,
    "defence": StatType.DEFENSE,
    "def": StatType.DEFENSE,
    "health": StatType.HEALTH,
    "hp": StatType.HEALTH,
    "speed": StatType.SPEED,
    "spd": StatType.SPEED,
    "effectiveness": StatType.EFFECTIVENESS_PERCENT,
    "eff": StatType.EFFECTIVENESS_PERCENT,
    "effectresistance": StatType.EFFECT_RESISTANCE_PERCENT,
    "effectres": StatType.EFFECT_RESISTANCE_PERCENT,
    "effres": StatType.EFFECT_RESISTANCE_PERCENT,
    "criticalhitchance": StatType.CRITICAL_HIT_CHANCE_PERCENT,
    "crithitchance": StatType.CRITICAL_HIT_CHANCE_PERCENT,
    "critchance": StatType.CRITICAL_HIT_CHANCE_PERCENT,
    "criticalhitdamage": StatType.CRITICAL_HIT_DAMAGE_PERCENT,
    "crithitdamage": StatType.CRITICAL_HIT_DAMAGE_PERCENT,
    "critdamage": StatType.CRITICAL_HIT_DAMAGE_PERCENT,
    "critdmg": StatType.CRITICAL_HIT_DAMAGE_PERCENT,
}
# Enum names as printed by debug tools ("CriticalHitChancePercent 15%")
STAT_LABEL_ALIASES.update({
    stat_type.value.lower(): stat_type
    for stat_type in StatType
    if stat_type is not StatType.NULL
})

# Right-most number on the line, optional "%", optional roll count "(3)".
# The closing delimiter is optional because OCR often drops it.
STAT_VALUE_PATTERN = re.compile(
    r"(?P<value>\d+(?:[.,]\d+)*)\s*(?P<percent>%)?\s*"
    r"(?:[(\[{]\s*(?P<rolls>\d+)\s*[)\]}]?)?"
    r"[^\w]*$"
)
THOUSANDS_PATTERN = re.compile(r"\d{1,3}(?:,\d{3})+")
GROUPED_DECIMAL_PATTERN = re.compile(r"\d{1,3}(?:,\d{3})+\.\d+")
WORD_PATTERN = re.compile(r"[A-Za-z0-9|$!]+")


def normalize_label(text: str) -> str:
    """Lower-case, undo common OCR digit swaps and keep letters only."""
    return re.sub(r"[^a-z]", "", text.lower().translate(OCR_SUBSTITUTIONS))


def parse_decimal(token: str) -> Decimal | None:
    """
    Parse an OCR'd number.

    "2,700" -> 2700 (thousands separator), "1,5" -> 1.5 (decimal comma),
    "1,234.5" -> 1234.5, "12.5" -> 12.5. Returns None for anything else.
    """
    if THOUSANDS_PATTERN.fullmatch(token) or GROUPED_DECIMAL_PATTERN.fullmatch(token):
        token = token.replace(",", "")
    else:
        token = token.replace(",", ".")
    if token.count(".") > 1:
        return None
    try:
        return Decimal(token)
    except InvalidOperation:
        return None


def match_stat_label(label: str) -> StatType | None:
    """Map raw label text to a StatType, tolerating OCR noise."""
    key = normalize_label(label)
    if len(key) < 2:
        return None
    if key in STAT_LABEL_ALIASES:
        return STAT_LABEL_ALIASES[key]
    close = difflib.get_close_matches(key, list(STAT_LABEL_ALIASES), n=1, cutoff=LABEL_MATCH_CUTOFF)
    if close:
        return STAT_LABEL_ALIASES[close[0]]
    return None


def find_rank(line: str) -> EquipmentRank | None:
    """Return the rank named in a line ("Epic Item", "LEGENDARY"), or None."""
    for word in WORD_PATTERN.findall(line):
        key = normalize_label(word)
        if key in RANK_KEYWORDS:
            return RANK_KEYWORDS[key]
        if len(key) >= 4:
            close = difflib.get_close_matches(key, list(RANK_KEYWORDS), n=1, cutoff=LABEL_MATCH_CUTOFF)
            if close:
                return RANK_KEYWORDS[close[0]]
    return None


def parse_stat_line(line: str) -> StatRecord | None:
    """
    Parse one stat line such as "Attack 12%" or "Speed 4 (1)".

    Returns:
        StatRecord, or None if the line has no recognizable label or value
    """
    match = STAT_VALUE_PATTERN.search(line)
    if match is None:
        return None

    stat_type = match_stat_label(line[:match.start()])
    if stat_type is None:
        return None

    value = parse_decimal(match.group("value"))
    if value is None:
        logger.debug(f"[PARSER] {stat_type.value}: unreadable value in {line!r}, skipped")
        return None

    if match.group("percent") and stat_type in PERCENT_VARIANTS:
        stat_type = PERCENT_VARIANTS[stat_type]

    roll_count = DEFAULT_ROLL_COUNT
    rolls = match.group("rolls")
    if rolls is not None:
        if int(rolls) <= MAX_ROLL_COUNT:
            roll_count = int(rolls)
        else:
            logger.debug(f"[PARSER] {stat_type.value}: unreadable roll count in {line!r}, using default")

    return StatRecord(stat_type, value, roll_count)


def parse_equipment(raw_text: str | None) -> Equipment:
    """
    Parse OCR text into an Equipment record.

    The first stat line read is the main stat, up to MAX_SUB_STATS more lines
    are sub-stats and anything after that is dropped.

    Args:
        raw_text: Main stat text + "\\n" + sub-stats text (None/"" allowed)

    Returns:
        Equipment (never raises)
    """
    if not raw_text:
        return Equipment()

    rank: EquipmentRank | None = None
    stats: list[StatRecord] = []

    for line in raw_text.splitlines():
        line = line.strip()
        if not line:
            continue

        stat = parse_stat_line(line)
        if stat is not None:
            if len(stats) > MAX_SUB_STATS:
                logger.debug(f"[PARSER] Extra stat line dropped: {line!r}")
                continue
            stats.append(stat)
            continue

        if rank is None:
            rank = find_rank(line)
            if rank is not None:
                continue

        logger.debug(f"[PARSER] Unmatched line skipped: {line!r}")

    return Equipment(rank=rank if rank is not None else EquipmentRank.UNKNOWN, stats=tuple(stats))
