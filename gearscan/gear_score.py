"""
Gear score evaluation.

Per-stat score = value * multiplier (see gearscan.stats). The equipment total
is the sum over the first four stat lines. The "adjusted" total assumes the
weakest stat is replaced by an average roll worth 8 points:

    adjusted = total - min(scores) + 8

With no stats the lowest score defaults to 8, so adjusted == total == 0.
The 8 only stands in for an empty list; it is not part of the minimum, so
this is min(scores) and not min(8, *scores). A weakest stat above 8 lowers
the adjusted total (125 -> 108 when the weakest stat scores 25).

Both totals are classified against the equipment rank's gear score band:
    score < min   -> BELOW   (red)
    score >= max  -> ABOVE   (green)
    otherwise     -> WITHIN  (yellow)
Ranks without a band are UNCLASSIFIED (white).
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import NamedTuple

from gearscan.equipment_parser import Equipment, EquipmentRank
from gearscan.stats import StatType

# Counts the main stat, so on a full item (main stat plus 4 sub-stats) the
# 5th parsed line is never scored.
SCORED_STAT_SLOTS = 4
LOWEST_STAT_REPLACEMENT = Decimal(8)


class Classification(Enum):
    BELOW = "below"
    WITHIN = "within"
    ABOVE = "above"
    UNCLASSIFIED = "unclassified"


class GearScoreRange(NamedTuple):
    min: Decimal
    max: Decimal


# Gear score bands per rank (min = keep threshold, max = great item)
RANK_GEAR_SCORE_THRESHOLDS: dict[EquipmentRank, GearScoreRange] = {
    EquipmentRank.RARE: GearScoreRange(Decimal(30), Decimal(40)),
    EquipmentRank.HEROIC: GearScoreRange(Decimal(45), Decimal(55)),
    EquipmentRank.EPIC: GearScoreRange(Decimal(55), Decimal(65)),
    EquipmentRank.LEGENDARY: GearScoreRange(Decimal(65), Decimal(75)),
}


@dataclass(frozen=True)
class GearScoreResult:
    per_stat: tuple[Decimal, ...]
    total: Decimal
    adjusted_total: Decimal
    total_classification: Classification
    adjusted_classification: Classification


def classify(score: Decimal, score_range: GearScoreRange | None) -> Classification:
    """Classify a score against a rank band (None -> UNCLASSIFIED)."""
    if score_range is None:
        return Classification.UNCLASSIFIED
    if score < score_range.min:
        return Classification.BELOW
    if score >= score_range.max:
        return Classification.ABOVE
    return Classification.WITHIN


class GearScoreEvaluator:
    """
    Computes gear scores for parsed equipment.

    Usage:
        evaluator = GearScoreEvaluator()
        result = evaluator.evaluate(equipment)
        print(result.total, result.total_classification)
    """

    def __init__(
        self,
        thresholds: dict[EquipmentRank, GearScoreRange] | None = None,
        multipliers: dict[StatType, Decimal] | None = None,
    ) -> None:
        self.thresholds = RANK_GEAR_SCORE_THRESHOLDS if thresholds is None else thresholds
        self.multipliers = multipliers

    def evaluate(self, equipment: Equipment) -> GearScoreResult:
        scores = [
            stat.gear_score(self.multipliers)
            for stat in equipment.stats[:SCORED_STAT_SLOTS]
        ]

        total = sum(scores, Decimal(0))
        lowest = min(scores, default=LOWEST_STAT_REPLACEMENT)
        adjusted_total = total - lowest + LOWEST_STAT_REPLACEMENT

        score_range = self.thresholds.get(equipment.rank)
        per_stat = tuple(scores) + (Decimal(0),) * (SCORED_STAT_SLOTS - len(scores))

        return GearScoreResult(
            per_stat=per_stat,
            total=total,
            adjusted_total=adjusted_total,
            total_classification=classify(total, score_range),
            adjusted_classification=classify(adjusted_total, score_range),
        )


def evaluate_equipment(equipment: Equipment) -> GearScoreResult:
    """Evaluate with the default thresholds and multipliers."""
    return GearScoreEvaluator().evaluate(equipment)
