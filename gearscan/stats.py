"""
Equipment stat lines and their gear score weights.

A stat line is one typed roll read off the equipment tooltip, e.g.
"Critical Hit Chance 15% (3)" -> StatRecord(CRITICAL_HIT_CHANCE_PERCENT, 15, 3).

Gear score multipliers normalize every stat onto the percent-stat scale
(1 point of Attack% == 1 gear score). Flat stats use the ratio between a
max flat roll and a max percent roll.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class StatType(Enum):
    NULL = "Null"
    ATTACK = "Attack"
    ATTACK_PERCENT = "AttackPercent"
    DEFENSE = "Defense"
    DEFENSE_PERCENT = "DefensePercent"
    HEALTH = "Health"
    HEALTH_PERCENT = "HealthPercent"
    SPEED = "Speed"
    EFFECTIVENESS_PERCENT = "EffectivenessPercent"
    EFFECT_RESISTANCE_PERCENT = "EffectResistancePercent"
    CRITICAL_HIT_CHANCE_PERCENT = "CriticalHitChancePercent"
    CRITICAL_HIT_DAMAGE_PERCENT = "CriticalHitDamagePercent"

    @property
    def is_percent(self) -> bool:
        return self.value.endswith("Percent")


# Flat stat -> percent variant, used when the OCR line carries a "%" sign
PERCENT_VARIANTS = {
    StatType.ATTACK: StatType.ATTACK_PERCENT,
    StatType.DEFENSE: StatType.DEFENSE_PERCENT,
    StatType.HEALTH: StatType.HEALTH_PERCENT,
}

# Gear score weight per stat type. Types missing here score 0.
STAT_GEAR_SCORE_MULTIPLIERS: dict[StatType, Decimal] = {
    StatType.ATTACK: Decimal("0.0887"),       # 3.46 / 39
    StatType.ATTACK_PERCENT: Decimal("1"),
    StatType.DEFENSE: Decimal("0.161"),       # 4.99 / 31
    StatType.DEFENSE_PERCENT: Decimal("1"),
    StatType.HEALTH: Decimal("0.0178"),       # 3.09 / 174
    StatType.HEALTH_PERCENT: Decimal("1"),
    StatType.SPEED: Decimal("2"),
    StatType.EFFECTIVENESS_PERCENT: Decimal("1"),
    StatType.EFFECT_RESISTANCE_PERCENT: Decimal("1"),
    StatType.CRITICAL_HIT_CHANCE_PERCENT: Decimal("1.6"),
    StatType.CRITICAL_HIT_DAMAGE_PERCENT: Decimal("1.14"),
}


@dataclass(frozen=True)
class StatRecord:
    """One parsed stat line."""
    type: StatType
    value: Decimal
    roll_count: int = 0  # Times this line was upgraded in-game (parsed, not computed)

    def gear_score(self, multipliers: dict[StatType, Decimal] | None = None) -> Decimal:
        """
        Gear score contributed by this stat line.

        Args:
            multipliers: Override table (defaults to STAT_GEAR_SCORE_MULTIPLIERS)

        Returns:
            value * multiplier, or exactly Decimal(0) if the type is unmapped
        """
        table = STAT_GEAR_SCORE_MULTIPLIERS if multipliers is None else multipliers
        mul = table.get(self.type)
        if mul is None:
            return Decimal(0)
        return self.value * Decimal(mul)

    def __str__(self) -> str:
        return f"{self.type.value}({self.roll_count}): {self.value}"
