"""
Result display - turns a scan result into display values.

Per-stat gear scores are shown with 1 decimal, totals with 2 decimals, and
each total gets a colour from its classification:

    BELOW -> red, WITHIN -> yellow, ABOVE -> green, UNCLASSIFIED -> white

ConsoleDisplay is the simplest publisher: it logs every scan. The dashboard
(dashboard/server.py) serves the same summary as JSON.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from gearscan.gear_score import Classification, GearScoreResult

if TYPE_CHECKING:
    from gearscan.equipment_scanner import ScanResult

logger = logging.getLogger(__name__)

CLASSIFICATION_COLORS = {
    Classification.BELOW: "red",
    Classification.WITHIN: "yellow",
    Classification.ABOVE: "green",
    Classification.UNCLASSIFIED: "white",
}


def format_score(value: Decimal, places: int) -> str:
    return f"{value:.{places}f}"


def gear_score_summary(gear_score: GearScoreResult) -> dict[str, Any]:
    """Display strings and colours for a GearScoreResult."""
    return {
        "per_stat": [format_score(score, 1) for score in gear_score.per_stat],
        "total": format_score(gear_score.total, 2),
        "total_classification": gear_score.total_classification.value,
        "total_color": CLASSIFICATION_COLORS[gear_score.total_classification],
        "adjusted_total": format_score(gear_score.adjusted_total, 2),
        "adjusted_classification": gear_score.adjusted_classification.value,
        "adjusted_color": CLASSIFICATION_COLORS[gear_score.adjusted_classification],
    }


def scan_summary(result: ScanResult) -> dict[str, Any]:
    """JSON-ready view of a scan result (no images)."""
    equipment = result.equipment
    return {
        "timestamp": result.timestamp.isoformat(),
        "rank": equipment.rank.display_name,
        "stats": [
            {
                "type": stat.type.value,
                "value": str(stat.value),
                "roll_count": stat.roll_count,
            }
            for stat in equipment.stats
        ],
        "gear_score": gear_score_summary(result.gear_score),
        "raw_text": result.raw_text,
        "regions": sorted(result.region_images),
    }


class ConsoleDisplay:
    """Publisher that logs a compact line per scan plus stat details at DEBUG."""

    def __init__(self, log: logging.Logger | None = None):
        self.log = log or logger

    def publish(self, result: ScanResult) -> None:
        summary = gear_score_summary(result.gear_score)
        self.log.info(
            f"[DISPLAY] {result.equipment.rank.display_name} | "
            f"GS {' / '.join(summary['per_stat'])} | "
            f"total {summary['total']} ({summary['total_color']}) | "
            f"adjusted {summary['adjusted_total']} ({summary['adjusted_color']})"
        )
        for stat in result.equipment.stats:
            self.log.debug(f"[DISPLAY]   {stat}")
