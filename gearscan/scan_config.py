"""
Scan configuration passed to the scanner at construction time.

load_scan_config() reads the module-level values of config.py (which already
merged config_local.py) once and validates them. Nothing in gearscan reads
config globals after that.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from types import ModuleType
from typing import Any

from gearscan.image_processing import REFERENCE_HEIGHT, REFERENCE_WIDTH
from gearscan.tesseract_ocr import DEFAULT_TESSERACT_CONFIG

Region = tuple[int, int, int, int]

# config.py name -> ScanConfig field
CONFIG_KEYS = {
    "MAIN_STAT_REGION": "main_stat_region",
    "SUB_STATS_REGION": "sub_stats_region",
    "BLACK_THRESHOLD": "black_threshold",
    "ALPHA_THRESHOLD": "alpha_threshold",
    "SCAN_INTERVAL": "scan_interval_seconds",
    "OCR_LANGUAGE": "language_id",
    "REFERENCE_RESOLUTION": "reference_resolution",
    "WINDOW_TITLE": "window_title",
    "SOURCE_POLL_INTERVAL": "source_poll_interval",
    "SAVE_DEBUG_IMAGES": "save_debug_images",
    "TESSERACT_CMD": "tesseract_cmd",
    "TESSERACT_CONFIG": "tesseract_config",
}


@dataclass(frozen=True)
class ScanConfig:
    main_stat_region: Region = (0, 399, 780, 80)
    sub_stats_region: Region = (0, 509, 780, 220)
    black_threshold: float = 0.54
    alpha_threshold: float = 0.88
    scan_interval_seconds: float = 1.0
    language_id: str = "eng"
    reference_resolution: tuple[int, int] = (REFERENCE_WIDTH, REFERENCE_HEIGHT)
    window_title: str = "Epic Seven"
    source_poll_interval: float = 0.5
    save_debug_images: bool = False
    tesseract_cmd: str | None = None
    tesseract_config: str = DEFAULT_TESSERACT_CONFIG

    def __post_init__(self) -> None:
        for name in ("black_threshold", "alpha_threshold"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")

        if self.scan_interval_seconds <= 0:
            raise ValueError(f"scan_interval_seconds must be > 0, got {self.scan_interval_seconds}")
        if self.source_poll_interval <= 0:
            raise ValueError(f"source_poll_interval must be > 0, got {self.source_poll_interval}")

        ref_w, ref_h = self.reference_resolution
        if ref_w <= 0 or ref_h <= 0:
            raise ValueError(f"reference_resolution must be positive, got {self.reference_resolution}")

        for name in ("main_stat_region", "sub_stats_region"):
            region = getattr(self, name)
            if len(region) != 4:
                raise ValueError(f"{name} must be (x, y, w, h), got {region}")
            x, y, w, h = region
            if w <= 0 or h <= 0 or x < 0 or y < 0:
                raise ValueError(f"{name} must have a positive size and origin, got {region}")
            if x + w > ref_w or y + h > ref_h:
                raise ValueError(f"{name} {region} exceeds reference resolution {self.reference_resolution}")

        if not self.language_id:
            raise ValueError("language_id must not be empty")

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def load_scan_config(module: ModuleType | None = None, **overrides: Any) -> ScanConfig:
    """
    Build a ScanConfig from config.py values.

    Args:
        module: Config module to read (default: the project's config.py)
        **overrides: ScanConfig field values that win over the module (e.g. CLI flags)

    Raises:
        ValueError: If any value is out of range
    """
    if module is None:
        import config as module

    values: dict[str, Any] = {}
    for key, field_name in CONFIG_KEYS.items():
        if hasattr(module, key):
            value = getattr(module, key)
            if field_name.endswith("_region") or field_name == "reference_resolution":
                value = tuple(value)
            values[field_name] = value

    values.update({k: v for k, v in overrides.items() if v is not None})
    return ScanConfig(**values)
