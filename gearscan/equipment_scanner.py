"""
Equipment Scanner - drives one scan cycle end to end on a fixed interval.

States:
    WAITING_FOR_SOURCE  initial; polls the capture source until it is ready
    SCANNING            one cycle every scan_interval_seconds until stop()

One cycle:
    capture -> frame buffer -> region images (main stat, sub stats)
    -> OCR x2 -> parse_equipment -> GearScoreEvaluator -> publishers

A cycle whose source is not ready is skipped, never fatal. Cycles never
overlap; the next wait only starts once the previous cycle finished.

Usage:
    scanner = EquipmentScanner(source, TesseractOCR(), load_scan_config(),
                               publishers=[ConsoleDisplay()])
    scanner.run()          # blocks until scanner.stop()
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Protocol

import numpy as np

from gearscan.debug_screenshot import save_debug_images
from gearscan.equipment_parser import Equipment, parse_equipment
from gearscan.frame_buffer import FrameBuffer, RawFrame, SourceUnavailable
from gearscan.gear_score import GearScoreEvaluator, GearScoreResult
from gearscan.image_processing import (
    DimensionMismatch,
    alpha_contrast,
    black_mask,
    extract_region,
    multiply_blend,
    to_three_channel,
)
from gearscan.scan_config import ScanConfig

logger = logging.getLogger(__name__)


class ScannerState(Enum):
    WAITING_FOR_SOURCE = "waiting_for_source"
    SCANNING = "scanning"


class OcrEngine(Protocol):
    def initialize(self, language_id: str) -> None: ...
    def set_image(self, image: np.ndarray) -> None: ...
    def get_text(self) -> str: ...


class ResultPublisher(Protocol):
    def publish(self, result: ScanResult) -> None: ...


@dataclass(frozen=True)
class ScanResult:
    """Everything one cycle produced."""
    equipment: Equipment
    gear_score: GearScoreResult
    raw_text: str
    region_images: dict[str, np.ndarray] = field(default_factory=dict)
    frame_size: tuple[int, int] = (0, 0)
    timestamp: datetime = field(default_factory=datetime.now)


class EquipmentScanner:
    """Periodic capture -> OCR -> gear score loop."""

    def __init__(
        self,
        source: Any,
        ocr: OcrEngine,
        config: ScanConfig,
        publishers: Iterable[ResultPublisher] | None = None,
        evaluator: GearScoreEvaluator | None = None,
        frame_buffer: FrameBuffer | None = None,
    ) -> None:
        self.source = source
        self.ocr = ocr
        self.config = config
        self.publishers = list(publishers or [])
        self.evaluator = evaluator or GearScoreEvaluator()
        self.frame_buffer = frame_buffer or FrameBuffer()

        self.state = ScannerState.WAITING_FOR_SOURCE
        self.last_result: ScanResult | None = None
        self.cycle_count = 0

        self._ocr_initialized = False
        self._stop_event = threading.Event()
        self._cycle_lock = threading.Lock()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def initialize(self) -> None:
        """Initialize the OCR engine with the configured language (idempotent)."""
        if not self._ocr_initialized:
            self.ocr.initialize(self.config.language_id)
            self._ocr_initialized = True

    def stop(self) -> None:
        """Ask run() to return after the current cycle or wait."""
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def is_source_ready(self) -> bool:
        if self.source is None:
            return False
        try:
            return bool(self.source.is_ready())
        except Exception as e:
            logger.debug(f"[SCANNER] Source readiness check failed: {e}")
            return False

    def wait_for_source(self) -> bool:
        """
        Block until the capture source is ready (or stop() is called).

        Returns:
            True once the scanner switched to SCANNING, False if stopped first
        """
        logged = False
        while not self.stopped:
            if self.is_source_ready():
                self.state = ScannerState.SCANNING
                logger.info("[SCANNER] Capture source ready, scanning")
                return True
            if not logged:
                logger.info(f"[SCANNER] Waiting for capture source ({self.config.window_title})...")
                logged = True
            self._stop_event.wait(self.config.source_poll_interval)
        return False

    def run(self) -> None:
        """Wait for the source, then scan every scan_interval_seconds until stop()."""
        self.initialize()
        logger.info(f"[SCANNER] Starting scan loop (interval: {self.config.scan_interval_seconds}s)")

        if not self.wait_for_source():
            logger.info("[SCANNER] Stopped before the capture source became ready")
            return

        while not self.stopped:
            try:
                self.scan_once()
            except Exception as e:
                logger.error(f"[SCANNER] [{self.cycle_count}] ERROR: {e}")

            self._stop_event.wait(self.config.scan_interval_seconds)

        logger.info("[SCANNER] Scan loop stopped")

    # =========================================================================
    # One cycle
    # =========================================================================

    def scan_once(self) -> ScanResult | None:
        """
        Run one full cycle and publish its result.

        Returns:
            ScanResult, or None when the cycle was skipped (source not ready,
            region size mismatch, or another cycle still running)
        """
        if not self._cycle_lock.acquire(blocking=False):
            logger.debug("[SCANNER] SKIP: previous cycle still running")
            return None

        try:
            self.cycle_count += 1
            iteration = self.cycle_count

            try:
                frame = self.capture()
            except SourceUnavailable as e:
                logger.info(f"[SCANNER] [{iteration}] Capture source not valid, skipping: {e}")
                return None

            try:
                region_images = self.extract_regions(frame)
            except DimensionMismatch as e:
                logger.error(f"[SCANNER] [{iteration}] Region processing failed: {e}")
                return None

            raw_text = self.read_text(region_images)
            equipment = parse_equipment(raw_text)
            gear_score = self.evaluator.evaluate(equipment)

            result = ScanResult(
                equipment=equipment,
                gear_score=gear_score,
                raw_text=raw_text,
                region_images=region_images,
                frame_size=(frame.width, frame.height),
            )
            self.last_result = result
            logger.debug(
                f"[SCANNER] [{iteration}] {equipment.rank.display_name}, {len(equipment.stats)} stats, "
                f"total={gear_score.total:.2f}"
            )

            if self.config.save_debug_images:
                self._save_debug_images(region_images)

            self.publish(result)
            return result
        finally:
            self._cycle_lock.release()

    def capture(self) -> RawFrame:
        """
        Refresh the source and copy its pixels through the frame buffer.

        Raises:
            SourceUnavailable: Source missing, not ready, or capture failed
        """
        if not self.is_source_ready():
            raise SourceUnavailable("Capture source is not ready")

        refresh = getattr(self.source, "refresh", None)
        if refresh is not None:
            try:
                refresh()
            except RuntimeError as e:
                raise SourceUnavailable(str(e)) from e

        return self.frame_buffer.update(self.source)

    def extract_regions(self, frame: RawFrame) -> dict[str, np.ndarray]:
        """
        Build the OCR images for both regions.

        Returns:
            {"main_stat": BGR image, "sub_stats": BGR image,
             "sub_stats_text_mask": BGRA, "sub_stats_alpha_mask": BGRA}

        Raises:
            DimensionMismatch: If the sub-stats masks disagree in size
        """
        config = self.config
        reference = config.reference_resolution

        main_crop = extract_region(frame.pixels, config.main_stat_region, reference)
        main_stat = to_three_channel(black_mask(main_crop, config.black_threshold, invert=True))

        sub_crop = extract_region(frame.pixels, config.sub_stats_region, reference)
        text_mask = black_mask(sub_crop, config.black_threshold, invert=True)
        alpha_mask = alpha_contrast(sub_crop, config.alpha_threshold)
        sub_stats = to_three_channel(multiply_blend(text_mask, alpha_mask))

        return {
            "main_stat": main_stat,
            "sub_stats": sub_stats,
            "sub_stats_text_mask": text_mask,
            "sub_stats_alpha_mask": alpha_mask,
        }

    def read_text(self, region_images: dict[str, np.ndarray]) -> str:
        """OCR both regions: main stat text, newline, sub-stats text."""
        self.initialize()

        self.ocr.set_image(region_images["main_stat"])
        text = (self.ocr.get_text() or "").strip() + "\n"

        self.ocr.set_image(region_images["sub_stats"])
        text += self.ocr.get_text() or ""
        return text

    def publish(self, result: ScanResult) -> None:
        """Push a result to every publisher; a failing publisher never stops the loop."""
        for publisher in self.publishers:
            try:
                publisher.publish(result)
            except Exception as e:
                logger.error(f"[SCANNER] Publisher {type(publisher).__name__} failed: {e}")

    def _save_debug_images(self, region_images: dict[str, np.ndarray]) -> None:
        try:
            save_debug_images(region_images, "regions")
        except OSError as e:
            logger.warning(f"[SCANNER] Could not save debug images: {e}")
