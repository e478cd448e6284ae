"""
Run one scan on a saved screenshot and print the result.

Usage:
    python scripts/scan_screenshot.py screenshots/screenshot_20251209_060553.png
    python scripts/scan_screenshot.py shot.png --save-regions   # also dump region images to debug/regions/
"""

import sys
import argparse
import logging
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from gearscan.debug_screenshot import save_debug_images
from gearscan.equipment_scanner import EquipmentScanner
from gearscan.result_display import gear_score_summary
from gearscan.scan_config import load_scan_config
from gearscan.screenshot_source import ScreenshotFileSource
from gearscan.tesseract_ocr import TesseractOCR


def main():
    parser = argparse.ArgumentParser(description="Scan an equipment tooltip screenshot")
    parser.add_argument('image', help="Path to a screenshot of the game window")
    parser.add_argument('--save-regions', action='store_true', help="Save processed region images")
    parser.add_argument('--debug', action='store_true', help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format='%(asctime)s [%(levelname)s] %(message)s',
    )

    config = load_scan_config()
    source = ScreenshotFileSource.from_file(args.image)
    ocr = TesseractOCR(tesseract_cmd=config.tesseract_cmd, config=config.tesseract_config)
    scanner = EquipmentScanner(source, ocr, config)
    scanner.initialize()

    result = scanner.scan_once()
    if result is None:
        print("Scan skipped (see log)")
        sys.exit(1)

    print("=== OCR text ===")
    print(result.raw_text)
    print()
    print(f"Rank: {result.equipment.rank.display_name}")
    for stat in result.equipment.stats:
        print(f"  {stat}")

    summary = gear_score_summary(result.gear_score)
    print()
    print(f"Gear score per stat: {', '.join(summary['per_stat'])}")
    print(f"Total:    {summary['total']} ({summary['total_classification']}, {summary['total_color']})")
    print(f"Adjusted: {summary['adjusted_total']} ({summary['adjusted_classification']}, {summary['adjusted_color']})")

    if args.save_regions:
        for path in save_debug_images(result.region_images, "regions"):
            print(f"Saved: {path}")


if __name__ == '__main__':
    main()
