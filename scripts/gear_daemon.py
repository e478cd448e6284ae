#!/usr/bin/env python3
"""
Gear Score Daemon

Runs continuously, reading the equipment tooltip of the game window every
second (SCAN_INTERVAL). Each scan:
- Captures the window and copies it through the frame buffer
- Masks the main stat and sub stat regions for OCR
- Parses rank and stats from the OCR text
- Scores the stats and classifies the totals against the rank's range

Results are logged and, unless --no-dashboard, served by the dashboard.

Press Ctrl+C to stop.

Usage:
    python scripts/gear_daemon.py [--interval SECONDS] [--debug] [--no-dashboard] [--save-debug-images]
"""

import sys
import argparse
import logging
from pathlib import Path
from datetime import datetime

sys.path.insert(0, str(Path(__file__).parent.parent))

from gearscan.equipment_scanner import EquipmentScanner
from gearscan.result_display import ConsoleDisplay
from gearscan.scan_config import load_scan_config
from gearscan.tesseract_ocr import TesseractOCR

from config import DASHBOARD_ENABLED, DASHBOARD_PORT


class GearDaemon:
    def __init__(
        self,
        interval: float | None = None,
        debug: bool = False,
        dashboard: bool = DASHBOARD_ENABLED,
        save_debug_images: bool | None = None,
    ):
        self.config = load_scan_config(
            scan_interval_seconds=interval,
            save_debug_images=save_debug_images,
        )
        self.dashboard = dashboard
        self.dashboard_port: int | None = None
        self.scanner: EquipmentScanner | None = None

        # Setup logging
        self.log_dir = Path('logs')
        self.log_dir.mkdir(exist_ok=True)
        self.log_file = self.log_dir / f"daemon_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

        # Track current log file (Windows doesn't support symlinks without admin)
        self.current_log_link = self.log_dir / 'current_daemon.log'

        log_level = logging.DEBUG if debug else logging.INFO
        logging.basicConfig(
            level=log_level,
            format='%(asctime)s [%(levelname)s] %(message)s',
            handlers=[
                logging.FileHandler(self.log_file),
                logging.FileHandler(self.current_log_link, mode='w'),
                logging.StreamHandler()
            ]
        )
        self.logger = logging.getLogger('GearDaemon')

    def initialize(self):
        """Set up OCR, the window source and publishers."""
        # Windows-only import, kept out of module import so --help works anywhere
        from gearscan.window_capture import WindowCaptureSource

        config = self.config
        self.logger.info(f"Window: {config.window_title!r}, interval: {config.scan_interval_seconds}s")
        self.logger.info(f"Regions: main={config.main_stat_region}, sub={config.sub_stats_region}")

        ocr = TesseractOCR(tesseract_cmd=config.tesseract_cmd, config=config.tesseract_config)
        publishers = [ConsoleDisplay(self.logger)]

        if self.dashboard:
            from dashboard.server import ScanResultStore, start_dashboard_server
            store = ScanResultStore(config)
            publishers.append(store)
            self.dashboard_port = start_dashboard_server(store, port=DASHBOARD_PORT)

        self.scanner = EquipmentScanner(
            WindowCaptureSource(config.window_title),
            ocr,
            config,
            publishers=publishers,
        )
        self.scanner.initialize()

    def run(self):
        if self.scanner is None:
            self.initialize()
        self.logger.info("Gear score daemon started. Press Ctrl+C to stop.")
        self.scanner.run()

    def stop(self):
        if self.scanner is not None:
            self.scanner.stop()


def main():
    parser = argparse.ArgumentParser(
        description="Equipment gear score daemon"
    )
    parser.add_argument(
        '--interval',
        type=float,
        default=None,
        help="Scan interval in seconds (default: SCAN_INTERVAL from config)"
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help="Enable debug logging (logs every parsed stat)"
    )
    parser.add_argument(
        '--no-dashboard',
        action='store_true',
        help="Do not start the dashboard server"
    )
    parser.add_argument(
        '--save-debug-images',
        action='store_true',
        default=None,
        help="Write region images of every scan to debug/regions/"
    )

    args = parser.parse_args()

    daemon = GearDaemon(
        interval=args.interval,
        debug=args.debug,
        dashboard=DASHBOARD_ENABLED and not args.no_dashboard,
        save_debug_images=args.save_debug_images,
    )

    try:
        daemon.initialize()
        daemon.run()
    except KeyboardInterrupt:
        daemon.stop()
        print("\n\nStopped by user")
        sys.exit(0)
    except Exception as e:
        print(f"\nERROR: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
