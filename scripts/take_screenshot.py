"""
Simple script to capture the game window and save it to the screenshots folder.
Usage: python scripts/take_screenshot.py [filename]
If no filename provided, uses timestamp.

The saved PNG is top-down BGRA, ready for scripts/scan_screenshot.py.
"""

import sys
import os

# Add project root to path
script_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(script_dir)
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from datetime import datetime
import cv2

from config import WINDOW_TITLE
from gearscan.frame_buffer import FrameBuffer
from gearscan.window_capture import WindowCaptureSource


def main():
    # Get filename from command line or use timestamp
    if len(sys.argv) > 1:
        filename = sys.argv[1]
        # Add .png if not present
        if not filename.endswith('.png'):
            filename += '.png'
    else:
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        filename = f'screenshot_{timestamp}.png'

    # Ensure screenshots directory exists
    screenshots_dir = 'screenshots'
    os.makedirs(screenshots_dir, exist_ok=True)

    # Full path
    filepath = os.path.join(screenshots_dir, filename)

    # Take screenshot
    print(f"Capturing {WINDOW_TITLE!r}...")
    source = WindowCaptureSource(WINDOW_TITLE)
    if not source.is_ready():
        print("Window not found or minimized")
        sys.exit(1)
    source.refresh()
    frame = FrameBuffer().update(source)

    # Save
    cv2.imwrite(filepath, frame.pixels)
    print(f"Saved to: {filepath}")
    print(f"Size: {frame.width}x{frame.height}")


if __name__ == '__main__':
    main()
