#!/usr/bin/env python3
"""
Setup script for the OpenProcessing downloader.
Installs the package, Playwright and the Chromium browser used by term search.
"""

import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent

STEPS = [
    (
        "Installing openprocessing-downloader and its dependencies",
        [sys.executable, "-m", "pip", "install", "-e", str(ROOT)],
    ),
    # Only term search drives a browser; API downloads need no browser binary
    ("Installing Chromium browser", [sys.executable, "-m", "playwright", "install", "chromium"]),
]


def step(description, cmd):
    """Run one install step with its output streamed to the terminal."""
    print(f"\n📦 {description}...")
    returncode = subprocess.call(cmd)
    if returncode != 0:
        print(f"❌ {description} failed (exit status {returncode})")
        return False
    print(f"✅ {description} completed")
    return True


def main():
    print("🚀 Setting up the OpenProcessing downloader...")

    if sys.version_info < (3, 9):
        print("❌ Python 3.9+ required")
        sys.exit(1)

    for description, cmd in STEPS:
        if not step(description, cmd):
            sys.exit(1)

    print("\n✅ Setup complete! You can now run:")
    print("   openprocessing-download --term unusual --output ./downloads")
    print("   openprocessing-download --user-id 22192 --skip-forks --quiet")


if __name__ == "__main__":
    main()
