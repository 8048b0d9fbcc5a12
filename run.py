#!/usr/bin/env python3
"""
fsdbg Filesystem Archive Debugger - Launcher
Runs the CLI straight from a source checkout, without installing.

Usage:
    python run.py inspect initramfs.img
    python run.py verify rootfs.cpio.gz --type rootfs
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))


def check_dependencies():
    """Check if required dependencies are installed"""
    missing = []

    for module in ("click", "rich", "zstandard"):
        try:
            __import__(module)
        except ImportError:
            missing.append(module)

    return missing


def main():
    """Main launcher entry point"""
    missing = check_dependencies()
    if missing:
        print(f"Missing dependencies: {', '.join(missing)}")
        print("Install them with: pip install -r requirements.txt")
        sys.exit(2)

    from fsdbg.ui.cli import main as cli_main
    cli_main()


if __name__ == "__main__":
    main()
