#!/usr/bin/env python3
"""Hermitcrab Entry Point"""

import sys

try:
    import aiohttp  # noqa
    import pydantic  # noqa
except ImportError as e:
    print(f"Critical import failed: {e}")
    print("Please run: pip install -e .")
    sys.exit(1)

from hermitcrab.cli import main

if __name__ == "__main__":
    sys.exit(main())
