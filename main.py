#!/usr/bin/env python3
"""
Opening Hours Engine
Main entry point for the command line.
"""

import sys
from pathlib import Path

# Add openhours package to path
sys.path.insert(0, str(Path(__file__).parent))

from openhours.cli import main

if __name__ == "__main__":
    main()
