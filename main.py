#!/usr/bin/env python3
"""
monover - Main Entry Point

Calculates semantic versions for the projects of a monorepo from
git history alone.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from monover.cli import main

if __name__ == "__main__":
    main()
