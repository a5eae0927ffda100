#!/usr/bin/env python3
"""Development entry point for gaiad-exporter."""

import sys
from pathlib import Path

# Add src to Python path
src_dir = Path(__file__).parent / "src"
sys.path.insert(0, str(src_dir))

# Import and run - pass through command line arguments
from gaiad_exporter.cli import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
