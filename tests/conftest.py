"""Pytest configuration for the freecoq test suite."""

import sys
from pathlib import Path

# Make the freecoq package importable without installing it
sys.path.insert(0, str(Path(__file__).parent.parent))
