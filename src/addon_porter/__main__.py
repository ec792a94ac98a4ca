"""
Entry point for module execution (``python -m addon_porter``).

This module delegates execution to the CLI handler in ``addon_porter.cli.__main__``.
"""

import sys
from addon_porter.cli.__main__ import main

if __name__ == "__main__":
  sys.exit(main())
