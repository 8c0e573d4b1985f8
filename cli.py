#!/usr/bin/env python3
"""
Run the ``lighter-tx`` command from a source checkout.

    python cli.py limit --market 0 --side BUY --size 0.0001 --price 2950
"""

import os
import sys

# ── Bootstrap ──────────────────────────────────────────────────────────────
# Ensure the package root is on sys.path so ``lighter_tx`` can be imported
# when this script is executed directly (``python cli.py …``).
SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
if SCRIPT_DIR not in sys.path:
    sys.path.insert(0, SCRIPT_DIR)

from lighter_tx.cli import main

if __name__ == "__main__":
    main()
