#!/usr/bin/env python3
"""
run_orion.py — convenience wrapper for the ORION CLI.
All logic is in orion/cli.py.

Usage:
    python run_orion.py chat
    python run_orion.py history
    python run_orion.py serve --port 8770
"""

import sys

from orion.cli import main

if __name__ == '__main__':
    sys.exit(main())
