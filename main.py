#!/usr/bin/env python3
"""Solix shell launcher: `python3 main.py [-c COMMAND] [-v] [--no-history]`."""
import sys

from solix.shell import main

if __name__ == "__main__":
    sys.exit(main())
