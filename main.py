#!/usr/bin/env python3
"""
Main entry point for the interactive vind console
"""

import sys

from vind.cli.main_cli import main

if __name__ == "__main__":
    sys.exit(main())
