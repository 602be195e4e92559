#!/usr/bin/env python3
"""
Doubles Rotation Generator
Entry point for the rotation scheduling system.
"""

import sys

if __name__ == "__main__":
    from doubles_scheduler.cli import main

    sys.exit(main())
