#!/usr/bin/env python3
"""
SkewLattice - Entry point for python -m skewlattice

This module allows the package to be run as a module:
    python -m skewlattice
"""

import sys

from skewlattice import main

if __name__ == "__main__":
    sys.exit(main())
