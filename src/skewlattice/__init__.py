"""
SkewLattice - lateral drift correction for scanning probe microscopy images

Operators mark four adjacent lattice peaks in the image spectrum, read the
angles between them and adjust two skew angles until the lattice is
regular. The package provides the numerical engine and a command line.
"""

__version__ = "1.0.0"
__author__ = "SkewLattice Developers"
__license__ = "GPL-3.0"


def main(argv: list[str] | None = None) -> int:
    """Run the command line interface."""
    from skewlattice.cli import main as cli_main

    return cli_main(argv)
