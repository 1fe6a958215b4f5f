#!/usr/bin/env python3
"""
SkewLattice CLI - lattice skew correction from the terminal.

Usage:
    python -m skewlattice <command> [options]

Commands:
    correct     Apply X/Y skew and write the corrected image
    spectrum    Write the centered FFT modulus of an image
    angles      Refine four lattice peaks and report the angles between them

Examples:
    # Correct a scan 512 nm wide
    skewlattice-cli correct scan.npy -o fixed.npy --xskew 4.5 --yskew -1 --real-size 512e-9

    # Inspect the spectrum after correction
    skewlattice-cli spectrum fixed.npy -o fixed_fft.png

    # Measure angles between four first-ring peaks of the corrected spectrum
    skewlattice-cli angles scan.npy --xskew 4.5 \\
        --peak 0.1,0 --peak 0.05,0.087 --peak=-0.05,0.087 --peak=-0.1,0
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from skewlattice.config import DEFAULT_INTERPOLATION, LOG_FORMAT, ZOOM_LEVELS
from skewlattice.utils.i18n import _

# ---------------------------------------------------------------------------
# Argument helpers
# ---------------------------------------------------------------------------


def _parse_point(text: str) -> tuple[float, float]:
    """Parse an ``X,Y`` physical coordinate.

    Raises:
        argparse.ArgumentTypeError: If the text is not two comma-separated numbers
    """
    parts = [p.strip() for p in text.split(",")]
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"Invalid point '{text}'. Use X,Y such as '0.1,-0.05'.")
    try:
        return float(parts[0]), float(parts[1])
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid point '{text}'. Use X,Y such as '0.1,-0.05'."
        ) from None


def _parse_real_size(text: str) -> tuple[float, float]:
    """Parse ``W`` or ``W,H`` physical size; a single value is used for both axes."""
    parts = [p.strip() for p in text.split(",")]
    try:
        values = [float(p) for p in parts]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid size '{text}'.") from None
    if len(values) == 1:
        values *= 2
    if len(values) != 2 or min(values) <= 0:
        raise argparse.ArgumentTypeError(f"Invalid size '{text}'. Use W or W,H (positive).")
    return values[0], values[1]


# ---------------------------------------------------------------------------
# Argument parser construction
# ---------------------------------------------------------------------------


def _add_input_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument("input", type=Path, help=_("Input image (.npy, .png, .tif)"))
    p.add_argument(
        "--real-size",
        type=_parse_real_size,
        default=None,
        metavar="W[,H]",
        help=_("Physical size of the scan. Default: sidecar or 1 unit per pixel."),
    )
    p.add_argument("--unit", type=str, default=None, help=_("Lateral unit (e.g. 'm')"))


def _add_skew_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument("--xskew", type=float, default=0.0, help=_("Horizontal skew in degrees"))
    p.add_argument("--yskew", type=float, default=0.0, help=_("Vertical skew in degrees"))
    p.add_argument(
        "--interpolation",
        type=str,
        default=DEFAULT_INTERPOLATION,
        help=_("Resampling kernel (round, linear, key, schaum, bspline). Default: linear."),
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with subcommands."""
    p = argparse.ArgumentParser(
        prog="skewlattice-cli",
        description="SkewLattice - correct lateral drift skew in SPM images.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("-v", "--verbose", action="store_true", help=_("Verbose logging (DEBUG)"))

    sub = p.add_subparsers(dest="command", help=_("Available commands"))

    # --- correct ---
    correct_p = sub.add_parser("correct", help=_("Apply skew correction"))
    _add_input_arguments(correct_p)
    correct_p.add_argument(
        "-o", "--output", type=Path, required=True, help=_("Output file (.npy, .png, .tif)")
    )
    _add_skew_arguments(correct_p)

    # --- spectrum ---
    spectrum_p = sub.add_parser("spectrum", help=_("Write the centered FFT modulus"))
    _add_input_arguments(spectrum_p)
    spectrum_p.add_argument("-o", "--output", type=Path, required=True, help=_("Output file"))

    # --- angles ---
    angles_p = sub.add_parser("angles", help=_("Measure angles between four lattice peaks"))
    _add_input_arguments(angles_p)
    _add_skew_arguments(angles_p)
    angles_p.add_argument(
        "--peak",
        type=_parse_point,
        action="append",
        required=True,
        metavar="X,Y",
        help=_("Approximate peak position in the corrected spectrum (give four, in order)"),
    )
    angles_p.add_argument(
        "--radius",
        type=int,
        default=None,
        help=_("Peak search radius in pixels. Default: saved setting."),
    )
    angles_p.add_argument(
        "--zoom", type=int, choices=ZOOM_LEVELS, default=1, help=_("Display zoom")
    )
    angles_p.add_argument(
        "--lower",
        type=float,
        default=None,
        help=_("Lower display bound of the corrected spectrum (saved). Default: saved setting."),
    )
    angles_p.add_argument(
        "--upper",
        type=float,
        default=None,
        help=_("Upper display bound of the corrected spectrum (saved). Default: saved setting."),
    )

    return p


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _load(args):
    from skewlattice.utils.image_io import load_field

    xreal, yreal = args.real_size if args.real_size else (None, None)
    return load_field(args.input, xreal=xreal, yreal=yreal, xy_unit=args.unit)


def _cmd_correct(args, logger) -> int:
    """Handle the 'correct' command."""
    from skewlattice.services.session import create_output, set_skew, start_session
    from skewlattice.utils.image_io import save_field

    t0 = time.perf_counter()
    state = start_session(_load(args), interpolation=args.interpolation)
    state = set_skew(state, args.xskew, args.yskew)
    output = create_output(state)
    save_field(output.field, args.output, provenance=output.provenance)
    logger.info(
        f"Corrected {state.original.xres}x{state.original.yres} -> "
        f"{output.field.xres}x{output.field.yres} in {time.perf_counter() - t0:.2f}s"
    )
    return 0


def _cmd_spectrum(args, logger) -> int:
    """Handle the 'spectrum' command."""
    from skewlattice.services.spectrum import build_spectrum
    from skewlattice.utils.image_io import save_field

    spectrum = build_spectrum(_load(args))
    save_field(spectrum, args.output)
    return 0


def _cmd_angles(args, logger) -> int:
    """Handle the 'angles' command."""
    from skewlattice.services.peaks import Point2D
    from skewlattice.services.session import (
        ImageRole,
        select_peak,
        set_role,
        set_skew,
        set_zoom,
        start_session,
    )
    from skewlattice.utils.config_manager import get_config_manager

    if len(args.peak) != 4:
        logger.error(f"Exactly four peaks are required, got {len(args.peak)}")
        return 2

    config = get_config_manager()
    radius = args.radius if args.radius is not None else config.get_peak_radius()

    role = ImageRole.CORRECTED_SPECTRUM
    if args.lower is not None or args.upper is not None:
        config.set_clamp_bounds(role, args.lower, args.upper)
    lower, upper = config.get_clamp_bounds(role)
    if lower is not None or upper is not None:
        logger.info(f"Display range for {role.value}: {lower} .. {upper}")

    state = start_session(_load(args), radius=radius, interpolation=args.interpolation)
    state = set_role(state, role, lower, upper)
    state = set_skew(state, args.xskew, args.yskew)
    state = set_zoom(state, args.zoom)
    for index, (x, y) in enumerate(args.peak):
        state = select_peak(state, index, Point2D(x, y))

    for index, peak in enumerate(state.peaks, start=1):
        print(f"Peak {index}: x={peak.x:.6g} y={peak.y:.6g} value={peak.value:.6g}")

    label123, label234 = state.angles.format()
    print(label123)
    print(label234)
    return 0


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    from skewlattice.utils.exceptions import SkewLatticeError

    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S")
    logging.getLogger().setLevel(level)
    logger = logging.getLogger("skewlattice.cli")

    if not args.input.exists():
        print(f"Error: {args.input} not found", file=sys.stderr)
        return 1

    handlers = {
        "correct": _cmd_correct,
        "spectrum": _cmd_spectrum,
        "angles": _cmd_angles,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args, logger)
    except SkewLatticeError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
