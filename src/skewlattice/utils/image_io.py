"""
SkewLattice - Image file input/output

Reads and writes DataFields as ``.npy`` arrays (exact float samples) or
raster images through OpenCV. Calibration and metadata travel in a JSON
sidecar next to the data file.
"""

import json
import os
from pathlib import Path
from typing import Any

import cv2
import numpy as np

from skewlattice.services.data_field import DataField
from skewlattice.utils.exceptions import ImageFormatError
from skewlattice.utils.logger import logger

RASTER_SUFFIXES = frozenset({".png", ".tif", ".tiff", ".bmp", ".jpg", ".jpeg"})


def sidecar_path(path: Path) -> Path:
    """JSON sidecar holding calibration for ``path``."""
    return path.with_suffix(path.suffix + ".json")


def _to_grey(data: np.ndarray) -> np.ndarray:
    if data.ndim == 3:
        if data.shape[2] == 4:
            data = cv2.cvtColor(data, cv2.COLOR_BGRA2GRAY)
        else:
            data = cv2.cvtColor(data, cv2.COLOR_BGR2GRAY)
    return data.astype(np.float64)


def _read_sidecar(path: Path) -> dict[str, Any]:
    side = sidecar_path(path)
    if not side.exists():
        return {}
    try:
        with open(side, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ImageFormatError(str(side), f"invalid calibration sidecar: {e}") from e


def load_field(
    path: "str | os.PathLike[str]",
    xreal: float | None = None,
    yreal: float | None = None,
    xy_unit: str | None = None,
    z_unit: str | None = None,
) -> DataField:
    """Load a DataField from disk.

    Explicit arguments override values found in the JSON sidecar; with
    neither, one pixel is one unit.

    Raises:
        ImageFormatError: If the file is missing, unreadable or not 2D
    """
    path = Path(path)
    if not path.exists():
        raise ImageFormatError(str(path), "file not found")

    suffix = path.suffix.lower()
    if suffix == ".npy":
        try:
            data = np.load(path, allow_pickle=False)
        except (OSError, ValueError) as e:
            raise ImageFormatError(str(path), str(e)) from e
    elif suffix in RASTER_SUFFIXES:
        data = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        if data is None:
            raise ImageFormatError(str(path), "OpenCV could not decode the image")
        data = _to_grey(data)
    else:
        raise ImageFormatError(str(path), f"unsupported extension '{suffix}'")

    if data.ndim != 2:
        raise ImageFormatError(str(path), f"expected 2D data, got shape {data.shape}")

    side = _read_sidecar(path)
    yres, xres = data.shape
    field = DataField(
        np.asarray(data, dtype=np.float64),
        xreal=xreal or side.get("xreal", float(xres)),
        yreal=yreal or side.get("yreal", float(yres)),
        xoffset=side.get("xoffset", 0.0),
        yoffset=side.get("yoffset", 0.0),
        xy_unit=xy_unit or side.get("xy_unit", "px"),
        z_unit=z_unit or side.get("z_unit", ""),
        title=side.get("title", path.stem),
        meta=side.get("meta", {}),
    )
    logger.debug(f"Loaded {path.name}: {xres}x{yres}")
    return field


def save_field(field: DataField, path: "str | os.PathLike[str]", provenance: str = "") -> Path:
    """Write ``field`` and its JSON sidecar.

    ``.npy`` keeps the float samples; raster formats are normalised to
    the full 16-bit range (8-bit for JPEG/BMP).

    Raises:
        ImageFormatError: If the extension is unsupported or writing fails
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".npy":
        try:
            np.save(path, field.data)
        except OSError as e:
            raise ImageFormatError(str(path), str(e)) from e
    elif suffix in RASTER_SUFFIXES:
        depth = cv2.CV_16U if suffix in {".png", ".tif", ".tiff"} else cv2.CV_8U
        top = 65535 if depth == cv2.CV_16U else 255
        raster = cv2.normalize(field.data, None, 0, top, cv2.NORM_MINMAX, dtype=depth)
        if not cv2.imwrite(str(path), raster):
            raise ImageFormatError(str(path), "OpenCV could not write the image")
    else:
        raise ImageFormatError(str(path), f"unsupported extension '{suffix}'")

    side = {
        "xreal": field.xreal,
        "yreal": field.yreal,
        "xoffset": field.xoffset,
        "yoffset": field.yoffset,
        "xy_unit": field.xy_unit,
        "z_unit": field.z_unit,
        "title": field.title,
        "meta": field.meta,
    }
    if provenance:
        side["provenance"] = provenance
    try:
        with open(sidecar_path(path), "w", encoding="utf-8") as f:
            json.dump(side, f, indent=2, ensure_ascii=False)
    except OSError as e:
        raise ImageFormatError(str(path), f"could not write sidecar: {e}") from e

    logger.info(f"Saved {field.xres}x{field.yres} field to {path}")
    return path
