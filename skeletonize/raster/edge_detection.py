import logging
from typing import Optional

import numpy as np
import numpy.typing as npt
from scipy import ndimage

from skeletonize.core.errors import LumaConversionError, LumaConversionErrorKind
from skeletonize.core.policy import ForegroundColor
from skeletonize.raster.formats import as_luma8

logger = logging.getLogger(__name__)

# 3x3 gradient operators, applied as correlation (top-left tap first)
# fmt: off
SOBEL_NORTH = np.array([
    [1.0, 2.0, 1.0],
    [0.0, 0.0, 0.0],
    [-1.0, -2.0, -1.0],
])
SOBEL_SOUTH = np.array([
    [-1.0, -2.0, -1.0],
    [0.0, 0.0, 0.0],
    [1.0, 2.0, 1.0],
])
SOBEL_EAST = np.array([
    [-1.0, 0.0, 1.0],
    [-2.0, 0.0, 2.0],
    [-1.0, 0.0, 1.0],
])
SOBEL_WEST = np.array([
    [1.0, 0.0, -1.0],
    [2.0, 0.0, -2.0],
    [1.0, 0.0, -1.0],
])
# fmt: on


def filter3x3(
    img: npt.NDArray[np.uint8], kernel: npt.NDArray[np.float64]
) -> npt.NDArray[np.uint8]:
    """Correlate `img` with a 3x3 kernel and clamp the result to 8 bits.
    Pixels beyond the border repeat the nearest edge pixel.
    """
    response = ndimage.correlate(img.astype(np.float64), kernel, mode="nearest")
    return np.clip(response, 0.0, 255.0).astype(np.uint8)


def _output_view(
    out: Optional[npt.NDArray[np.uint8]], shape: tuple[int, ...]
) -> npt.NDArray[np.uint8]:
    if out is None:
        return np.empty(shape, dtype=np.uint8)
    view = as_luma8(out, LumaConversionErrorKind.SOBEL_MUTABLE_LUMA, writeable=True)
    if view.shape != shape:
        raise LumaConversionError(
            LumaConversionErrorKind.SOBEL_MUTABLE_LUMA,
            f"output shape {view.shape} does not match input shape {shape}",
        )
    return view


def _finish(
    magnitude: npt.NDArray[np.float64],
    foreground: ForegroundColor,
    threshold: Optional[float],
    out: npt.NDArray[np.uint8],
) -> npt.NDArray[np.uint8]:
    """Write the gradient magnitude (0 to sqrt(2)) into `out`, either
    binarized against `threshold` or scaled to 0..255.
    """
    if threshold is not None:
        out[...] = np.where(
            magnitude < threshold, foreground.background, foreground.foreground
        )
        return out

    scaled = np.clip(np.floor(magnitude * 255.0 + 0.5), 0.0, 255.0).astype(np.uint8)
    if foreground == ForegroundColor.BLACK:
        # strong edges must come out dark to read as filled
        scaled = 255 - scaled
    out[...] = scaled
    return out


def sobel(
    img: npt.NDArray[np.uint8],
    foreground: ForegroundColor,
    threshold: Optional[float] = None,
    out: Optional[npt.NDArray[np.uint8]] = None,
) -> npt.NDArray[np.uint8]:
    """Detect edges using the SOBEL_NORTH and SOBEL_EAST operators.

    `threshold` (0.0 to 1.0) binarizes the result: magnitudes below it
    become the background color, the rest the foreground color. Without
    it, the scaled magnitude is returned as a grayscale image whose
    edges take the foreground's shade. `img` is not modified; the
    result is written to `out` when given, else to a new array.
    """
    luma = as_luma8(img, LumaConversionErrorKind.SOBEL_LUMA)
    result = _output_view(out, luma.shape)
    logger.debug("Running 2-kernel Sobel on %s raster", luma.shape)

    up = filter3x3(luma, SOBEL_NORTH).astype(np.float64) / 255.0
    right = filter3x3(luma, SOBEL_EAST).astype(np.float64) / 255.0
    return _finish(np.hypot(up, right), foreground, threshold, result)


def sobel4(
    img: npt.NDArray[np.uint8],
    foreground: ForegroundColor,
    threshold: Optional[float] = None,
    out: Optional[npt.NDArray[np.uint8]] = None,
) -> npt.NDArray[np.uint8]:
    """Detect edges using all four Sobel operators: SOBEL_NORTH,
    SOBEL_SOUTH, SOBEL_EAST and SOBEL_WEST. Unlike `sobel`, gradients
    of both signs contribute. Arguments as for `sobel`.
    """
    luma = as_luma8(img, LumaConversionErrorKind.SOBEL_LUMA)
    result = _output_view(out, luma.shape)
    logger.debug("Running 4-kernel Sobel on %s raster", luma.shape)

    up = filter3x3(luma, SOBEL_NORTH).astype(np.float64)
    down = filter3x3(luma, SOBEL_SOUTH).astype(np.float64)
    right = filter3x3(luma, SOBEL_EAST).astype(np.float64)
    left = filter3x3(luma, SOBEL_WEST).astype(np.float64)

    vertical = (up - down) / 255.0
    horizontal = (right - left) / 255.0
    return _finish(np.hypot(vertical, horizontal), foreground, threshold, result)
