import math
from pathlib import Path
from typing import Union

import attr
from attr import field
from attr.validators import instance_of
import imageio.v3 as iio
import numpy as np
import numpy.typing as npt

from skeletonize.core.errors import LumaConversionError, LumaConversionErrorKind

PathLike = Union[str, Path]


def as_luma8(
    img: object, kind: LumaConversionErrorKind, writeable: bool = False
) -> npt.NDArray[np.uint8]:
    """Return `img` as a 2D uint8 array, or raise a LumaConversionError
    tagged with the call site `kind`. No copy is made; callers that
    mutate the result mutate `img`.
    """
    if not isinstance(img, np.ndarray):
        raise LumaConversionError(kind, f"expected a numpy array; got {type(img)}")
    if img.ndim != 2:
        raise LumaConversionError(kind, f"expected a 2D array; got {img.ndim}D")
    if img.dtype != np.uint8:
        raise LumaConversionError(kind, f"expected dtype uint8; got {img.dtype}")
    if writeable and not img.flags.writeable:
        raise LumaConversionError(kind, "array is read-only")
    return img


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero"""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def saturate_u8(value: int) -> int:
    return min(max(value, 0), 255)


@attr.frozen
class RgbRaster:
    data: npt.NDArray[np.uint8] = field(validator=instance_of(np.ndarray))

    @data.validator
    def has_correct_shape(self, attribute, value):  # type: ignore[no-untyped-def]
        array_shape = value.shape
        n_dimensions = len(array_shape)
        if not n_dimensions == 3:
            raise ValueError(
                f"RGB array expected to be 3D (rows, cols, bands); got {n_dimensions}"
            )

        n_channels = value.shape[2]
        if n_channels not in (3, 4):
            raise ValueError(
                f"RGB array expected to have 3 or 4 channels; got {n_channels}"
            )

    @property
    def red_channel(self) -> npt.NDArray[np.uint8]:
        return self.data[:, :, 0]

    @property
    def green_channel(self) -> npt.NDArray[np.uint8]:
        return self.data[:, :, 1]

    @property
    def blue_channel(self) -> npt.NDArray[np.uint8]:
        return self.data[:, :, 2]


@attr.frozen
class GrayscaleRaster:
    data: npt.NDArray[np.uint8] = field(validator=instance_of(np.ndarray))

    @data.validator
    def has_correct_shape(self, attribute, value):  # type: ignore[no-untyped-def]
        n_dimensions = len(value.shape)
        if not n_dimensions == 2:
            raise ValueError(
                f"Grayscale array expected to be 2D (rows, cols); got {n_dimensions}"
            )
        if value.dtype != np.uint8:
            raise ValueError(f"Grayscale array expected to be uint8; got {value.dtype}")

    @classmethod
    def from_path(cls, path: PathLike) -> "GrayscaleRaster":
        data = iio.imread(Path(path))
        if data.ndim == 3 and data.shape[2] in (1, 2):
            # gray or gray + alpha; alpha is ignored
            return cls(data=_to_uint8(data[:, :, 0]))
        if data.ndim == 3:
            return rgb_to_grayscale(RgbRaster(data=data))
        return cls(data=_to_uint8(data))

    @property
    def values(self) -> npt.NDArray[np.uint8]:
        return self.data


def _to_uint8(data: np.ndarray) -> npt.NDArray[np.uint8]:
    if data.dtype == np.uint8:
        return data
    if data.dtype == np.bool_:
        return data.astype(np.uint8) * 255
    if np.issubdtype(data.dtype, np.integer):
        # e.g. 16-bit PNGs
        max_value = np.iinfo(data.dtype).max
        return (data.astype(np.float64) * (255 / max_value)).round().astype(np.uint8)
    return (np.clip(data, 0.0, 1.0) * 255).round().astype(np.uint8)


def rgb_to_grayscale(rgb: RgbRaster) -> GrayscaleRaster:
    """Calculate luminance from RGB channels (alpha is ignored):
    https://en.wikipedia.org/wiki/Grayscale
    """
    luminance_data = (
        0.2126 * _to_uint8(rgb.red_channel).astype(np.float64)
        + 0.7152 * _to_uint8(rgb.green_channel).astype(np.float64)
        + 0.0722 * _to_uint8(rgb.blue_channel).astype(np.float64)
    )
    luminance_data = np.clip(np.floor(luminance_data + 0.5), 0, 255)
    return GrayscaleRaster(data=luminance_data.astype(np.uint8))


def read_luma8(path: PathLike) -> npt.NDArray[np.uint8]:
    """Read any image imageio understands as a mutable 8-bit grayscale raster"""
    return np.array(GrayscaleRaster.from_path(path).values, dtype=np.uint8, copy=True)


def write_luma8(path: PathLike, img: npt.NDArray[np.uint8]) -> None:
    iio.imwrite(Path(path), GrayscaleRaster(data=img).values)


def threshold(img: npt.NDArray[np.uint8], cutoff: float) -> None:
    """Binarize `img` in place: samples below `cutoff` (0.0 to 1.0)
    become black, everything else white.

        >>> img = np.full((1, 1), 128, dtype=np.uint8)
        >>> threshold(img, 0.5)
        >>> img
        array([[255]], dtype=uint8)
    """
    luma = as_luma8(
        img, LumaConversionErrorKind.THRESHOLD_MUTABLE_LUMA, writeable=True
    )
    level = saturate_u8(round_half_away(cutoff * 255.0))
    below = luma < level
    luma[below] = 0
    luma[~below] = 255
