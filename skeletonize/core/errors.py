from enum import Enum


class LumaConversionErrorKind(Enum):
    """The call site that could not view a raster as 8-bit single channel"""

    IMAGE_THINNING_LUMA = 0
    SOBEL_LUMA = 1
    SOBEL_MUTABLE_LUMA = 2
    THRESHOLD_MUTABLE_LUMA = 3

    @property
    def message(self) -> str:
        return _LUMA_MESSAGES[self]


_LUMA_MESSAGES = {
    LumaConversionErrorKind.IMAGE_THINNING_LUMA: "Could not create a grayscale image in image thinning",
    LumaConversionErrorKind.SOBEL_LUMA: "Could not create a grayscale image in edge detection",
    LumaConversionErrorKind.SOBEL_MUTABLE_LUMA: "Could not create a mutable grayscale image view in edge detection",
    LumaConversionErrorKind.THRESHOLD_MUTABLE_LUMA: "Could not create a mutable grayscale image view for thresholding",
}


class SkeletonizeError(Exception):
    """Base class for edge thinning and edge detection failures"""


class LumaConversionError(SkeletonizeError, ValueError):
    """Raster is not a 2D uint8 array (or is read-only where we must write)"""

    def __init__(self, kind: LumaConversionErrorKind, detail: str = "") -> None:
        self.kind = kind
        message = kind.message
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class MaxThinningIterationsError(SkeletonizeError):
    """The thinning algorithm used up its iteration budget without converging"""

    def __init__(self, iterations: int) -> None:
        self.iterations = iterations
        super().__init__(
            f"Maximum iteration count reached in thinning algorithm ({iterations})"
        )
