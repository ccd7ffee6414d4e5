import numpy as np
import pytest

from skeletonize.core.errors import LumaConversionError, LumaConversionErrorKind
from skeletonize.core.policy import ForegroundColor
from skeletonize.raster.edge_detection import (
    SOBEL_EAST,
    SOBEL_NORTH,
    SOBEL_SOUTH,
    SOBEL_WEST,
    filter3x3,
    sobel,
    sobel4,
)


@pytest.fixture
def dark_to_bright() -> np.ndarray:
    """A vertical step: columns 0-2 black, columns 3-5 white"""
    img = np.zeros((6, 6), dtype=np.uint8)
    img[:, 3:] = 255
    return img


class TestFilter3x3:
    def test_kernels_are_opposites(self):
        assert np.array_equal(SOBEL_NORTH, -SOBEL_SOUTH)
        assert np.array_equal(SOBEL_EAST, -SOBEL_WEST)
        assert np.array_equal(SOBEL_NORTH.T, -SOBEL_EAST)

    def test_clamps_to_eight_bits(self, dark_to_bright):
        east = filter3x3(dark_to_bright, SOBEL_EAST)
        west = filter3x3(dark_to_bright, SOBEL_WEST)
        assert east.dtype == np.uint8
        assert np.all(east[:, 2:4] == 255)
        assert np.all(east[:, [0, 1, 4, 5]] == 0)
        # the opposite kernel sees only negative responses
        assert np.all(west == 0)

    def test_border_repeats_edge_pixels(self):
        img = np.zeros((3, 3), dtype=np.uint8)
        img[0, 0] = 255
        west = filter3x3(img, SOBEL_WEST)
        assert west[0, 0] == 255
        assert west[0, 1] == 255
        assert west[0, 2] == 0


class TestSobel:
    @pytest.mark.parametrize("detector", [sobel, sobel4])
    def test_flat_image_has_no_edges(self, detector):
        img = np.full((5, 7), 90, dtype=np.uint8)
        assert np.all(detector(img, ForegroundColor.WHITE) == 0)
        assert np.all(detector(img, ForegroundColor.BLACK) == 255)
        assert np.all(detector(img, ForegroundColor.WHITE, 0.1) == 0)
        assert np.all(detector(img, ForegroundColor.BLACK, 0.1) == 255)

    @pytest.mark.parametrize("detector", [sobel, sobel4])
    def test_magnitude_map(self, detector, dark_to_bright):
        expected = np.zeros((6, 6), dtype=np.uint8)
        expected[:, 2:4] = 255

        assert np.array_equal(detector(dark_to_bright, ForegroundColor.WHITE), expected)
        assert np.array_equal(
            detector(dark_to_bright, ForegroundColor.BLACK), 255 - expected
        )

    @pytest.mark.parametrize("foreground", list(ForegroundColor))
    def test_threshold(self, foreground, dark_to_bright):
        expected = np.full((6, 6), foreground.background, dtype=np.uint8)
        expected[:, 2:4] = foreground.foreground

        assert np.array_equal(sobel(dark_to_bright, foreground, 0.5), expected)
        assert np.array_equal(sobel4(dark_to_bright, foreground, 0.5), expected)

    def test_threshold_boundary_is_foreground(self, dark_to_bright):
        img = dark_to_bright // 2 + 10
        # an east response of 4 * 127 = 508 clamps to 255: magnitude 1.0
        assert np.all(sobel(img, ForegroundColor.WHITE, 1.0)[:, 2:4] == 255)

    def test_two_kernels_only_see_rising_gradients(self, dark_to_bright):
        bright_to_dark = 255 - dark_to_bright
        assert np.all(sobel(bright_to_dark, ForegroundColor.WHITE) == 0)
        assert np.any(sobel4(bright_to_dark, ForegroundColor.WHITE) == 255)

    def test_diagonal_magnitude(self):
        img = np.zeros((4, 4), dtype=np.uint8)
        img[2:, :] = 40
        img[:, 2:] += 40
        result = sobel(img, ForegroundColor.WHITE)
        # no vertical gradient is positive here; only the east response of
        # 4 * 40 = 160 remains
        assert result[0, 1] == 160

    @pytest.mark.parametrize("foreground", list(ForegroundColor))
    @pytest.mark.parametrize("threshold", [None, 0.2, 0.6])
    def test_four_kernels_are_symmetric_under_half_turn(self, foreground, threshold):
        rng = np.random.default_rng(11)
        img = rng.integers(0, 256, size=(12, 17), dtype=np.uint8)
        rotated = np.rot90(img, 2).copy()

        result = sobel4(img, foreground, threshold)
        rotated_result = sobel4(rotated, foreground, threshold)
        assert np.array_equal(np.rot90(result, 2), rotated_result)

    @pytest.mark.parametrize("detector", [sobel, sobel4])
    def test_does_not_modify_source(self, detector, dark_to_bright):
        before = dark_to_bright.copy()
        detector(dark_to_bright, ForegroundColor.WHITE, 0.3)
        assert np.array_equal(dark_to_bright, before)

    @pytest.mark.parametrize("detector", [sobel, sobel4])
    def test_writes_into_out(self, detector, dark_to_bright):
        out = np.full(dark_to_bright.shape, 7, dtype=np.uint8)
        result = detector(dark_to_bright, ForegroundColor.WHITE, out=out)
        assert result is out
        assert np.all(out[:, 2:4] == 255)


class TestSobelErrors:
    @pytest.mark.parametrize("detector", [sobel, sobel4])
    @pytest.mark.parametrize(
        "img",
        [
            np.zeros((4, 4), dtype=np.float64),
            np.zeros((4, 4, 3), dtype=np.uint8),
            "not an image",
        ],
    )
    def test_rejects_non_luma8_input(self, detector, img):
        with pytest.raises(LumaConversionError) as excinfo:
            detector(img, ForegroundColor.WHITE)
        assert excinfo.value.kind == LumaConversionErrorKind.SOBEL_LUMA

    @pytest.mark.parametrize("detector", [sobel, sobel4])
    def test_rejects_bad_output_buffer(self, detector, dark_to_bright):
        read_only = np.zeros(dark_to_bright.shape, dtype=np.uint8)
        read_only.flags.writeable = False
        for out in (
            np.zeros((3, 3), dtype=np.uint8),
            np.zeros(dark_to_bright.shape, dtype=np.int16),
            read_only,
        ):
            with pytest.raises(LumaConversionError) as excinfo:
                detector(dark_to_bright, ForegroundColor.WHITE, out=out)
            assert excinfo.value.kind == LumaConversionErrorKind.SOBEL_MUTABLE_LUMA
