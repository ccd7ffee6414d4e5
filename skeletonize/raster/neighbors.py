from collections.abc import Sequence
from typing import Any

import attr
import numpy as np
import numpy.typing as npt

from skeletonize.core.policy import Edge, ForegroundColor

# Ring order used everywhere: P2..P9 of Zhang & Suen, clockwise from north.
#
#     P9 P2 P3        NW  N NE
#     P8  S P4         W  S  E
#     P7 P6 P5        SW  S SE
#
# (row offset, col offset) of each slot
RING_OFFSETS: tuple[tuple[int, int], ...] = (
    (-1, 0),  # N
    (-1, 1),  # NE
    (0, 1),  # E
    (1, 1),  # SE
    (1, 0),  # S
    (1, -1),  # SW
    (0, -1),  # W
    (-1, -1),  # NW
)
N, NE, E, SE, S, SW, W, NW = range(8)


def count_transitions(ring: Sequence[Any]) -> Any:
    """Count the EMPTY -> FILLED transitions walking the 8 slots of
    `ring` in order and wrapping from the last slot back to the first.
    For example:

        * . .
        * S *       * - FILLED
        . * .       . - EMPTY

    yields 3. DOES_NOT_EXIST slots are neither EMPTY nor FILLED so
    never take part in a transition.

    Slots may be Edge values or arrays of Edge codes; the result is
    an int or an array of counts respectively.
    """
    if len(ring) != 8:
        raise ValueError(f"A neighbor ring has 8 slots; got {len(ring)}")
    transitions = 0
    for idx in range(8):
        before = ring[idx]
        after = ring[(idx + 1) % 8]
        transitions = transitions + np.logical_and(
            before == Edge.EMPTY, after == Edge.FILLED
        ).astype(np.int8)
    if isinstance(transitions, np.ndarray) and transitions.ndim > 0:
        return transitions
    return int(transitions)


@attr.frozen
class NeighborInfo:
    """The status of the 8 pixels surrounding a subject pixel"""

    # neighbors holding a non-background value
    filled: int
    # neighbors inside the raster
    neighbors: int
    edge_status: tuple[Edge, ...] = attr.ib(converter=tuple)

    @edge_status.validator
    def has_eight_slots(self, attribute, value):  # type: ignore[no-untyped-def]
        if len(value) != 8:
            raise ValueError(f"edge_status expected to have 8 slots; got {len(value)}")

    def transitions(self) -> int:
        return count_transitions(self.edge_status)


def get_neighbor_info(
    img: npt.NDArray[np.uint8],
    foreground: ForegroundColor,
    row: int,
    col: int,
) -> NeighborInfo:
    """Classify the neighbors of the pixel at (row, col).

    Neighbors outside of the raster are DOES_NOT_EXIST and count
    towards neither `filled` nor `neighbors`.
    """
    height, width = img.shape
    if not (0 <= row < height and 0 <= col < width):
        raise IndexError(f"({row}, {col}) is outside of a {height}x{width} raster")

    background = foreground.background
    filled = 0
    neighbors = 0
    edge_status: list[Edge] = []
    for d_row, d_col in RING_OFFSETS:
        n_row = row + d_row
        n_col = col + d_col
        if not (0 <= n_row < height and 0 <= n_col < width):
            edge_status.append(Edge.DOES_NOT_EXIST)
            continue

        neighbors += 1
        if img[n_row, n_col] != background:
            filled += 1
            edge_status.append(Edge.FILLED)
        else:
            edge_status.append(Edge.EMPTY)

    return NeighborInfo(filled=filled, neighbors=neighbors, edge_status=edge_status)


def neighbor_status(
    img: npt.NDArray[np.uint8], foreground: ForegroundColor
) -> npt.NDArray[np.int8]:
    """Classify the neighbors of every pixel at once. Returns an array
    of shape (8, rows, cols) holding Edge codes in ring order, so that
    `neighbor_status(img, fg)[:, r, c]` matches
    `get_neighbor_info(img, fg, r, c).edge_status`.
    """
    codes = np.where(img != foreground.background, Edge.FILLED, Edge.EMPTY).astype(
        np.int8
    )
    padded = np.pad(codes, 1, mode="constant", constant_values=Edge.DOES_NOT_EXIST)
    rows, cols = img.shape

    status = np.empty((8, rows, cols), dtype=np.int8)
    for slot, (d_row, d_col) in enumerate(RING_OFFSETS):
        status[slot] = padded[
            1 + d_row : 1 + d_row + rows,
            1 + d_col : 1 + d_col + cols,
        ]
    return status


def n_filled_neighbors(status: npt.NDArray[np.int8]) -> npt.NDArray[np.int8]:
    return np.count_nonzero(status == Edge.FILLED, axis=0).astype(np.int8)


def n_existing_neighbors(status: npt.NDArray[np.int8]) -> npt.NDArray[np.int8]:
    return np.count_nonzero(status != Edge.DOES_NOT_EXIST, axis=0).astype(np.int8)


def n_transitions(status: npt.NDArray[np.int8]) -> npt.NDArray[np.int8]:
    return count_transitions(status)
