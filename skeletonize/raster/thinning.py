import logging
import sys
from collections.abc import Iterator, Sequence
from typing import Any, Optional

import numpy as np
import numpy.typing as npt

from skeletonize.core.errors import LumaConversionErrorKind, MaxThinningIterationsError
from skeletonize.core.policy import Edge, ForegroundColor, MarkingMethod
from skeletonize.raster.formats import as_luma8
from skeletonize.raster.neighbors import (
    E,
    N,
    NE,
    NW,
    S,
    SE,
    SW,
    W,
    NeighborInfo,
    n_existing_neighbors,
    n_filled_neighbors,
    n_transitions,
    neighbor_status,
)

logger = logging.getLogger(__name__)

# The predicates below take a ring of 8 slots in neighbor order
# (N, NE, E, SE, S, SW, W, NW); slots are Edge values or arrays of
# Edge codes, so the same rules serve one pixel or a whole raster.


def _empty(slot: Any) -> Any:
    return slot == Edge.EMPTY


def _filled(slot: Any) -> Any:
    return slot == Edge.FILLED


def one_transition_phase_one(ring: Sequence[Any]) -> Any:
    """For a given pixel, True iff (N, E or S is empty) and
    (E, S or W is empty). The pixel sits on a south-east boundary
    or a north-west corner.
    """
    return (_empty(ring[N]) | _empty(ring[E]) | _empty(ring[S])) & (
        _empty(ring[E]) | _empty(ring[S]) | _empty(ring[W])
    )


def one_transition_phase_two(ring: Sequence[Any]) -> Any:
    """For a given pixel, True iff (N, E or W is empty) and
    (N, S or W is empty). The pixel sits on a north-west boundary
    or a south-east corner.
    """
    return (_empty(ring[N]) | _empty(ring[E]) | _empty(ring[W])) & (
        _empty(ring[N]) | _empty(ring[S]) | _empty(ring[W])
    )


def two_transition_phase_one(ring: Sequence[Any]) -> Any:
    """Chen & Hsu's extra case for two transitions on the first
    sub-iteration:

        ? * ?        . . ?
        . S *   or   . S *       * - FILLED
        . . ?        ? * ?       . - EMPTY
    """
    return (
        _filled(ring[N])
        & _filled(ring[E])
        & _empty(ring[S])
        & _empty(ring[SW])
        & _empty(ring[W])
    ) | (
        _filled(ring[E])
        & _filled(ring[S])
        & _empty(ring[N])
        & _empty(ring[W])
        & _empty(ring[NW])
    )


def two_transition_phase_two(ring: Sequence[Any]) -> Any:
    """Chen & Hsu's extra case for two transitions on the second
    sub-iteration:

        ? * ?        ? . .
        * S .   or   * S .       * - FILLED
        ? . .        . * .       . - EMPTY
    """
    return (
        _filled(ring[N])
        & _filled(ring[W])
        & _empty(ring[E])
        & _empty(ring[SE])
        & _empty(ring[S])
    ) | (
        _filled(ring[S])
        & _filled(ring[W])
        & _empty(ring[N])
        & _empty(ring[NE])
        & _empty(ring[E])
    )


def _phase_rules(
    ring: Sequence[Any],
    transitions: Any,
    method: MarkingMethod,
    phase_one: bool,
) -> Any:
    if phase_one:
        one_transition, two_transitions = one_transition_phase_one, two_transition_phase_one
    else:
        one_transition, two_transitions = one_transition_phase_two, two_transition_phase_two

    marked = (transitions == 1) & one_transition(ring)
    if method == MarkingMethod.MODIFIED:
        marked = marked | ((transitions == 2) & two_transitions(ring))
    return marked


def marks_pixel(info: NeighborInfo, method: MarkingMethod, phase_one: bool) -> bool:
    """Whether a foreground pixel with the given neighborhood
    is removed during a pass of the given phase.
    """
    low, high = method.filled_range
    if info.neighbors != 8 or not low <= info.filled <= high:
        return False

    transitions = info.transitions()
    if transitions not in method.allowed_transitions:
        return False

    return bool(_phase_rules(info.edge_status, transitions, method, phase_one))


def mark_pixels(
    img: npt.NDArray[np.uint8],
    foreground: ForegroundColor,
    method: MarkingMethod,
    phase_one: bool,
) -> npt.NDArray[np.bool_]:
    """Scan the whole raster and return the pixels to remove this pass.

    Every pixel is classified against `img` as it is on entry; nothing
    is written here, so no decision sees another's removal.
    """
    status = neighbor_status(img, foreground)
    filled = n_filled_neighbors(status)
    low, high = method.filled_range

    candidates = np.logical_and(
        img != foreground.background,
        np.logical_and(
            n_existing_neighbors(status) == 8,
            np.logical_and(filled >= low, filled <= high),
        ),
    )
    if not np.any(candidates):
        return candidates

    ring = list(status)
    return np.logical_and(
        candidates, _phase_rules(ring, n_transitions(status), method, phase_one)
    )


def thinning_passes(
    img: npt.NDArray[np.uint8],
    foreground: ForegroundColor,
    method: MarkingMethod,
) -> Iterator[int]:
    """Run thinning passes on `img` in place, alternating between the
    two sub-iterations starting with the first, and yield the number of
    pixels each pass removed. Never stops on its own.
    """
    phase_one = True
    while True:
        to_remove = mark_pixels(img, foreground, method, phase_one)
        img[to_remove] = foreground.background
        phase_one = not phase_one
        yield int(np.count_nonzero(to_remove))


def thin_image_edges(
    img: npt.NDArray[np.uint8],
    foreground: ForegroundColor,
    method: MarkingMethod = MarkingMethod.MODIFIED,
    iterations: Optional[int] = None,
) -> int:
    """Thin a binarized raster in place to a 1-pixel wide skeleton.

    Returns the number of passes that removed pixels; an image that is
    already thin returns 0. `iterations` caps the total number of passes
    (unbounded when None). When the cap is reached first,
    MaxThinningIterationsError is raised and `img` is left as the last
    pass made it.
    """
    if iterations is not None and iterations < 0:
        raise ValueError(f"Iteration budget must not be negative; got {iterations}")

    luma = as_luma8(img, LumaConversionErrorKind.IMAGE_THINNING_LUMA, writeable=True)
    budget = sys.maxsize if iterations is None else iterations

    passes = thinning_passes(luma, foreground, method)
    for iteration, removed in zip(range(budget), passes):
        logger.debug("Thinning pass %d removed %d pixels", iteration, removed)
        if removed == 0:
            logger.debug(
                "Thinning converged after %d passes (%s)", iteration, method.name
            )
            return iteration

    raise MaxThinningIterationsError(budget)
