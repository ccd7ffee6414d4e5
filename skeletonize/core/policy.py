from enum import Enum, IntEnum


class ForegroundColor(Enum):
    """The color of the lines to be thinned. White text on a black
    background has a WHITE foreground; black ink on paper has a
    BLACK foreground. Edge detection and thinning of the same raster
    must be given the same value.
    """

    BLACK = 0
    WHITE = 255

    @property
    def foreground(self) -> int:
        return self.value

    @property
    def background(self) -> int:
        return self.value ^ 255


class Edge(IntEnum):
    """Classification of a neighboring pixel"""

    EMPTY = 0
    FILLED = 1
    # the neighbor falls outside of the raster
    DOES_NOT_EXIST = 2


class MarkingMethod(Enum):
    """The rule set deciding which pixels a thinning pass removes.

    STANDARD: Zhang, T. Y. & Suen, C. Y. (1984). A fast parallel algorithm
        for thinning digital patterns. Commun. ACM 27, 3, 236-239.
    MODIFIED: Chen, Y.-S. & Hsu, W.-H. (1988). A modified fast parallel
        algorithm for thinning digital patterns. Pattern Recognition
        Letters 7, 99-106. Generally thinner lines and better connectivity.
    """

    STANDARD = 0
    MODIFIED = 1

    @property
    def filled_range(self) -> tuple[int, int]:
        """Inclusive bounds on the number of filled neighbors"""
        if self == MarkingMethod.STANDARD:
            return (2, 6)
        return (2, 7)

    @property
    def allowed_transitions(self) -> tuple[int, ...]:
        if self == MarkingMethod.STANDARD:
            return (1,)
        return (1, 2)
