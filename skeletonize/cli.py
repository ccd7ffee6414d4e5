"""Image edge thinning utility.

    skeletonize -i drawing.png -f black -t 0.4
    skeletonize -i photo.jpg -f white -e sobel4 -t 0.1 -o edges.png
"""
import argparse
import logging
import sys
import time
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence

import attr
from attr.validators import instance_of, optional
import numpy as np
import numpy.typing as npt

from skeletonize.core.errors import SkeletonizeError
from skeletonize.core.policy import ForegroundColor, MarkingMethod
from skeletonize.raster.edge_detection import sobel, sobel4
from skeletonize.raster.formats import read_luma8, threshold, write_luma8
from skeletonize.raster.thinning import thin_image_edges

logger = logging.getLogger(__name__)


class EdgeDetection(Enum):
    NONE = 0
    SOBEL = 1
    SOBEL4 = 2


_FOREGROUNDS = {
    "black": ForegroundColor.BLACK,
    "b": ForegroundColor.BLACK,
    "white": ForegroundColor.WHITE,
    "w": ForegroundColor.WHITE,
}
_METHODS = {
    "modified": MarkingMethod.MODIFIED,
    "m": MarkingMethod.MODIFIED,
    "standard": MarkingMethod.STANDARD,
    "s": MarkingMethod.STANDARD,
}
_EDGES = {
    "": EdgeDetection.NONE,
    "sobel": EdgeDetection.SOBEL,
    "s": EdgeDetection.SOBEL,
    "sobel4": EdgeDetection.SOBEL4,
    "s4": EdgeDetection.SOBEL4,
}


def _lookup(table: dict, error: str):  # type: ignore[no-untyped-def]
    def parse(value: str):  # type: ignore[no-untyped-def]
        try:
            return table[value.lower()]
        except KeyError:
            raise argparse.ArgumentTypeError(error) from None

    return parse


@attr.frozen
class SkeletonizeOptions:
    input: Path = attr.ib(validator=instance_of(Path))
    # None writes a timestamped png named after the input
    output: Optional[Path] = attr.ib(validator=optional(instance_of(Path)))
    foreground: ForegroundColor = attr.ib(
        default=ForegroundColor.BLACK, validator=instance_of(ForegroundColor)
    )
    method: MarkingMethod = attr.ib(
        default=MarkingMethod.MODIFIED, validator=instance_of(MarkingMethod)
    )
    threshold: Optional[float] = attr.ib(
        default=None, validator=optional(instance_of(float))
    )
    edge: EdgeDetection = attr.ib(
        default=EdgeDetection.NONE, validator=instance_of(EdgeDetection)
    )
    thin: bool = True
    max_iterations: Optional[int] = None


def generate_filename(path: Path, now: Optional[float] = None) -> Path:
    """Append a millisecond timestamp to the input's stem, as a png"""
    if not path.stem:
        raise ValueError(f"No file stem in {path}")
    now = time.time() if now is None else now
    millis = int(round(now * 1000))
    return Path(f"{path.stem}-{millis // 1000}{millis % 1000:03d}.png")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="skeletonize", description="Image edge thinning utility"
    )
    parser.add_argument("-i", "--input", type=Path, required=True, help="Input file.")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output filename, defaults to a timestamped `png` in the working directory.",
    )
    parser.add_argument(
        "-f",
        "--foreground",
        type=_lookup(_FOREGROUNDS, "Foreground color must be `black`/`b` or `white`/`w`"),
        default=ForegroundColor.BLACK,
        help="Color of the image's foreground, `black`/`b` or `white`/`w`.",
    )
    parser.add_argument(
        "-m",
        "--method",
        type=_lookup(_METHODS, "Method must be `standard`/`s` or `modified`/`m`"),
        default=MarkingMethod.MODIFIED,
        help="Edge thinning algorithm to use, `standard`/`s` or `modified`/`m`.",
    )
    parser.add_argument(
        "-t",
        "--threshold",
        type=float,
        default=None,
        help=(
            "Brightness value below which pixels will become black, from 0.0 to 1.0. "
            "0.15 to 0.45 is a reasonable range to start with."
        ),
    )
    parser.add_argument(
        "-e",
        "--edge",
        type=_lookup(_EDGES, "Edge detection must be `sobel`/`s` or `sobel4`/`s4`"),
        default=EdgeDetection.NONE,
        help="Run a Sobel edge detection filter before thinning, `sobel`/`s` or `sobel4`/`s4`.",
    )
    parser.add_argument(
        "--no-thin",
        action="store_true",
        help="Skip edge thinning; only threshold or detect edges.",
    )
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        help="Give up thinning after this many passes.",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def parse_options(argv: Optional[Sequence[str]] = None) -> tuple[SkeletonizeOptions, bool]:
    args = build_parser().parse_args(argv)
    options = SkeletonizeOptions(
        input=args.input,
        output=args.output,
        foreground=args.foreground,
        method=args.method,
        threshold=args.threshold,
        edge=args.edge,
        thin=not args.no_thin,
        max_iterations=args.max_iterations,
    )
    return options, args.verbose


def process(
    img: npt.NDArray[np.uint8], options: SkeletonizeOptions
) -> npt.NDArray[np.uint8]:
    """Run the configured pipeline: edge detection or thresholding,
    then thinning. `img` may be modified.
    """
    if options.edge == EdgeDetection.SOBEL:
        filtered = sobel(img, options.foreground, options.threshold)
    elif options.edge == EdgeDetection.SOBEL4:
        filtered = sobel4(img, options.foreground, options.threshold)
    else:
        filtered = img
        if options.threshold is not None:
            threshold(filtered, options.threshold)

    if options.thin:
        passes = thin_image_edges(
            filtered, options.foreground, options.method, options.max_iterations
        )
        logger.info("Thinning finished after %d passes", passes)
    return filtered


def run(options: SkeletonizeOptions) -> None:
    output = options.output
    if output is None:
        output = generate_filename(options.input)

    logger.info("Reading %s", options.input)
    img = read_luma8(options.input)
    result = process(img, options)
    write_luma8(output, result)
    logger.info("Wrote %s", output)


def main(argv: Optional[Sequence[str]] = None) -> int:
    options, verbose = parse_options(argv)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        run(options)
    except (SkeletonizeError, OSError, ValueError) as err:
        print(err, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
