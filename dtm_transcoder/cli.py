"""
Command line interface: convert between binary and text movies.

    python -m dtm_transcoder movie.dtm            # writes movie.txt
    python -m dtm_transcoder movie.txt out.dtm
    python -m dtm_transcoder --info movie.dtm
"""

import argparse
import logging
import sys

from . import __version__
from .constants import DTM_EXTENSION, TEXT_EXTENSION
from .convert import convert_file, load_movie
from .errors import DtmError
from .movie import Movie

logger = logging.getLogger(__name__)


def print_movie_info(movie: Movie) -> None:
    """Print a summary of a movie's header."""
    header = movie.header
    print(f"Game ID: {header.game_id}{' (Wii)' if header.wii_game else ''}")
    print(f"Author: {header.author or '(none)'}")
    print(f"Video backend: {header.video_backend or '(none)'}")
    print(f"Controllers: 0x{header.controllers:02x}")
    print(f"Inputs: {header.input_count} (frames read: {movie.frame_count})")
    print(f"VI count: {header.vi_count}, lag: {header.lag_counter}, ticks: {header.tick_count}")
    print(f"Rerecords: {header.rerecord_count}")
    print(f"Starts from savestate: {header.savestate}")
    if header.second_disc:
        print(f"Second disc: {header.second_disc}")
    print(f"MD5: {header.md5.to_hex()}")
    print(f"Git revision: {header.git_revision.to_hex()}")


def main(argv=None):
    """Command line interface for the transcoder."""
    parser = argparse.ArgumentParser(
        prog="dtm2txt",
        description=(
            f"Convert Dolphin movies between binary {DTM_EXTENSION} and editable "
            f"{TEXT_EXTENSION} form"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Binary to text, writes movie.txt
  python -m dtm_transcoder movie.dtm

  # Text back to binary with an explicit output
  python -m dtm_transcoder movie.txt edited.dtm

  # Show header info
  python -m dtm_transcoder --info movie.dtm
        """,
    )

    parser.add_argument("input", nargs="?", help="Input .dtm or .txt movie")
    parser.add_argument(
        "output", nargs="?", help="Output file (default: input with swapped extension)"
    )
    parser.add_argument("--info", metavar="FILE", help="Display header info for a movie file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.info:
            movie = load_movie(args.info)
            print_movie_info(movie)

        elif args.input:
            output_path = convert_file(args.input, args.output)
            print(f"Successfully converted '{args.input}' to '{output_path}'")

        else:
            parser.print_help()
            return 1

    except (DtmError, OSError, ValueError) as e:
        logger.debug("Conversion failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
