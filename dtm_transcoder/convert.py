"""
File-level conversion between .dtm and .txt movies.

The direction is picked from the input file's extension.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from .constants import DTM_EXTENSION, TEXT_EXTENSION
from .dtm_io import load_dtm, save_dtm
from .movie import Movie
from .text_io import load_text, save_text

logger = logging.getLogger(__name__)


def load_movie(filepath: Union[str, Path]) -> Movie:
    """
    Load a movie in either form, chosen by extension.

    Raises:
        ValueError: If the extension is neither .dtm nor .txt
    """
    filepath = Path(filepath)
    extension = filepath.suffix.lower()
    if extension == DTM_EXTENSION:
        return load_dtm(filepath)
    if extension == TEXT_EXTENSION:
        return load_text(filepath)
    raise ValueError(f"File must be a {TEXT_EXTENSION} or a {DTM_EXTENSION}: {filepath}")


def convert_file(
    input_path: Union[str, Path], output_path: Optional[Union[str, Path]] = None
) -> Path:
    """
    Convert a .dtm file to text or a .txt file to binary.

    Args:
        input_path: Movie to read
        output_path: Where to write; defaults to the input path with the
            other extension

    Returns:
        Path of the written file

    Raises:
        ValueError: If the input extension is neither .dtm nor .txt
    """
    input_path = Path(input_path)
    extension = input_path.suffix.lower()

    if extension == DTM_EXTENSION:
        target_extension, save = TEXT_EXTENSION, save_text
    elif extension == TEXT_EXTENSION:
        target_extension, save = DTM_EXTENSION, save_dtm
    else:
        raise ValueError(f"File must be a {TEXT_EXTENSION} or a {DTM_EXTENSION}: {input_path}")

    if output_path is None:
        output_path = input_path.with_suffix(target_extension)
    output_path = Path(output_path)

    # Decode fully before the output file is created
    movie = load_movie(input_path)
    logger.info("Read %d frames from %s", movie.frame_count, input_path)

    save(movie, output_path)
    logger.info("Wrote %s", output_path)
    return output_path
