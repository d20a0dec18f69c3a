"""
In-memory movie: header plus the ordered controller frames.
"""

from dataclasses import dataclass, field
from typing import List

from .frame import ControllerFrame
from .header import DtmHeader


@dataclass
class Movie:
    """A decoded movie, shared by the binary and text transcoders"""

    header: DtmHeader = field(default_factory=DtmHeader)
    frames: List[ControllerFrame] = field(default_factory=list)

    @property
    def frame_count(self) -> int:
        return len(self.frames)
