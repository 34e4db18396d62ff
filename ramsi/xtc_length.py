"""Report the number of frames and atoms in an XTC trajectory."""

from __future__ import annotations

import os
import struct
import sys
from dataclasses import dataclass

_HEADER_SIZE = 92
_NATOMS_OFFSET = 4
_TIME_OFFSET = 12
_FRAME_SIZE_OFFSET = 88


@dataclass(frozen=True)
class XtcInfo:
    """Summary of an XTC file: frame count, atom count and last frame time."""

    num_frames: int
    num_atoms: int
    time: float

    @property
    def nanoseconds(self) -> float:
        """Time of the last frame in nanoseconds."""
        return self.time / 1000


def read_xtc_info(path: str | os.PathLike) -> XtcInfo:
    """Scan frame headers of an XTC file without decompressing coordinates."""
    frames = 0
    atoms = 0
    time = 0.0
    with open(path, "rb") as xtc:
        while len(header := xtc.read(_HEADER_SIZE)) == _HEADER_SIZE:
            frames += 1
            (atoms,) = struct.unpack_from(">I", header, _NATOMS_OFFSET)
            (time,) = struct.unpack_from(">f", header, _TIME_OFFSET)
            (frame_size,) = struct.unpack_from(">I", header, _FRAME_SIZE_OFFSET)
            xtc.seek((frame_size + 3) & ~3, os.SEEK_CUR)
    return XtcInfo(frames, atoms, time)


def main(argv: list[str] | None = None) -> int:
    """Print the length of the XTC file named on the command line."""
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print("ERROR: Incorrect usage - must give input filename")
        return 1

    try:
        info = read_xtc_info(args[0])
    except OSError:
        print("ERROR: Error reading XTC file")
        return 1

    print(
        f"Trajectory contains {info.num_frames:,d} frames "
        f"({info.nanoseconds:,.2f} ns) of {info.num_atoms:,d} atoms."
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())