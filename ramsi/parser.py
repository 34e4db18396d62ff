"""Reader for sectioned configuration and topology files."""

from __future__ import annotations

import os
import re
from enum import Enum
from typing import TextIO

_TOKEN_SEPARATOR = re.compile(r"[\t ]+")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
_LEADING_FLOAT = re.compile(
    r"\s*([+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan))",
    re.IGNORECASE,
)


class FileFormat(Enum):
    """Layout conventions of an input file."""

    GROMACS = "GROMACS"
    LAMMPS = "LAMMPS"


class FieldFormat(Enum):
    """Force field family of the output."""

    MARTINI = "MARTINI"
    ELBA = "ELBA"
    OTHER = "OTHER"


class PotentialType(Enum):
    """Functional form of a bonded potential."""

    HARMONIC = "HARMONIC"
    COS = "COS"
    COSSQUARED = "COSSQUARED"


def _parse_leading(pattern: re.Pattern, text: str, kind: str) -> str:
    match = pattern.match(text)
    if match is None:
        raise ValueError(f"Value {text!r} is not a valid {kind}")
    return match.group(1)


class Parser:
    """Reads data lines, skipping comments and tracking ``[ section ]`` headers.

    Comments are lines starting with ``;`` or ``#`` and anything after a ``;``
    on a data line.  Data lines are split into whitespace separated tokens.
    """

    def __init__(
        self,
        filename: str | os.PathLike,
        file_format: FileFormat = FileFormat.GROMACS,
    ) -> None:
        self._filename = os.fspath(filename)
        self._format = file_format
        self._section = ""
        self._find_previous = ""
        try:
            self._file: TextIO = open(self._filename, encoding="utf-8")
        except OSError as exc:
            raise OSError(f"File {self._filename} could not be opened") from exc

    @property
    def filename(self) -> str:
        """Path of the file being read."""
        return self._filename

    @property
    def section(self) -> str:
        """Name of the section most recently entered."""
        return self._section

    def close(self) -> None:
        """Close the underlying file."""
        self._file.close()

    def __enter__(self) -> Parser:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _rewind(self) -> None:
        self._file.seek(0)

    def _next_tokens(self) -> list[str] | None:
        """Return the tokens of the next data line, or None at end of file."""
        while True:
            raw = self._file.readline()
            if not raw:
                return None
            line = raw.strip()
            if not line or line[0] in ";#":
                continue

            if self._format is not FileFormat.GROMACS:
                raise ValueError(f"Reading {self._format.value} files is not supported")

            if line[0] == "[":
                end = line.rfind("]")
                name = line[1:end] if end != -1 else line[1:]
                self._section = name.strip()
                continue

            data = line.split(";", 1)[0].strip()
            return _TOKEN_SEPARATOR.split(data)

    def find_section(self, find: str) -> bool:
        """Return True if the file contains a section called ``find``."""
        self._rewind()
        while self._section != find:
            if self._next_tokens() is None:
                return False
        self._rewind()
        return True

    def get_line_from_section(self, find: str, length: int = 1) -> list[str] | None:
        """Return the next data line of section ``find`` with at least ``length`` tokens.

        Successive calls walk through the section.  When the end of the file is
        reached the parser rewinds and None is returned.
        """
        if find != self._find_previous:
            self._rewind()
        self._find_previous = find
        while (tokens := self._next_tokens()) is not None:
            if self._section == find and len(tokens) >= length:
                return tokens
        self._rewind()
        return None

    def get_key_from_section(self, section: str, key: str) -> str | None:
        """Return the value following ``key`` in ``section``, or None."""
        while (tokens := self.get_line_from_section(section, 2)) is not None:
            if tokens[0] == key:
                return tokens[1]
        return None

    def _lookup(self, section: str, key: str) -> str | None:
        self._rewind()
        return self.get_key_from_section(section, key)

    def get_int_key_from_section(self, section: str, key: str, default: int) -> int:
        """Integer value of ``key`` in ``section``, or ``default`` if absent."""
        value = self._lookup(section, key)
        if value is None:
            return default
        return int(_parse_leading(_LEADING_INT, value, "integer"))

    def get_double_key_from_section(
        self, section: str, key: str, default: float
    ) -> float:
        """Floating point value of ``key`` in ``section``, or ``default`` if absent."""
        value = self._lookup(section, key)
        if value is None:
            return default
        return float(_parse_leading(_LEADING_FLOAT, value, "number"))

    def get_string_key_from_section(self, section: str, key: str, default: str) -> str:
        """Upper-cased value of ``key`` in ``section``, or ``default`` if absent."""
        value = self._lookup(section, key)
        if value is None:
            return default
        return value.upper()