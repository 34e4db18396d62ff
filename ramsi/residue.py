"""Description of a residue type and its placement in a structure file."""

from __future__ import annotations

from dataclasses import dataclass, field


class ResidueMismatchError(ValueError):
    """Raised when residue data disagrees with what was already recorded."""


@dataclass
class Residue:
    """A residue type: its name, size and the atom range it occupies."""

    resname: str = ""
    ref_atom_name: str = ""
    ref_atom: int = -1
    num_atoms: int = -1
    num_residues: int = -1
    total_atoms: int = -1
    start: int = -1
    end: int = -1
    populated: bool = False
    name_to_num: dict[str, int] = field(default_factory=dict)

    def calc_total(self) -> None:
        """Compute the total atom count and the end of the atom range."""
        self.total_atoms = self.num_atoms * self.num_residues
        self.end = self.start + self.total_atoms

    def reset_counts(self) -> None:
        """Set the atom and residue counts to zero."""
        self.num_atoms = 0
        self.num_residues = 0

    def set_num_atoms(self, value: int) -> None:
        """Set the atoms per residue, checking any value already recorded."""
        if self.num_atoms != -1 and value != self.num_atoms:
            raise ResidueMismatchError(
                f"Residue {self.resname} has {self.num_atoms} atoms, not {value}"
            )
        self.num_atoms = value

    def set_num_residues(self, value: int) -> None:
        """Set the residue count, checking any value already recorded."""
        if self.num_residues != -1 and value != self.num_residues:
            raise ResidueMismatchError(
                f"Residue {self.resname} occurs {self.num_residues} times, not {value}"
            )
        self.num_residues = value

    def set_start(self, value: int) -> None:
        """Set the first atom number of this residue type."""
        self.start = value

    def set_resname(self, value: str) -> None:
        """Set the residue name, checking any name already recorded."""
        if self.resname and value != self.resname:
            raise ResidueMismatchError(
                f"Residue {value:>5} in GRO did not match {self.resname:>5} in CFG"
            )
        self.resname = value

    def set_total_atoms(self, value: int) -> None:
        """Set the total atom count across all residues of this type."""
        self.total_atoms = value

    def describe(self, extra: bool = False) -> str:
        """One-line summary of this residue type."""
        if extra:
            return (
                f"{self.num_residues:6d} x {self.resname:>5} with "
                f"{self.num_atoms:3d} atoms total {self.total_atoms:6d}, "
                f"starting at {self.start:6d} end {self.end:6d}, "
                f"ref {self.ref_atom:6d} {self.ref_atom_name:>5}"
            )
        return (
            f"{self.num_residues:6d} x {self.resname:>5} with "
            f"{self.num_atoms:3d} atoms"
        )