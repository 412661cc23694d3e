from dataclasses import dataclass, field
from typing import Iterator, Sequence

import numpy as np


@dataclass(frozen=True)
class ParticleRecord:
    pdg: int
    kinetic_energy: float  # internal energy units
    x: float  # cm
    y: float  # cm


@dataclass(frozen=True)
class Shower:
    """One simulated event stored column-wise.

    All four columns have the same length, one entry per particle.
    """

    number: int
    pdg: np.ndarray
    kinetic_energy: np.ndarray
    x: np.ndarray
    y: np.ndarray
    source: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        n = self.pdg.size
        for name in ("kinetic_energy", "x", "y"):
            if getattr(self, name).size != n:
                raise ValueError(
                    f"shower {self.number}: column '{name}' has {getattr(self, name).size} entries, expected {n}"
                )

    def __len__(self) -> int:
        return int(self.pdg.size)

    def particles(self) -> Iterator[ParticleRecord]:
        for pdg, ekin, x, y in zip(self.pdg, self.kinetic_energy, self.x, self.y):
            yield ParticleRecord(int(pdg), float(ekin), float(x), float(y))

    def select(self, pdg_codes: Sequence[int]) -> np.ndarray:
        """Boolean mask of the particles whose PDG code is in ``pdg_codes``."""
        return np.isin(self.pdg, np.asarray(pdg_codes, dtype=self.pdg.dtype))

    @classmethod
    def from_records(cls, number: int, records: Sequence[ParticleRecord], source: str = "") -> "Shower":
        return cls(
            number=number,
            pdg=np.array([r.pdg for r in records], dtype=np.int64),
            kinetic_energy=np.array([r.kinetic_energy for r in records], dtype=np.float64),
            x=np.array([r.x for r in records], dtype=np.float64),
            y=np.array([r.y for r in records], dtype=np.float64),
            source=source,
        )
