import numpy as np
import pytest

from muonshower import units
from muonshower.particles import ParticleRecord, Shower
from muonshower.sources import MemoryEventSource


def make_shower(number, rows, energy_unit=1.0):
    """Build a Shower from (pdg, kinetic_energy, x, y) rows; energies scaled by energy_unit."""
    records = [ParticleRecord(pdg, ekin * energy_unit, x, y) for pdg, ekin, x, y in rows]
    return Shower.from_records(number, records)


@pytest.fixture
def three_particle_rows():
    return [
        (13, 5.0, 10.0, 20.0),
        (-13, 3.0, -5.0, 0.0),
        (11, 100.0, 0.0, 0.0),
    ]


@pytest.fixture
def three_particle_source(three_particle_rows):
    """One event, two muons; energies in raw units for an energy unit of 1."""
    return MemoryEventSource([make_shower(1, three_particle_rows)])


@pytest.fixture
def three_particle_source_gev(three_particle_rows):
    """Same event with energies in internal units (GeV scaled to eV)."""
    return MemoryEventSource([make_shower(1, three_particle_rows, units.GeV)])


@pytest.fixture
def random_source():
    rng = np.random.default_rng(20240611)
    showers = []
    for number in range(1, 21):
        n = int(rng.integers(0, 60))
        pdg = rng.choice([13, -13, 11, -11, 22, 211, 2212], size=n)
        showers.append(
            Shower(
                number=number,
                pdg=pdg.astype(np.int64),
                kinetic_energy=rng.exponential(5.0, size=n) * units.GeV,
                x=rng.normal(0.0, 300.0, size=n),
                y=rng.normal(0.0, 300.0, size=n),
            )
        )
    return MemoryEventSource(showers)
