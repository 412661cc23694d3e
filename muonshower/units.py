"""Physical units, particle codes and rest masses.

Energies are held internally in eV and lengths in cm. Readers multiply by
the unit of the value they read; analysis code divides by the unit it
reports in (e.g. ``energy / GeV``).
"""

from typing import Mapping, Tuple

# Energy (base: eV)
eV = 1.0
keV = 1.0e3 * eV
MeV = 1.0e6 * eV
GeV = 1.0e9 * eV
TeV = 1.0e12 * eV

# Length (base: cm)
cm = 1.0
mm = 0.1 * cm
m = 100.0 * cm

# mu- and mu+
MUON_PDG_CODES: Tuple[int, ...] = (13, -13)

# CORSIKA particle id -> PDG code
CORSIKA_TO_PDG: Mapping[int, int] = {
    1: 22,       # gamma
    2: -11,      # e+
    3: 11,       # e-
    5: -13,      # mu+
    6: 13,       # mu-
    7: 111,      # pi0
    8: 211,      # pi+
    9: -211,     # pi-
    10: 130,     # K0_L
    11: 321,     # K+
    12: -321,    # K-
    13: 2112,    # n
    14: 2212,    # p
    15: -2212,   # pbar
    16: 310,     # K0_S
    17: 221,     # eta
    18: 3122,    # Lambda
    25: -2112,   # nbar
    26: -3122,   # Lambda bar
    66: 12,      # nu_e
    67: -12,     # nu_e bar
    68: 14,      # nu_mu
    69: -14,     # nu_mu bar
}

# Additional-information records written next to muons, not particles
CORSIKA_BOOKKEEPING_IDS: Tuple[int, ...] = (75, 76, 85, 86, 95, 96)

# Rest masses in GeV, keyed by |PDG|
_MASSES_GEV: Mapping[int, float] = {
    11: 0.51099895e-3,
    13: 0.1056583755,
    22: 0.0,
    12: 0.0,
    14: 0.0,
    111: 0.1349768,
    130: 0.497611,
    211: 0.13957039,
    221: 0.547862,
    310: 0.497611,
    321: 0.493677,
    2112: 0.93956542,
    2212: 0.93827209,
    3122: 1.115683,
}


def rest_mass(pdg: int) -> float:
    """Rest mass of ``pdg`` in internal energy units (0 when unknown)."""
    return _MASSES_GEV.get(abs(int(pdg)), 0.0) * GeV


def corsika_to_pdg(corsika_id: int) -> int:
    """Map a CORSIKA particle id to its PDG code, 0 when there is none."""
    return CORSIKA_TO_PDG.get(int(corsika_id), 0)
