"""Event sources: replayable streams of showers read from simulation output.

Every source can be iterated any number of times; each iteration starts
again at event 1. ``find_event`` returns ``None`` past the last event,
which is how a pass knows the stream has ended.
"""

import logging
import os
import struct
from typing import Iterable, Iterator, List, Optional

import awkward as ak
import numpy as np
import uproot
from corsikaio import CorsikaParticleFile

from . import units
from .config import INPUT_FORMATS
from .particles import Shower

EDM4HEP_TREE = "events"
EDM4HEP_COLLECTION = "MCParticles"


class ShowerFileError(OSError):
    """The input file could not be opened as a shower file."""


class EventSource:
    """Base class for replayable shower streams."""

    def __init__(self, path: str = "", max_events: Optional[int] = None):
        self.path = path
        self.max_events = max_events

    def _iter_showers(self) -> Iterator[Shower]:
        raise NotImplementedError

    def check(self) -> None:
        """Raise ShowerFileError if the source cannot be read."""

    def __iter__(self) -> Iterator[Shower]:
        for shower in self._iter_showers():
            if self.max_events is not None and shower.number > self.max_events:
                break
            yield shower

    def find_event(self, number: int) -> Optional[Shower]:
        if number < 1:
            return None
        for shower in self:
            if shower.number == number:
                return shower
        return None


class MemoryEventSource(EventSource):
    def __init__(self, showers: Iterable[Shower], max_events: Optional[int] = None):
        super().__init__("<memory>", max_events)
        self.showers: List[Shower] = list(showers)

    def _iter_showers(self) -> Iterator[Shower]:
        return iter(self.showers)

    def find_event(self, number: int) -> Optional[Shower]:
        if number < 1 or number > len(self.showers):
            return None
        if self.max_events is not None and number > self.max_events:
            return None
        return self.showers[number - 1]


def corsika_particles_to_shower(number: int, particles: np.ndarray, source: str = "") -> Shower:
    """Convert one block of CORSIKA particle data to a Shower.

    ``particles`` is the structured array corsikaio yields per event
    (fields ``particle_description``, ``px``, ``py``, ``pz``, ``x``, ``y``).
    Padding (id 0) and muon bookkeeping records are skipped.
    """
    description = np.abs(np.asarray(particles["particle_description"], dtype=np.float64))
    ids = (description // 1000).astype(np.int64)
    keep = (ids != 0) & ~np.isin(ids, units.CORSIKA_BOOKKEEPING_IDS)
    if not keep.all():
        logging.debug("CORSIKA: event %d: skipped %d non-particle records", number, int((~keep).sum()))
    ids = ids[keep]
    pdg = np.array([units.corsika_to_pdg(i) for i in ids], dtype=np.int64)
    mass = np.array([units.rest_mass(p) for p in pdg], dtype=np.float64)
    px = np.asarray(particles["px"], dtype=np.float64)[keep] * units.GeV
    py = np.asarray(particles["py"], dtype=np.float64)[keep] * units.GeV
    pz = np.asarray(particles["pz"], dtype=np.float64)[keep] * units.GeV
    p = np.sqrt(px * px + py * py + pz * pz)
    kinetic = np.sqrt(p * p + mass * mass) - mass
    return Shower(
        number=number,
        pdg=pdg,
        kinetic_energy=kinetic,
        x=np.asarray(particles["x"], dtype=np.float64)[keep] * units.cm,
        y=np.asarray(particles["y"], dtype=np.float64)[keep] * units.cm,
        source=source,
    )


class CorsikaEventSource(EventSource):
    """CORSIKA ground-particle output (DATnnnnnn) read with corsikaio."""

    def check(self) -> None:
        try:
            with CorsikaParticleFile(self.path):
                pass
        # struct.error: too short for a record marker; StopIteration: no run header block
        except (OSError, ValueError, struct.error, StopIteration) as exc:
            raise ShowerFileError(f"{self.path}: {exc}") from exc

    def _iter_showers(self) -> Iterator[Shower]:
        with CorsikaParticleFile(self.path) as f:
            for number, event in enumerate(f, start=1):
                yield corsika_particles_to_shower(number, event.particles, source=self.path)


def edm4hep_arrays_to_showers(
    arrays: ak.Array,
    first_number: int,
    collection: str = EDM4HEP_COLLECTION,
    source: str = "",
) -> List[Shower]:
    """Split one chunk of EDM4hep MCParticle arrays into per-event Showers."""
    pdg = arrays[f"{collection}.PDG"]
    px = arrays[f"{collection}.momentum.x"]
    py = arrays[f"{collection}.momentum.y"]
    pz = arrays[f"{collection}.momentum.z"]
    m = arrays[f"{collection}.mass"]
    p = np.sqrt(px * px + py * py + pz * pz)
    kinetic = np.sqrt(p * p + m * m) - m

    counts = ak.to_numpy(ak.num(pdg, axis=1))
    if counts.size == 0:
        return []
    splits = np.cumsum(counts)[:-1]

    def _columns(values: ak.Array, scale: float = 1.0, dtype=np.float64) -> List[np.ndarray]:
        flat = ak.to_numpy(ak.flatten(values, axis=None)).astype(dtype, copy=False)
        if scale != 1.0:
            flat = flat * scale
        return np.split(flat, splits)

    pdg_cols = _columns(pdg, dtype=np.int64)
    ekin_cols = _columns(kinetic, units.GeV)
    x_cols = _columns(arrays[f"{collection}.vertex.x"], units.mm)
    y_cols = _columns(arrays[f"{collection}.vertex.y"], units.mm)
    return [
        Shower(number=first_number + i, pdg=pdg_cols[i], kinetic_energy=ekin_cols[i],
               x=x_cols[i], y=y_cols[i], source=source)
        for i in range(counts.size)
    ]


class EDM4hepEventSource(EventSource):
    """EDM4hep ROOT file; one shower per entry of the ``events`` tree."""

    def __init__(self, path: str, max_events: Optional[int] = None,
                 collection: str = EDM4HEP_COLLECTION, step_size: str = "100 MB"):
        super().__init__(path, max_events)
        self.collection = collection
        self.step_size = step_size

    @property
    def branches(self) -> List[str]:
        c = self.collection
        return [
            f"{c}.PDG",
            f"{c}.mass",
            f"{c}.momentum.x",
            f"{c}.momentum.y",
            f"{c}.momentum.z",
            f"{c}.vertex.x",
            f"{c}.vertex.y",
        ]

    def check(self) -> None:
        try:
            with uproot.open(self.path) as f:
                has_tree = EDM4HEP_TREE in f
                keys = set(f[EDM4HEP_TREE].keys(full_paths=False)) if has_tree else set()
        except (OSError, ValueError) as exc:
            raise ShowerFileError(f"{self.path}: {exc}") from exc
        if not has_tree:
            raise ShowerFileError(f"{self.path}: '{EDM4HEP_TREE}' tree not found in file")
        missing = [b for b in self.branches if b not in keys]
        if missing:
            raise ShowerFileError(f"{self.path}: missing branches {', '.join(missing)}")

    def _iter_showers(self) -> Iterator[Shower]:
        with uproot.open(self.path) as f:
            tree = f[EDM4HEP_TREE]
            entry_stop = tree.num_entries
            if self.max_events is not None:
                entry_stop = min(entry_stop, self.max_events)
            number = 1
            for arrays in tree.iterate(filter_name=self.branches, step_size=self.step_size,
                                       entry_stop=entry_stop, library="ak"):
                showers = edm4hep_arrays_to_showers(arrays, number, self.collection, source=self.path)
                number += len(showers)
                yield from showers


def guess_format(path: str) -> str:
    return "edm4hep" if path.lower().endswith(".root") else "corsika"


def open_event_source(path: str, fmt: str = "auto", max_events: Optional[int] = None) -> EventSource:
    """Return a checked event source for ``path``.

    Raises ShowerFileError when the file is missing or unreadable.
    """
    if fmt not in INPUT_FORMATS:
        raise ValueError(f"unknown input format '{fmt}', expected one of {', '.join(INPUT_FORMATS)}")
    if not os.path.isfile(path):
        raise ShowerFileError(f"{path}: no such file")
    if fmt == "auto":
        fmt = guess_format(path)
    source: EventSource
    if fmt == "edm4hep":
        source = EDM4hepEventSource(path, max_events=max_events)
    else:
        source = CorsikaEventSource(path, max_events=max_events)
    source.check()
    logging.info("Opened %s as %s input", path, fmt)
    return source
