"""Two-pass muon analysis over an event source.

Pass 1 (``scan_ranges``) finds the muon energy and X/Y extrema; pass 2
(``fill_histograms``) replays the source from event 1 and fills
histograms whose axes span those extrema, so every muon lands in range.
"""

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from . import config, units
from .histograms import Histogram1D, Histogram2D
from .particles import Shower
from .sources import EventSource


@dataclass(frozen=True)
class MuonRanges:
    min_energy: float
    max_energy: float
    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @property
    def energy(self) -> Tuple[float, float]:
        return self.min_energy, self.max_energy

    @property
    def x(self) -> Tuple[float, float]:
        return self.min_x, self.max_x

    @property
    def y(self) -> Tuple[float, float]:
        return self.min_y, self.max_y


@dataclass
class _Extrema:
    lo: float = np.inf
    hi: float = -np.inf

    def update(self, values: np.ndarray) -> None:
        if values.size:
            self.lo = min(self.lo, float(np.min(values)))
            self.hi = max(self.hi, float(np.max(values)))

    def result(self, fallback: Tuple[float, float]) -> Tuple[float, float]:
        lo = self.lo if np.isfinite(self.lo) else fallback[0]
        hi = self.hi if np.isfinite(self.hi) else fallback[1]
        return lo, hi


@dataclass
class MuonSummary:
    ranges: MuonRanges
    energy_hist: Histogram1D
    position_hist: Histogram2D
    total_particles: int = 0
    muon_count: int = 0
    muon_energy_sum: float = 0.0  # GeV
    events: int = 0


def muon_columns(shower: Shower, energy_unit: float = units.GeV) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Energies (in ``energy_unit``), X and Y of the muons in ``shower``."""
    mask = shower.select(units.MUON_PDG_CODES)
    return shower.kinetic_energy[mask] / energy_unit, shower.x[mask], shower.y[mask]


def scan_ranges(source: EventSource, energy_unit: float = units.GeV) -> MuonRanges:
    energy, x, y = _Extrema(), _Extrema(), _Extrema()
    n_events = 0
    n_muons = 0
    for shower in source:
        e_mu, x_mu, y_mu = muon_columns(shower, energy_unit)
        energy.update(e_mu)
        x.update(x_mu)
        y.update(y_mu)
        n_events += 1
        n_muons += int(e_mu.size)
    logging.info("Range scan: %d events, %d muons", n_events, n_muons)
    if n_muons == 0:
        logging.warning("No muons found; using default histogram ranges")

    e_lo, e_hi = energy.result(config.FALLBACK_ENERGY_RANGE)
    x_lo, x_hi = x.result(config.FALLBACK_POSITION_RANGE)
    y_lo, y_hi = y.result(config.FALLBACK_POSITION_RANGE)
    return MuonRanges(e_lo, e_hi, x_lo, x_hi, y_lo, y_hi)


def book_histograms(ranges: MuonRanges, bins: int = config.DEFAULT_BINS) -> Tuple[Histogram1D, Histogram2D]:
    h_energy = Histogram1D(config.ENERGY_HIST_NAME, config.ENERGY_HIST_TITLE, bins, *ranges.energy)
    h_position = Histogram2D(config.POSITION_HIST_NAME, config.POSITION_HIST_TITLE,
                             bins, *ranges.x, bins, *ranges.y)
    return h_energy, h_position


def fill_histograms(
    source: EventSource,
    ranges: MuonRanges,
    bins: int = config.DEFAULT_BINS,
    energy_unit: float = units.GeV,
) -> MuonSummary:
    h_energy, h_position = book_histograms(ranges, bins)
    summary = MuonSummary(ranges=ranges, energy_hist=h_energy, position_hist=h_position)
    for shower in source:
        e_mu, x_mu, y_mu = muon_columns(shower, energy_unit)
        h_energy.fill(e_mu)
        h_position.fill(x_mu, y_mu)
        summary.total_particles += len(shower)
        summary.muon_count += int(e_mu.size)
        # one muon at a time, in stream order
        for e in e_mu.tolist():
            summary.muon_energy_sum += e
        summary.events += 1
    logging.info("Fill pass: %d events, %d particles", summary.events, summary.total_particles)

    for h in (h_energy, h_position):
        if h.entries != summary.muon_count:
            logging.warning("%s: %d entries for %d muons (%d out of range)",
                            h.name, h.entries, summary.muon_count, h.dropped)
    return summary


def run_analysis(source: EventSource, bins: int = config.DEFAULT_BINS,
                 energy_unit: float = units.GeV) -> MuonSummary:
    ranges = scan_ranges(source, energy_unit)
    logging.info(
        "Ranges: E [%g, %g] GeV, X [%g, %g] cm, Y [%g, %g] cm",
        ranges.min_energy, ranges.max_energy, ranges.min_x, ranges.max_x, ranges.min_y, ranges.max_y,
    )
    return fill_histograms(source, ranges, bins, energy_unit)
