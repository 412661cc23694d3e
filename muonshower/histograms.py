import logging
from typing import Tuple

import numpy as np


def pad_range(lo: float, hi: float) -> Tuple[float, float]:
    """Return a usable axis range for ``[lo, hi]``.

    A degenerate range (lo == hi) is widened by 1 on each side around 0,
    otherwise by 10% of the value.
    """
    if not (np.isfinite(lo) and np.isfinite(hi)):
        raise ValueError(f"histogram range must be finite, got ({lo}, {hi})")
    if hi < lo:
        raise ValueError(f"inverted histogram range ({lo}, {hi})")
    if hi == lo:
        delta = 1.0 if hi == 0.0 else abs(hi) * 0.1
        logging.debug("Widening degenerate range at %g by %g", lo, delta)
        return lo - delta, hi + delta
    return float(lo), float(hi)


def make_edges(bins: int, lo: float, hi: float) -> np.ndarray:
    if bins < 1:
        raise ValueError(f"need at least one bin, got {bins}")
    lo, hi = pad_range(lo, hi)
    return np.linspace(lo, hi, bins + 1, dtype=np.float64)


class Histogram1D:
    """Fixed-binning 1D counter.

    Bins are half-open ``[lo, hi)`` except the last, which also holds its
    upper edge. Values outside the axis are not counted and go to
    ``dropped``.
    """

    def __init__(self, name: str, title: str, bins: int, lo: float, hi: float):
        self.name = name
        self.title = title
        self.edges = make_edges(bins, lo, hi)
        self.counts = np.zeros(bins, dtype=np.int64)
        self.entries = 0
        self.dropped = 0

    @property
    def bins(self) -> int:
        return int(self.counts.size)

    @property
    def centers(self) -> np.ndarray:
        return 0.5 * (self.edges[:-1] + self.edges[1:])

    def fill(self, values) -> None:
        values = np.asarray(values, dtype=np.float64).ravel()
        if values.size == 0:
            return
        inside = (values >= self.edges[0]) & (values <= self.edges[-1])
        c, _ = np.histogram(values[inside], bins=self.edges)
        self.counts += c
        n_inside = int(inside.sum())
        self.entries += n_inside
        self.dropped += int(values.size) - n_inside

    def to_numpy(self) -> Tuple[np.ndarray, np.ndarray]:
        return self.counts.copy(), self.edges.copy()


class Histogram2D:
    """Fixed-binning 2D counter with the same edge rules as Histogram1D per axis."""

    def __init__(self, name: str, title: str,
                 xbins: int, xlo: float, xhi: float,
                 ybins: int, ylo: float, yhi: float):
        self.name = name
        self.title = title
        self.xedges = make_edges(xbins, xlo, xhi)
        self.yedges = make_edges(ybins, ylo, yhi)
        self.counts = np.zeros((xbins, ybins), dtype=np.int64)
        self.entries = 0
        self.dropped = 0

    @property
    def shape(self) -> Tuple[int, int]:
        return self.counts.shape

    def fill(self, x, y) -> None:
        x = np.asarray(x, dtype=np.float64).ravel()
        y = np.asarray(y, dtype=np.float64).ravel()
        if x.size != y.size:
            raise ValueError(f"x and y differ in length ({x.size} != {y.size})")
        if x.size == 0:
            return
        inside = (
            (x >= self.xedges[0]) & (x <= self.xedges[-1])
            & (y >= self.yedges[0]) & (y <= self.yedges[-1])
        )
        c, _, _ = np.histogram2d(x[inside], y[inside], bins=[self.xedges, self.yedges])
        self.counts += c.astype(np.int64)
        n_inside = int(inside.sum())
        self.entries += n_inside
        self.dropped += int(x.size) - n_inside

    def to_numpy(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        return self.counts.copy(), self.xedges.copy(), self.yedges.copy()
