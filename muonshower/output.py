import json
import logging
import os
from typing import Any, Dict

import numpy as np
import uproot

from .histograms import Histogram1D, Histogram2D


class OutputError(OSError):
    """An output artifact could not be written."""


def ensure_outdir(path: str) -> None:
    if path and not os.path.isdir(path):
        try:
            os.makedirs(path, exist_ok=True)
        except OSError as exc:
            raise OutputError(f"cannot create output directory {path}: {exc}") from exc


def write_root(path: str, energy_hist: Histogram1D, position_hist: Histogram2D) -> None:
    """Write both histograms to ``path``, replacing any existing file.

    Counts are stored in single precision under the histograms' names.
    """
    counts_e, edges_e = energy_hist.to_numpy()
    counts_xy, xedges, yedges = position_hist.to_numpy()
    try:
        with uproot.recreate(path) as f:
            f[energy_hist.name] = (counts_e.astype(np.float32), edges_e)
            f[position_hist.name] = (counts_xy.astype(np.float32), xedges, yedges)
    except OSError as exc:
        raise OutputError(f"failed to write ROOT file {path}: {exc}") from exc
    logging.info("Wrote %s and %s to %s", energy_hist.name, position_hist.name, path)


def _json_float(value: float) -> float:
    """Round to 1e-6 in the unit of the value (GeV or cm)."""
    return round(float(value), 6)


def summary_payload(summary, input_path: str = "") -> Dict[str, Any]:
    ranges = summary.ranges
    return {
        "input": input_path,
        "events": int(summary.events),
        "total_particles": int(summary.total_particles),
        "muons": int(summary.muon_count),
        "muon_energy_sum_GeV": _json_float(summary.muon_energy_sum),
        "ranges": {
            "energy_GeV": [_json_float(v) for v in ranges.energy],
            "x_cm": [_json_float(v) for v in ranges.x],
            "y_cm": [_json_float(v) for v in ranges.y],
        },
        "histograms": {
            summary.energy_hist.name: {
                "entries": int(summary.energy_hist.entries),
                "dropped": int(summary.energy_hist.dropped),
            },
            summary.position_hist.name: {
                "entries": int(summary.position_hist.entries),
                "dropped": int(summary.position_hist.dropped),
            },
        },
    }


def write_summary_json(path: str, summary, input_path: str = "") -> None:
    payload = summary_payload(summary, input_path)
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, sort_keys=True)
    except OSError as exc:
        raise OutputError(f"failed to write summary JSON {path}: {exc}") from exc
    logging.info("Wrote summary JSON to %s", path)
