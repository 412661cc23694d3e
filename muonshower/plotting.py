import contextlib
import logging

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import mplhep as hep
import numpy as np

from .histograms import Histogram1D, Histogram2D
from .output import OutputError

FIGSIZE = (12.0, 6.0)
DPI = 100


def _style(use_mplhep: bool):
    if use_mplhep:
        return plt.style.context(hep.style.CMS)
    return contextlib.nullcontext()


def draw_energy(ax: plt.Axes, h: Histogram1D) -> None:
    counts, edges = h.to_numpy()
    centers = 0.5 * (edges[:-1] + edges[1:])
    ax.hist(centers, bins=edges, weights=counts, histtype="step", color="blue", label=f"Entries: {h.entries}")
    ax.set_yscale("log", nonpositive="clip")
    if not counts.any():
        ax.set_ylim(0.5, 10.0)
    ax.set_xlim(edges[0], edges[-1])
    ax.set_xlabel("Energy (GeV)")
    ax.set_ylabel("Counts")
    ax.set_title(h.title, fontsize="medium")
    ax.legend(loc="upper right", fontsize="small")


def draw_position(fig: plt.Figure, ax: plt.Axes, h: Histogram2D) -> None:
    counts, xedges, yedges = h.to_numpy()
    # empty bins stay blank
    z = np.ma.masked_equal(counts.T, 0) if counts.any() else counts.T
    mesh = ax.pcolormesh(xedges, yedges, z, shading="flat", cmap="viridis")
    fig.colorbar(mesh, ax=ax, label="Counts")
    ax.set_xlabel("X (cm)")
    ax.set_ylabel("Y (cm)")
    ax.set_title(h.title, fontsize="medium")


def save_shower_plot(energy_hist: Histogram1D, position_hist: Histogram2D, path: str,
                     use_mplhep: bool = True) -> None:
    """Save the energy (log y) and position (colour map) panels side by side."""
    with _style(use_mplhep):
        fig, (ax_e, ax_xy) = plt.subplots(1, 2, figsize=FIGSIZE, dpi=DPI)
        try:
            draw_energy(ax_e, energy_hist)
            draw_position(fig, ax_xy, position_hist)
            fig.tight_layout()
            fig.savefig(path)
        # ValueError: unsupported image format for the file extension
        except (OSError, ValueError) as exc:
            raise OutputError(f"failed to save plot {path}: {exc}") from exc
        finally:
            plt.close(fig)
    logging.info("Wrote plot to %s", path)
