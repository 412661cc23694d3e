import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .analysis import MuonSummary, run_analysis
from .config import INPUT_FORMATS, AnalysisConfig
from .output import OutputError, ensure_outdir, write_root, write_summary_json
from .plotting import save_shower_plot
from .sources import ShowerFileError, open_event_source


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 on usage errors."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    ap = _ArgumentParser(
        prog="muonshower",
        description=(
            "Histogram muon kinetic energy and ground position from a shower simulation file "
            "(CORSIKA particle output or EDM4hep ROOT)."
        ),
    )
    ap.add_argument("input", help="CORSIKA DAT file or EDM4hep ROOT file")
    ap.add_argument("--format", dest="input_format", default=None, choices=INPUT_FORMATS,
                    help="Input format (default: auto, from the file extension)")
    ap.add_argument("--outdir", default=None, help="Output directory (default: current)")
    ap.add_argument("--plot-name", default=None, help="PNG file name (default: shower_plot_GeV.png)")
    ap.add_argument("--root-name", default=None, help="ROOT file name (default: shower_data_GeV.root)")
    ap.add_argument("--bins", type=int, default=None, help="Bins per histogram axis (default: 100)")
    ap.add_argument("--max-events", type=int, default=None, help="Only read the first N events (for quick tests)")
    ap.add_argument("--summary-json", default=None, help="Optional path to write the summary as JSON")
    ap.add_argument("--config", default=None, help="JSON file with default settings")
    ap.add_argument("--no-mplhep", dest="use_mplhep", action="store_const", const=False, default=None,
                    help="Plot with the plain matplotlib style")
    ap.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                    help="Logging level")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return ap


def load_config(args: argparse.Namespace) -> AnalysisConfig:
    cfg = AnalysisConfig.from_json(args.config) if args.config else AnalysisConfig()
    return cfg.updated(
        input_format=args.input_format,
        outdir=args.outdir,
        plot_name=args.plot_name,
        root_name=args.root_name,
        bins=args.bins,
        max_events=args.max_events,
        summary_json=args.summary_json,
        use_mplhep=args.use_mplhep,
    )


def print_summary(summary: MuonSummary) -> None:
    print(f"Total Particles: {summary.total_particles}")
    print(f"Muons: {summary.muon_count}")
    print(f"Total Muon Energy: {summary.muon_energy_sum:g} GeV")
    print(f"Muon Energy Histogram Entries: {summary.energy_hist.entries}")
    print(f"Muon Position Histogram Entries: {summary.position_hist.entries}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s %(levelname)s %(message)s")

    try:
        cfg = load_config(args)
    except (OSError, ValueError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1

    try:
        source = open_event_source(args.input, cfg.input_format, cfg.max_events)
    except ShowerFileError as exc:
        logging.debug("open failed: %s", exc)
        print(f"Failed to open file: {args.input}", file=sys.stderr)
        return 1

    print(f"Opening {args.input}")
    summary = run_analysis(source, bins=cfg.bins)
    print_summary(summary)

    try:
        ensure_outdir(cfg.outdir)
        save_shower_plot(summary.energy_hist, summary.position_hist, cfg.plot_path, use_mplhep=cfg.use_mplhep)
        write_root(cfg.root_path, summary.energy_hist, summary.position_hist)
        if cfg.summary_json:
            write_summary_json(cfg.summary_json, summary, input_path=args.input)
    except OutputError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Plots saved as '{cfg.plot_path}' and '{cfg.root_path}'")
    return 0

