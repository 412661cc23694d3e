import json
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional

DEFAULT_BINS = 100
DEFAULT_PLOT_NAME = "shower_plot_GeV.png"
DEFAULT_ROOT_NAME = "shower_data_GeV.root"

ENERGY_HIST_NAME = "hMuonEnergy"
ENERGY_HIST_TITLE = "Muon Kinetic Energy Distribution"
POSITION_HIST_NAME = "hMuonPosition"
POSITION_HIST_TITLE = "Muon Position Distribution"

INPUT_FORMATS = ("auto", "corsika", "edm4hep")

# Used when the input holds no muon at all
FALLBACK_ENERGY_RANGE = (0.0, 1.0)
FALLBACK_POSITION_RANGE = (-1000.0, 1000.0)


@dataclass
class AnalysisConfig:
    bins: int = DEFAULT_BINS
    outdir: str = "."
    plot_name: str = DEFAULT_PLOT_NAME
    root_name: str = DEFAULT_ROOT_NAME
    input_format: str = "auto"
    max_events: Optional[int] = None
    summary_json: Optional[str] = None
    use_mplhep: bool = True

    def __post_init__(self) -> None:
        for name, value in (("bins", self.bins), ("max_events", self.max_events)):
            if value is None and name == "max_events":
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
        if not isinstance(self.use_mplhep, bool):
            raise ValueError(f"use_mplhep must be true or false, got {self.use_mplhep!r}")
        for name in ("outdir", "plot_name", "root_name", "input_format"):
            if not isinstance(getattr(self, name), str):
                raise ValueError(f"{name} must be a string, got {getattr(self, name)!r}")
        if self.summary_json is not None and not isinstance(self.summary_json, str):
            raise ValueError(f"summary_json must be a path, got {self.summary_json!r}")
        if self.bins < 1:
            raise ValueError(f"bins must be positive, got {self.bins}")
        if self.max_events is not None and self.max_events < 1:
            raise ValueError(f"max_events must be positive, got {self.max_events}")
        if self.input_format not in INPUT_FORMATS:
            raise ValueError(f"unknown input format '{self.input_format}', expected one of {', '.join(INPUT_FORMATS)}")

    @property
    def plot_path(self) -> str:
        return self._in_outdir(self.plot_name)

    @property
    def root_path(self) -> str:
        return self._in_outdir(self.root_name)

    def _in_outdir(self, name: str) -> str:
        if self.outdir in ("", "."):
            return name
        return os.path.join(self.outdir, name)

    def updated(self, **overrides: Any) -> "AnalysisConfig":
        """Copy with every override that is not None applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"unknown config keys: {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def from_json(cls, path: str) -> "AnalysisConfig":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a JSON object at top level")
        return cls.from_dict(data)
