"""Muon energy and position histograms from air-shower simulation output."""

__version__ = "0.1.0"
