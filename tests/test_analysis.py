import numpy as np
import pytest

from conftest import make_shower
from muonshower import units
from muonshower.analysis import MuonRanges, fill_histograms, muon_columns, run_analysis, scan_ranges
from muonshower.sources import MemoryEventSource


def test_three_particle_event(three_particle_source):
    summary = run_analysis(three_particle_source, energy_unit=1.0)
    assert summary.total_particles == 3
    assert summary.muon_count == 2
    assert summary.muon_energy_sum == 8.0
    assert summary.ranges == MuonRanges(3.0, 5.0, -5.0, 10.0, 0.0, 20.0)
    assert summary.energy_hist.entries == 2
    assert summary.position_hist.entries == 2
    assert summary.energy_hist.counts.sum() == 2
    assert summary.position_hist.counts.sum() == 2


def test_three_particle_event_in_internal_units(three_particle_source_gev):
    summary = run_analysis(three_particle_source_gev)
    assert summary.muon_energy_sum == pytest.approx(8.0)
    assert summary.ranges.energy == pytest.approx((3.0, 5.0))
    assert summary.energy_hist.entries == 2


def test_histogram_axes_span_scanned_ranges(three_particle_source):
    summary = run_analysis(three_particle_source, energy_unit=1.0)
    assert summary.energy_hist.edges[0] == 3.0
    assert summary.energy_hist.edges[-1] == 5.0
    assert summary.energy_hist.bins == 100
    assert summary.position_hist.shape == (100, 100)
    # 3.0 sits in the first bin, 5.0 in the closed last bin
    assert summary.energy_hist.counts[0] == 1
    assert summary.energy_hist.counts[-1] == 1


def test_energy_is_divided_by_unit():
    raw = 2.5 * units.GeV
    source = MemoryEventSource([make_shower(1, [(13, raw, 0.0, 0.0)])])
    energies, _, _ = muon_columns(source.find_event(1))
    assert energies[0] == raw / units.GeV
    ranges = scan_ranges(source)
    assert ranges.min_energy == raw / units.GeV
    assert ranges.max_energy == raw / units.GeV


def test_fallback_ranges_without_muons():
    source = MemoryEventSource([
        make_shower(1, [(11, 1.0, 3.0, 4.0), (22, 2.0, 5.0, 6.0)]),
        make_shower(2, []),
    ])
    ranges = scan_ranges(source)
    assert ranges.energy == (0.0, 1.0)
    assert ranges.x == (-1000.0, 1000.0)
    assert ranges.y == (-1000.0, 1000.0)

    summary = fill_histograms(source, ranges)
    assert summary.total_particles == 2
    assert summary.muon_count == 0
    assert summary.muon_energy_sum == 0.0
    assert summary.energy_hist.entries == 0
    assert summary.position_hist.entries == 0


def test_empty_source_uses_fallback_ranges():
    summary = run_analysis(MemoryEventSource([]))
    assert summary.events == 0
    assert summary.ranges == MuonRanges(0.0, 1.0, -1000.0, 1000.0, -1000.0, 1000.0)


def test_single_muon_degenerate_ranges():
    source = MemoryEventSource([make_shower(1, [(-13, 5.0, 10.0, 0.0), (2212, 7.0, 1.0, 1.0)])])
    summary = run_analysis(source, energy_unit=1.0)
    assert summary.ranges == MuonRanges(5.0, 5.0, 10.0, 10.0, 0.0, 0.0)
    assert summary.muon_count == 1
    assert summary.energy_hist.entries == 1
    assert summary.position_hist.entries == 1
    assert summary.energy_hist.edges[0] == pytest.approx(4.5)
    assert summary.energy_hist.edges[-1] == pytest.approx(5.5)
    assert summary.position_hist.yedges[0] == pytest.approx(-1.0)


def test_counts_match_stream(random_source):
    summary = run_analysis(random_source)
    expected_total = sum(len(s) for s in random_source)
    expected_muons = sum(int(np.isin(s.pdg, [13, -13]).sum()) for s in random_source)
    assert summary.events == 20
    assert summary.total_particles == expected_total
    assert summary.muon_count == expected_muons
    assert summary.energy_hist.entries == summary.muon_count
    assert summary.position_hist.entries == summary.muon_count
    assert summary.energy_hist.dropped == 0
    assert summary.position_hist.dropped == 0


def test_energy_sum_adds_muons_in_stream_order(random_source):
    expected = 0.0
    for shower in random_source:
        for record in shower.particles():
            if record.pdg in (13, -13):
                expected += record.kinetic_energy / units.GeV
    assert run_analysis(random_source).muon_energy_sum == expected


def test_two_runs_are_identical(random_source):
    first = run_analysis(random_source)
    second = run_analysis(random_source)
    assert first.total_particles == second.total_particles
    assert first.muon_count == second.muon_count
    assert first.muon_energy_sum == second.muon_energy_sum
    assert first.ranges == second.ranges
    np.testing.assert_array_equal(first.energy_hist.counts, second.energy_hist.counts)
    np.testing.assert_array_equal(first.position_hist.counts, second.position_hist.counts)


def test_custom_bin_count(three_particle_source):
    summary = run_analysis(three_particle_source, bins=10, energy_unit=1.0)
    assert summary.energy_hist.bins == 10
    assert summary.position_hist.shape == (10, 10)


def test_max_events_limits_both_passes():
    source = MemoryEventSource(
        [
            make_shower(1, [(13, 1.0, 0.0, 0.0)]),
            make_shower(2, [(13, 50.0, 0.0, 0.0), (11, 1.0, 0.0, 0.0)]),
        ],
        max_events=1,
    )
    summary = run_analysis(source, energy_unit=1.0)
    assert summary.events == 1
    assert summary.total_particles == 1
    assert summary.ranges.max_energy == 1.0
