"""Event analysis pipeline tests — filling, bookkeeping, shards and finalize."""

import numpy as np
import pytest

from nuana.core import analysis as A
from nuana.core.analysis import EventAnalysis
from nuana.core.oscillation_engine import OscillationEngine
from nuana.core.sources import ListEventSource
from nuana.models.analysis import AnalysisConfig, RunStatistics
from nuana.models.event import ChannelFlag, EventRecord, NeutrinoState, ParticleRecord


def _cc_qe(E: float, w: float) -> EventRecord:
    return EventRecord(
        neutrino=NeutrinoState(pdg=14, energy=E, pz=E),
        flags=frozenset({ChannelFlag.QE, ChannelFlag.CC}),
        cross_section_weight=w,
        particles=(
            ParticleRecord(pdg=14, status=0, energy=E, pz=E),
            ParticleRecord(pdg=13, status=1, energy=0.8 * E, pz=0.75 * E),
            ParticleRecord(pdg=2212, status=1, energy=1.1),
        ),
    )


def _nc_res(E: float, w: float) -> EventRecord:
    return EventRecord(
        neutrino=NeutrinoState(pdg=14, energy=E, pz=E),
        flags=frozenset({ChannelFlag.RES, ChannelFlag.NC}),
        cross_section_weight=w,
        particles=(
            ParticleRecord(pdg=14, status=1, energy=0.6 * E, pz=0.6 * E),
            ParticleRecord(pdg=111, status=1, energy=0.3),
        ),
    )


def _nue_dis(E: float, w: float) -> EventRecord:
    return EventRecord(
        neutrino=NeutrinoState(pdg=12, energy=E, pz=E),
        flags=frozenset({ChannelFlag.DIS, ChannelFlag.CC}),
        cross_section_weight=w,
        particles=(ParticleRecord(pdg=11, status=1, energy=0.5 * E, pz=0.5 * E),),
    )


@pytest.fixture
def events() -> list[EventRecord]:
    return [
        _cc_qe(1.0, 1.0),
        _cc_qe(2.2, 2.0),
        _nc_res(1.5, 0.5),
        _nue_dis(3.0, 1.5),
        _cc_qe(0.8, 0.25),
    ]


@pytest.fixture
def pipeline() -> EventAnalysis:
    return EventAnalysis()


class TestFilling:
    def test_statistics(self, pipeline: EventAnalysis, events):
        result = pipeline.run(ListEventSource(events))
        s = result.stats
        assert s.n_events == 5
        assert s.n_missing_lepton == 1
        assert s.n_non_cc == 1
        assert s.n_skipped_oscillation == 1

    def test_channel_spectra_unweighted(self, pipeline: EventAnalysis, events):
        result = pipeline.run(ListEventSource(events))
        assert result[A.NU_ENERGY_TOTAL].integral() == pytest.approx(5.0)
        assert result[A.NU_ENERGY_BY_CHANNEL[ChannelFlag.QE]].integral() == pytest.approx(3.0)
        assert result[A.NU_ENERGY_BY_CHANNEL[ChannelFlag.RES]].integral() == pytest.approx(1.0)
        assert result[A.NU_ENERGY_BY_CHANNEL[ChannelFlag.MEC]].integral() == 0.0
        assert result[A.LEPTON_ENERGY].integral() == pytest.approx(4.0)

    def test_weighted_kinematics(self, events):
        pipeline = EventAnalysis(AnalysisConfig(weight_kinematics=True))
        result = pipeline.run(ListEventSource(events))
        assert result[A.NU_ENERGY_TOTAL].integral() == pytest.approx(5.25)

    def test_energy_spectra_cc_weighted(self, pipeline: EventAnalysis, events):
        result = pipeline.run(ListEventSource(events))
        # CC events: 1.0 + 2.0 + 1.5 + 0.25
        assert result[A.ENERGY_TRUE].integral() == pytest.approx(4.75)
        assert result.response.integral() == pytest.approx(
            result[A.ENERGY_CALORIMETRIC].integral()
        )

    def test_undefined_kinematic_energy_counted(self, pipeline: EventAnalysis, events):
        """The νe DIS event has no muon, so no CCQE estimate."""
        result = pipeline.run(ListEventSource(events))
        assert result.stats.n_undefined_kinematic >= 1
        assert result[A.ENERGY_KINEMATIC].entries == (
            4 - result.stats.n_undefined_kinematic
        )

    def test_oscillation_weighting(self, pipeline: EventAnalysis, events):
        result = pipeline.run(ListEventSource(events))
        osc = OscillationEngine(pipeline.config.oscillation)
        numu = [e for e in events if e.neutrino.pdg == 14]
        assert result[A.OSC_UNOSCILLATED].integral() == pytest.approx(
            sum(e.cross_section_weight for e in numu)
        )
        assert result[A.OSC_SURVIVAL_MATTER].integral() == pytest.approx(
            sum(e.cross_section_weight * osc.survival_matter(e.neutrino.energy) for e in numu)
        )
        assert result[A.OSC_APPEARANCE_VACUUM].integral() == pytest.approx(
            sum(e.cross_section_weight * osc.appearance_vacuum(e.neutrino.energy) for e in numu)
        )

    def test_zero_energy_skipped_by_oscillation(self, pipeline: EventAnalysis):
        ev = EventRecord(neutrino=NeutrinoState(pdg=14, energy=0.0))
        result = pipeline.run(ListEventSource([ev]))
        assert result.stats.n_skipped_oscillation == 1
        assert result[A.OSC_UNOSCILLATED].integral() == 0.0


class TestRuns:
    def test_finalize_normalizes_oscillation(self, pipeline: EventAnalysis, events):
        result = pipeline.analyze(ListEventSource(events))
        assert result.finalized
        for name in A.OSCILLATION_HISTOGRAMS:
            assert result[name].integral() == pytest.approx(1.0)
        assert result[A.ENERGY_TRUE].integral() == pytest.approx(4.75)

    def test_finalize_is_idempotent(self, pipeline: EventAnalysis, events):
        result = pipeline.analyze(ListEventSource(events))
        before = result[A.OSC_SURVIVAL_VACUUM].weights
        pipeline.finalize(result)
        np.testing.assert_allclose(result[A.OSC_SURVIVAL_VACUUM].weights, before)

    def test_without_normalization(self, events):
        pipeline = EventAnalysis(AnalysisConfig(normalize_oscillation=False))
        result = pipeline.analyze(ListEventSource(events))
        assert result[A.OSC_UNOSCILLATED].integral() == pytest.approx(3.75)

    def test_shards_merge_to_single_pass(self, pipeline: EventAnalysis, events):
        src = ListEventSource(events)
        whole = pipeline.finalize(pipeline.run(src))
        merged = pipeline.finalize(pipeline.run(src, 0, 2).merge(pipeline.run(src, 2)))
        assert merged.stats == whole.stats
        for name, h in whole.histograms.items():
            np.testing.assert_allclose(merged[name].weights, h.weights, err_msg=name)
        np.testing.assert_allclose(merged.response.weights, whole.response.weights)

    def test_merge_keeps_single_response(self, pipeline: EventAnalysis, events):
        src = ListEventSource(events)
        with_response = pipeline.run(src, 0, 2)
        without_response = pipeline.run(src, 2)
        without_response.response = None

        for merged in (
            with_response.merge(without_response),
            without_response.merge(with_response),
        ):
            assert merged.response is not None
            assert merged.response is not with_response.response
            np.testing.assert_allclose(
                merged.response.weights, with_response.response.weights,
            )
            assert merged.response.integral() > 0

    def test_merge_after_finalize_rejected(self, pipeline: EventAnalysis, events):
        src = ListEventSource(events)
        done = pipeline.analyze(src)
        with pytest.raises(ValueError, match="finalized"):
            done.merge(pipeline.run(src))

    def test_progress_reaches_100(self, pipeline: EventAnalysis, events):
        seen: list[int] = []
        pipeline.run(ListEventSource(events), progress_callback=seen.append)
        assert seen[-1] == 100
        assert seen == sorted(seen)
        assert len(seen) == len(set(seen))

    def test_empty_source(self, pipeline: EventAnalysis):
        seen: list[int] = []
        result = pipeline.analyze(ListEventSource([]), progress_callback=seen.append)
        assert result.stats == RunStatistics()
        assert seen == []
        for h in result.histograms.values():
            assert h.integral() == 0.0

    def test_all_histograms_booked(self, pipeline: EventAnalysis):
        result = pipeline.book()
        for name in A.OSCILLATION_HISTOGRAMS:
            assert name in result.histograms
        assert result[A.Q2].n_bins == 50
        assert result.response.name == A.ENERGY_RESPONSE
