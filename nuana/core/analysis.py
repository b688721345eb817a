"""Event analysis — orchestrates the per-event engines over an event source.

One synchronous pass fills:
  1. Neutrino energy spectra per interaction channel.
  2. Lepton energy, Q², q3, ω, Bjorken x and y.
  3. True / calorimetric / kinematic energy and the true-vs-calorimetric
     response (CC events, cross-section weighted).
  4. Unoscillated and oscillation-weighted νμ spectra.

Runs over disjoint index ranges can be merged; normalisation is applied
by ``finalize`` after merging.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from nuana.core.energy_reconstruction import EnergyReconstructionEngine
from nuana.core.histogram import BinnedSeries, BinnedSeries2D
from nuana.core.kinematics import KinematicsEngine
from nuana.core.oscillation_engine import OscillationEngine
from nuana.core.sources import EventSource, iter_events
from nuana.core.units import MeV_to_GeV
from nuana.models.analysis import AnalysisConfig, RunStatistics
from nuana.models.event import ChannelFlag, EventRecord

logger = logging.getLogger(__name__)

# ── Histogram names ──

NU_ENERGY_TOTAL = "nu_energy_total"
NU_ENERGY_BY_CHANNEL: dict[ChannelFlag, str] = {
    ChannelFlag.QE: "nu_energy_qe",
    ChannelFlag.RES: "nu_energy_res",
    ChannelFlag.DIS: "nu_energy_dis",
    ChannelFlag.MEC: "nu_energy_mec",
    ChannelFlag.COH: "nu_energy_coh",
}
LEPTON_ENERGY = "lepton_energy"
Q2 = "Q2"
Q3 = "q3"
OMEGA = "omega"
BJORKEN_X = "bjorken_x"
BJORKEN_Y = "bjorken_y"
ENERGY_TRUE = "energy_true"
ENERGY_CALORIMETRIC = "energy_calorimetric"
ENERGY_KINEMATIC = "energy_kinematic"
ENERGY_RESPONSE = "energy_response"
OSC_UNOSCILLATED = "osc_unoscillated"
OSC_SURVIVAL_VACUUM = "osc_survival_vacuum"
OSC_SURVIVAL_MATTER = "osc_survival_matter"
OSC_APPEARANCE_VACUUM = "osc_appearance_vacuum"
OSC_APPEARANCE_MATTER = "osc_appearance_matter"

OSCILLATION_HISTOGRAMS = (
    OSC_UNOSCILLATED,
    OSC_SURVIVAL_VACUUM,
    OSC_SURVIVAL_MATTER,
    OSC_APPEARANCE_VACUUM,
    OSC_APPEARANCE_MATTER,
)


@dataclass
class AnalysisResult:
    """Histograms and bookkeeping of one analysis pass.

    Attributes:
        histograms: Name → 1-D accumulator.
        response: True vs calorimetric energy [GeV].
        stats: Event bookkeeping.
        elapsed_seconds: Wall-clock time of the pass.
        finalized: Normalisation already applied.
    """
    histograms: dict[str, BinnedSeries] = field(default_factory=dict)
    response: BinnedSeries2D | None = None
    stats: RunStatistics = field(default_factory=RunStatistics)
    elapsed_seconds: float = 0.0
    finalized: bool = False

    def __getitem__(self, name: str) -> BinnedSeries:
        return self.histograms[name]

    def merge(self, other: AnalysisResult) -> AnalysisResult:
        """Element-wise sum of two un-finalized shard results.

        A response present in only one shard is carried over unchanged.

        Raises:
            ValueError: If either result is already normalised or the
                histogram sets differ.
        """
        if self.finalized or other.finalized:
            raise ValueError("Cannot merge finalized analysis results")
        if self.histograms.keys() != other.histograms.keys():
            raise ValueError("Cannot merge results with different histogram sets")
        if self.response is not None and other.response is not None:
            response = self.response.merge(other.response)
        elif self.response is not None:
            response = self.response.copy()
        elif other.response is not None:
            response = other.response.copy()
        else:
            response = None
        return AnalysisResult(
            histograms={
                name: h.merge(other.histograms[name])
                for name, h in self.histograms.items()
            },
            response=response,
            stats=self.stats.merge(other.stats),
            elapsed_seconds=self.elapsed_seconds + other.elapsed_seconds,
        )


class EventAnalysis:
    """Single-pass kinematics, energy and oscillation analysis.

    Args:
        config: Binning and oscillation setup.
        kinematics: Kinematics engine (default nucleon mass 0.939 GeV).
        energy_engine: Energy reconstruction engine.
        oscillation_engine: Oscillation engine; built from
            ``config.oscillation`` when omitted.
    """

    def __init__(
        self,
        config: AnalysisConfig | None = None,
        kinematics: KinematicsEngine | None = None,
        energy_engine: EnergyReconstructionEngine | None = None,
        oscillation_engine: OscillationEngine | None = None,
    ) -> None:
        self._config = config or AnalysisConfig()
        self._kinematics = kinematics or KinematicsEngine()
        self._energy = energy_engine or EnergyReconstructionEngine()
        self._osc = oscillation_engine or OscillationEngine(self._config.oscillation)

    @property
    def config(self) -> AnalysisConfig:
        return self._config

    def book(self) -> AnalysisResult:
        """Empty result with every histogram booked."""
        cfg = self._config
        h: dict[str, BinnedSeries] = {}

        def add(name: str, binning, title: str) -> None:
            h[name] = BinnedSeries.from_binning(binning, name=name, title=title)

        add(NU_ENERGY_TOTAL, cfg.nu_energy_binning, "Neutrino energy, all channels [GeV]")
        for flag, name in NU_ENERGY_BY_CHANNEL.items():
            add(name, cfg.nu_energy_binning, f"Neutrino energy, {flag.name} [GeV]")
        add(LEPTON_ENERGY, cfg.lepton_energy_binning, "Outgoing lepton energy [GeV]")
        add(Q2, cfg.q2_binning, "Four-momentum transfer Q^2 [GeV^2]")
        add(Q3, cfg.q3_binning, "Three-momentum transfer |q| [GeV]")
        add(OMEGA, cfg.omega_binning, "Energy transfer omega [GeV]")
        add(BJORKEN_X, cfg.x_binning, "Bjorken x")
        add(BJORKEN_Y, cfg.y_binning, "Bjorken y")
        add(ENERGY_TRUE, cfg.reco_energy_binning, "True neutrino energy [GeV]")
        add(ENERGY_CALORIMETRIC, cfg.reco_energy_binning, "Calorimetric energy [GeV]")
        add(ENERGY_KINEMATIC, cfg.reco_energy_binning, "Kinematic (CCQE) energy [GeV]")
        add(OSC_UNOSCILLATED, cfg.osc_energy_binning, "Unoscillated [GeV]")
        add(OSC_SURVIVAL_VACUUM, cfg.osc_energy_binning, "P(mu->mu), vacuum [GeV]")
        add(OSC_SURVIVAL_MATTER, cfg.osc_energy_binning, "P(mu->mu), matter [GeV]")
        add(OSC_APPEARANCE_VACUUM, cfg.osc_energy_binning, "P(mu->e), vacuum [GeV]")
        add(OSC_APPEARANCE_MATTER, cfg.osc_energy_binning, "P(mu->e), matter [GeV]")

        response = BinnedSeries2D(
            cfg.reco_energy_binning,
            cfg.reco_energy_binning,
            name=ENERGY_RESPONSE,
            title="True vs calorimetric energy [GeV]",
        )
        return AnalysisResult(histograms=h, response=response)

    # ------------------------------------------------------------------
    # Per-event filling
    # ------------------------------------------------------------------

    def fill_kinematics(self, event: EventRecord, result: AnalysisResult) -> None:
        """Channel spectra and lepton kinematics of one event."""
        h = result.histograms
        w = event.cross_section_weight if self._config.weight_kinematics else 1.0
        E = event.neutrino.energy

        h[NU_ENERGY_TOTAL].fill(E, w)
        for flag, name in NU_ENERGY_BY_CHANNEL.items():
            if event.has(flag):
                h[name].fill(E, w)

        kin = self._kinematics.compute(event)
        if kin is None:
            result.stats.n_missing_lepton += 1
            return

        h[LEPTON_ENERGY].fill(kin.lepton_energy, w)
        h[Q2].fill(kin.Q2, w)
        h[Q3].fill(kin.q3, w)
        h[OMEGA].fill(kin.omega, w)
        h[BJORKEN_X].fill(kin.bjorken_x, w)
        h[BJORKEN_Y].fill(kin.bjorken_y, w)

    def fill_energy(self, event: EventRecord, result: AnalysisResult) -> None:
        """Energy estimators of one CC event, cross-section weighted."""
        est = self._energy.reconstruct(event)
        if est is None:
            result.stats.n_non_cc += 1
            return

        h = result.histograms
        w = event.cross_section_weight
        E_true = float(MeV_to_GeV(est.true_MeV))
        E_cal = float(MeV_to_GeV(est.calorimetric_MeV))

        h[ENERGY_TRUE].fill(E_true, w)
        h[ENERGY_CALORIMETRIC].fill(E_cal, w)
        if est.kinematic_defined:
            h[ENERGY_KINEMATIC].fill(float(MeV_to_GeV(est.kinematic_MeV)), w)
        else:
            result.stats.n_undefined_kinematic += 1
        if result.response is not None:
            result.response.fill(E_true, E_cal, w)

    def fill_oscillation(self, event: EventRecord, result: AnalysisResult) -> None:
        """Unoscillated and probability-weighted spectra of one νμ event."""
        E = event.neutrino.energy
        if E <= 0 or abs(event.neutrino.pdg) != self._config.oscillation_pdg:
            logger.debug(
                "Oscillation skip: pdg=%d E=%.4g GeV", event.neutrino.pdg, E,
            )
            result.stats.n_skipped_oscillation += 1
            return

        h = result.histograms
        w = event.cross_section_weight
        osc = self._osc
        h[OSC_UNOSCILLATED].fill(E, w)
        h[OSC_SURVIVAL_VACUUM].fill(E, w * osc.survival_vacuum(E))
        h[OSC_SURVIVAL_MATTER].fill(E, w * osc.survival_matter(E))
        h[OSC_APPEARANCE_VACUUM].fill(E, w * osc.appearance_vacuum(E))
        h[OSC_APPEARANCE_MATTER].fill(E, w * osc.appearance_matter(E))

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    def run(
        self,
        source: EventSource,
        start: int = 0,
        stop: int | None = None,
        progress_callback: Callable[[int], None] | None = None,
    ) -> AnalysisResult:
        """Accumulate events ``start`` … ``stop - 1`` without normalising.

        Args:
            source: Event source.
            start: First event index.
            stop: One past the last event index (default: all).
            progress_callback: Called with progress 0-100.

        Returns:
            Un-finalized AnalysisResult, mergeable with other shards.
        """
        t0 = time.perf_counter()
        result = self.book()
        n_total = source.count()
        end = n_total if stop is None else min(stop, n_total)
        n = max(end - max(start, 0), 0)
        logger.info("Analysing %d of %d entries", n, n_total)

        last_pct = -1
        for i, event in enumerate(iter_events(source, start, end)):
            result.stats.n_events += 1
            self.fill_kinematics(event, result)
            self.fill_energy(event, result)
            self.fill_oscillation(event, result)

            if progress_callback is not None:
                pct = int(100 * (i + 1) / n)
                if pct != last_pct:
                    progress_callback(pct)
                    last_pct = pct

        result.elapsed_seconds = time.perf_counter() - t0
        s = result.stats
        logger.info(
            "Processed %d events: %d without lepton, %d non-CC, "
            "%d without kinematic energy",
            s.n_events, s.n_missing_lepton, s.n_non_cc, s.n_undefined_kinematic,
        )
        return result

    def finalize(self, result: AnalysisResult) -> AnalysisResult:
        """Apply configured normalisation in place.

        Oscillation spectra with zero integral are left unchanged.
        """
        if result.finalized:
            return result
        if self._config.normalize_oscillation:
            for name in OSCILLATION_HISTOGRAMS:
                result.histograms[name].normalize()
        result.finalized = True
        return result

    def analyze(
        self,
        source: EventSource,
        progress_callback: Callable[[int], None] | None = None,
    ) -> AnalysisResult:
        """Full pass over *source* followed by ``finalize``."""
        return self.finalize(self.run(source, progress_callback=progress_callback))
