"""Event analysis configuration and run statistics data models."""

from dataclasses import dataclass, field

from nuana.constants import (
    BJORKEN_X_BINNING,
    BJORKEN_Y_BINNING,
    LEPTON_ENERGY_BINNING,
    NU_ENERGY_BINNING,
    OMEGA_BINNING,
    OSC_ENERGY_BINNING,
    PDG_NU_MU,
    Q2_BINNING,
    Q3_BINNING,
    RECO_ENERGY_BINNING,
)
from nuana.models.oscillation import OscillationParameters

Binning = tuple[int, float, float]


@dataclass
class AnalysisConfig:
    """Single-pass event analysis configuration.

    Binnings are (bins, low, high) in GeV (GeV² for Q²; x and y are
    dimensionless).

    Attributes:
        nu_energy_binning: Neutrino energy per interaction channel.
        lepton_energy_binning: Outgoing lepton energy.
        q2_binning: Four-momentum transfer Q².
        q3_binning: Three-momentum transfer |q|.
        omega_binning: Energy transfer ω.
        x_binning: Bjorken x.
        y_binning: Bjorken y.
        reco_energy_binning: True / calorimetric / kinematic energy and
            both axes of the response relation.
        osc_energy_binning: Oscillation-weighted spectra.
        oscillation: Mixing parameters, baseline and density.
        oscillation_pdg: |PDG| of neutrinos entering the oscillation spectra.
        normalize_oscillation: Scale oscillation spectra to unit area.
        weight_kinematics: Weight kinematic spectra by the cross-section
            (unweighted event counts otherwise).
    """
    nu_energy_binning: Binning = NU_ENERGY_BINNING
    lepton_energy_binning: Binning = LEPTON_ENERGY_BINNING
    q2_binning: Binning = Q2_BINNING
    q3_binning: Binning = Q3_BINNING
    omega_binning: Binning = OMEGA_BINNING
    x_binning: Binning = BJORKEN_X_BINNING
    y_binning: Binning = BJORKEN_Y_BINNING
    reco_energy_binning: Binning = RECO_ENERGY_BINNING
    osc_energy_binning: Binning = OSC_ENERGY_BINNING
    oscillation: OscillationParameters = field(default_factory=OscillationParameters)
    oscillation_pdg: int = PDG_NU_MU
    normalize_oscillation: bool = True
    weight_kinematics: bool = False


@dataclass
class RunStatistics:
    """Event bookkeeping of one analysis pass.

    Attributes:
        n_events: Events read from the source.
        n_missing_lepton: Events without a final-state charged lepton.
        n_non_cc: Events skipped by energy reconstruction (no CC tag).
        n_undefined_kinematic: CC events without a kinematic energy solution.
        n_skipped_oscillation: Events outside the oscillation selection
            (wrong flavour or E ≤ 0).
    """
    n_events: int = 0
    n_missing_lepton: int = 0
    n_non_cc: int = 0
    n_undefined_kinematic: int = 0
    n_skipped_oscillation: int = 0

    def merge(self, other: "RunStatistics") -> "RunStatistics":
        return RunStatistics(
            n_events=self.n_events + other.n_events,
            n_missing_lepton=self.n_missing_lepton + other.n_missing_lepton,
            n_non_cc=self.n_non_cc + other.n_non_cc,
            n_undefined_kinematic=self.n_undefined_kinematic + other.n_undefined_kinematic,
            n_skipped_oscillation=self.n_skipped_oscillation + other.n_skipped_oscillation,
        )
