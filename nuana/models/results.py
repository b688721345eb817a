"""Analysis engine result data models.

Dataclasses returned by KinematicsEngine, EnergyReconstructionEngine,
OscillationEngine and CrossSectionAggregator.
"""

from dataclasses import dataclass, field

# Kinematic energy "no solution" marker [MeV]
UNDEFINED_ENERGY: float = -999.0


@dataclass
class KinematicsResult:
    """Momentum transfer and scaling variables of one event.

    All values in GeV (core kinematics units).

    Attributes:
        lepton_energy: Outgoing charged-lepton energy [GeV].
        q3: Three-momentum transfer |q| [GeV], ≥ 0.
        omega: Energy transfer ω = Eν − Elep [GeV], signed.
        Q2: Four-momentum transfer Q² [GeV²], ≥ 0.
        bjorken_x: Bjorken x (unclamped).
        bjorken_y: Inelasticity y = ω/Eν.
    """
    lepton_energy: float = 0.0
    q3: float = 0.0
    omega: float = 0.0
    Q2: float = 0.0
    bjorken_x: float = 0.0
    bjorken_y: float = 0.0


@dataclass
class EnergyEstimates:
    """Neutrino energy estimators of one charged-current event.

    Attributes:
        true_MeV: Generator-level neutrino energy [MeV].
        calorimetric_MeV: Σ kinetic energy of recognised final-state
            particles [MeV], ≥ 0.
        kinematic_MeV: Quasi-elastic two-body estimate [MeV], or
            UNDEFINED_ENERGY when there is no solution.
    """
    true_MeV: float = 0.0
    calorimetric_MeV: float = 0.0
    kinematic_MeV: float = UNDEFINED_ENERGY

    @property
    def kinematic_defined(self) -> bool:
        return self.kinematic_MeV != UNDEFINED_ENERGY


@dataclass
class MatterParameters:
    """Matter-effective 1–3 sector parameters.

    Attributes:
        dm2_eff: Effective mass splitting Δm²_eff [eV²].
        sin2_2theta13_eff: Effective sin²(2θ13).
        theta13_eff: Effective θ13 [radian].
        cos4_theta13_eff: cos⁴(θ13_eff).
        matter_potential: A = 1.512e-4·ρ·Ye·E [eV²].
    """
    dm2_eff: float = 0.0
    sin2_2theta13_eff: float = 0.0
    theta13_eff: float = 0.0
    cos4_theta13_eff: float = 1.0
    matter_potential: float = 0.0


@dataclass
class OscillationCurve:
    """Oscillation probability vs energy at fixed baseline and density.

    Attributes:
        energies_GeV: Neutrino energies [GeV].
        probabilities: Probability per energy, each in [0, 1].
        baseline_km: Baseline [km].
        density_g_cm3: Matter density [g/cm³] (0 = vacuum).
        channel: "mu->mu" or "mu->e".
    """
    energies_GeV: list[float] = field(default_factory=list)
    probabilities: list[float] = field(default_factory=list)
    baseline_km: float = 0.0
    density_g_cm3: float = 0.0
    channel: str = "mu->mu"


@dataclass
class CrossSectionCurve:
    """Ordered (energy, value) samples.

    Attributes:
        energies_GeV: Neutrino energies [GeV].
        values: Cross-section per sample (spline units or σ/(E·A)).
        name: Channel or composite label.
    """
    energies_GeV: list[float] = field(default_factory=list)
    values: list[float] = field(default_factory=list)
    name: str = ""

    def __len__(self) -> int:
        return len(self.energies_GeV)

    def points(self) -> list[tuple[float, float]]:
        return list(zip(self.energies_GeV, self.values))


@dataclass
class ChannelComposite:
    """CC, NC and CC+NC curves of one channel family, per nucleon per energy.

    Attributes:
        family: Family label ("QE", "RES", "DIS", "COH", "MEC", "Total").
        total: CC+NC composite.
        cc: Charged-current composite.
        nc: Neutral-current composite.
    """
    family: str = ""
    total: CrossSectionCurve = field(default_factory=CrossSectionCurve)
    cc: CrossSectionCurve = field(default_factory=CrossSectionCurve)
    nc: CrossSectionCurve = field(default_factory=CrossSectionCurve)


@dataclass
class CrossSectionSummary:
    """All channel families of one target directory.

    Attributes:
        directory: Source directory label (e.g. "nu_mu_Ar40").
        mass_number: Target mass number A used for normalisation.
        families: Family label → composite curves.
    """
    directory: str = ""
    mass_number: int = 1
    families: dict[str, ChannelComposite] = field(default_factory=dict)

    def cc_overlay(self) -> dict[str, CrossSectionCurve]:
        """Total CC with the QE, RES and DIS CC contributions."""
        return {
            label: self.families[label].cc
            for label in ("Total", "QE", "RES", "DIS")
            if label in self.families
        }
