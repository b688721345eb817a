"""Oscillation engine — leading-term νμ survival and νμ→νe appearance.

Vacuum and constant-density matter approximations in the 1–3 sector.
Energies in GeV, baselines in km, mass splittings in eV².
"""

from __future__ import annotations

import math

import numpy as np

from nuana.models.oscillation import OscillationParameters
from nuana.models.results import MatterParameters, OscillationCurve

MU_TO_MU = "mu->mu"
MU_TO_E = "mu->e"


def _clamp_probability(p: float) -> float:
    return min(max(p, 0.0), 1.0)


def oscillation_phase(dm2: float, baseline_km: float, energy_GeV: float) -> float:
    """Oscillation argument 1.267·Δm²[eV²]·L[km]/E[GeV] [radian]."""
    return 1.267 * dm2 * baseline_km / energy_GeV


class OscillationEngine:
    """Two-flavour-approximated oscillation probabilities.

    P(μ→μ) = 1 − cos⁴θ13 · sin²2θ23 · sin²(1.267 Δm² L/E)
    P(μ→e) = sin²θ23 · sin²2θ13 · sin²(1.267 Δm² L/E)

    Matter versions substitute the effective 1–3 parameters.

    Args:
        params: Mixing parameters and default propagation setup.
    """

    MATTER_POTENTIAL_PREFACTOR: float = 1.512e-4  # eV² per (g/cm³ · GeV)

    def __init__(self, params: OscillationParameters | None = None) -> None:
        self._params = params or OscillationParameters()

    @property
    def params(self) -> OscillationParameters:
        return self._params

    # ------------------------------------------------------------------
    # Matter-effective parameters
    # ------------------------------------------------------------------

    def matter_potential(
        self,
        energy_GeV: float,
        density_g_cm3: float,
        electron_fraction: float | None = None,
    ) -> float:
        """A = 1.512e-4 · ρ · Ye · E [eV²]."""
        ye = self._params.electron_fraction if electron_fraction is None else electron_fraction
        return self.MATTER_POTENTIAL_PREFACTOR * density_g_cm3 * ye * energy_GeV

    def matter_effective(
        self,
        energy_GeV: float,
        density_g_cm3: float | None = None,
        electron_fraction: float | None = None,
    ) -> MatterParameters:
        """Effective Δm²₃₁ and θ13 in constant-density matter.

        D = (cos2θ13 − A/Δm²)² + sin²2θ13
        Δm²_eff = Δm² · √D
        sin²2θ13_eff = sin²2θ13 / D
        θ13_eff = ½ atan2(sin2θ13, cos2θ13 − A/Δm²)

        For E ≤ 0 the vacuum parameters are returned.
        """
        p = self._params
        rho = p.density_g_cm3 if density_g_cm3 is None else density_g_cm3
        dm31 = p.dm31
        th13 = p.theta13
        sin2 = math.sin(2.0 * th13)
        cos2 = math.cos(2.0 * th13)

        if energy_GeV <= 0:
            return MatterParameters(
                dm2_eff=dm31,
                sin2_2theta13_eff=sin2 * sin2,
                theta13_eff=th13,
                cos4_theta13_eff=math.cos(th13) ** 4,
                matter_potential=0.0,
            )

        A = self.matter_potential(energy_GeV, rho, electron_fraction)
        shifted = cos2 - A / dm31
        D = shifted * shifted + sin2 * sin2
        # atan2 keeps θ13_eff in the right quadrant past the resonance
        th13_m = 0.5 * math.atan2(sin2, shifted)

        return MatterParameters(
            dm2_eff=dm31 * math.sqrt(D),
            sin2_2theta13_eff=(sin2 * sin2) / D,
            theta13_eff=th13_m,
            cos4_theta13_eff=math.cos(th13_m) ** 4,
            matter_potential=A,
        )

    # ------------------------------------------------------------------
    # Vacuum probabilities
    # ------------------------------------------------------------------

    def survival_vacuum(self, energy_GeV: float, baseline_km: float | None = None) -> float:
        """P(νμ→νμ) in vacuum, clamped to [0, 1]."""
        if energy_GeV <= 0:
            return 1.0
        p = self._params
        L = p.baseline_km if baseline_km is None else baseline_km
        arg = oscillation_phase(p.dm31, L, energy_GeV)
        s2_23 = math.sin(2.0 * p.theta23)
        P = 1.0 - math.cos(p.theta13) ** 4 * s2_23 * s2_23 * math.sin(arg) ** 2
        return _clamp_probability(P)

    def appearance_vacuum(self, energy_GeV: float, baseline_km: float | None = None) -> float:
        """P(νμ→νe) in vacuum, clamped to [0, 1]."""
        if energy_GeV <= 0:
            return 0.0
        p = self._params
        L = p.baseline_km if baseline_km is None else baseline_km
        arg = oscillation_phase(p.dm31, L, energy_GeV)
        s2_13 = math.sin(2.0 * p.theta13)
        P = math.sin(p.theta23) ** 2 * s2_13 * s2_13 * math.sin(arg) ** 2
        return _clamp_probability(P)

    # ------------------------------------------------------------------
    # Matter-approximated probabilities
    # ------------------------------------------------------------------

    def survival_matter(
        self,
        energy_GeV: float,
        baseline_km: float | None = None,
        density_g_cm3: float | None = None,
    ) -> float:
        """P(νμ→νμ) with matter-effective 1–3 parameters, clamped to [0, 1]."""
        if energy_GeV <= 0:
            return 1.0
        p = self._params
        L = p.baseline_km if baseline_km is None else baseline_km
        m = self.matter_effective(energy_GeV, density_g_cm3)
        arg = oscillation_phase(m.dm2_eff, L, energy_GeV)
        s2_23 = math.sin(2.0 * p.theta23)
        P = 1.0 - m.cos4_theta13_eff * s2_23 * s2_23 * math.sin(arg) ** 2
        return _clamp_probability(P)

    def appearance_matter(
        self,
        energy_GeV: float,
        baseline_km: float | None = None,
        density_g_cm3: float | None = None,
    ) -> float:
        """P(νμ→νe) with matter-effective 1–3 parameters, clamped to [0, 1]."""
        if energy_GeV <= 0:
            return 0.0
        p = self._params
        L = p.baseline_km if baseline_km is None else baseline_km
        m = self.matter_effective(energy_GeV, density_g_cm3)
        arg = oscillation_phase(m.dm2_eff, L, energy_GeV)
        P = math.sin(p.theta23) ** 2 * m.sin2_2theta13_eff * math.sin(arg) ** 2
        return _clamp_probability(P)

    # ------------------------------------------------------------------
    # Sweeps
    # ------------------------------------------------------------------

    def probability_curve(
        self,
        min_GeV: float,
        max_GeV: float,
        steps: int,
        channel: str = MU_TO_MU,
        baseline_km: float | None = None,
        density_g_cm3: float | None = 0.0,
        log_spaced: bool = False,
    ) -> OscillationCurve:
        """Probability over an energy range.

        Args:
            min_GeV: Lower energy bound [GeV].
            max_GeV: Upper energy bound [GeV].
            steps: Number of energy points.
            channel: MU_TO_MU (survival) or MU_TO_E (appearance).
            baseline_km: Baseline [km]; default from parameters.
            density_g_cm3: Matter density [g/cm³]; 0 selects the vacuum
                formulas, None the parameter default.
            log_spaced: Geometric instead of linear energy spacing.

        Returns:
            OscillationCurve with one probability per energy.
        """
        if channel not in (MU_TO_MU, MU_TO_E):
            raise ValueError(f"Unknown oscillation channel: {channel!r}")
        p = self._params
        L = p.baseline_km if baseline_km is None else baseline_km
        rho = p.density_g_cm3 if density_g_cm3 is None else density_g_cm3

        if log_spaced:
            energies = np.geomspace(min_GeV, max_GeV, steps)
        else:
            energies = np.linspace(min_GeV, max_GeV, steps)

        probs = []
        for E in energies:
            E = float(E)
            if rho == 0:
                P = (self.survival_vacuum(E, L) if channel == MU_TO_MU
                     else self.appearance_vacuum(E, L))
            else:
                P = (self.survival_matter(E, L, rho) if channel == MU_TO_MU
                     else self.appearance_matter(E, L, rho))
            probs.append(P)

        return OscillationCurve(
            energies_GeV=energies.tolist(),
            probabilities=probs,
            baseline_km=L,
            density_g_cm3=rho,
            channel=channel,
        )
