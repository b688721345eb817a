"""Energy reconstruction engine — true, calorimetric and CCQE estimators.

Event records carry GeV; estimators are computed in MeV.

The kinematic estimator assumes a charged-current quasi-elastic two-body
interaction on a bound neutron with the beam along +z.
"""

from __future__ import annotations

import logging
import math

from nuana.constants import (
    PDG_MUON,
    PDG_NEUTRON,
    PDG_PI0,
    PDG_PI_PLUS,
    PDG_PROTON,
)
from nuana.core.units import GeV_to_MeV
from nuana.models.event import EventRecord, ParticleRecord
from nuana.models.results import UNDEFINED_ENERGY, EnergyEstimates

logger = logging.getLogger(__name__)

# |PDG| → rest mass [MeV]; particles not listed are left out of the sum
REST_MASS_MEV: dict[int, float] = {
    PDG_MUON: 105.66,
    PDG_PI_PLUS: 139.57,
    PDG_PROTON: 938.27,
    PDG_NEUTRON: 939.57,
    PDG_PI0: 134.97,
}


class EnergyReconstructionEngine:
    """Neutrino energy estimators for charged-current events.

    Args:
        binding_energy_MeV: Nuclear binding energy Eb [MeV].
        max_energy_MeV: Upper bound of a physically plausible kinematic
            estimate [MeV]; results outside (0, max] have no solution.
    """

    NEUTRON_MASS_MEV: float = 939.565
    PROTON_MASS_MEV: float = 938.272
    MUON_MASS_MEV: float = 105.66
    BINDING_ENERGY_MEV: float = 27.0
    MAX_ENERGY_MEV: float = 100_000.0
    DENOMINATOR_EPS: float = 1e-6  # MeV

    def __init__(
        self,
        binding_energy_MeV: float = BINDING_ENERGY_MEV,
        max_energy_MeV: float = MAX_ENERGY_MEV,
    ) -> None:
        self._Eb = binding_energy_MeV
        self._max_E = max_energy_MeV

    def true_energy(self, event: EventRecord) -> float:
        """Generator-level neutrino energy [MeV]."""
        return float(GeV_to_MeV(event.neutrino.energy))

    def calorimetric_energy(self, event: EventRecord) -> float:
        """Calorimetric sum of final-state kinetic energies.

        E_cal = Σ_{status=1} max(0, E − m)

        Only particles with a known rest mass contribute.

        Returns:
            E_cal [MeV], ≥ 0.
        """
        total = 0.0
        for p in event.particles:
            if not p.is_final_state:
                continue
            mass = REST_MASS_MEV.get(abs(p.pdg))
            if mass is None:
                continue
            kin = GeV_to_MeV(p.energy) - mass
            if kin > 0:
                total += kin
        return total

    def kinematic_energy(self, event: EventRecord) -> float:
        """Quasi-elastic kinematic energy from the first final-state muon.

        E_QE = [2(Mn−Eb)Eμ − (Eb² − 2MnEb + mμ² + Mn² − Mp²)]
               / [2((Mn−Eb) − Eμ + pμ cosθμ)]

        Returns:
            E_QE [MeV], or UNDEFINED_ENERGY when there is no muon or no
            stable solution.
        """
        muon = self._find_muon(event)
        if muon is None:
            return UNDEFINED_ENERGY
        return self.kinematic_energy_from_muon(muon)

    def kinematic_energy_from_muon(self, muon: ParticleRecord) -> float:
        """Quasi-elastic kinematic energy for an explicitly chosen muon [MeV]."""
        p_GeV = muon.momentum_magnitude
        if p_GeV <= 0:
            return UNDEFINED_ENERGY

        Mn = self.NEUTRON_MASS_MEV
        Mp = self.PROTON_MASS_MEV
        mmu = self.MUON_MASS_MEV
        Eb = self._Eb

        E_mu = GeV_to_MeV(muon.energy)
        p_mu = GeV_to_MeV(p_GeV)
        cos_theta = muon.pz / p_GeV

        numerator = 2.0 * (Mn - Eb) * E_mu - (
            Eb * Eb - 2.0 * Mn * Eb + mmu * mmu + (Mn * Mn - Mp * Mp)
        )
        denominator = 2.0 * ((Mn - Eb) - E_mu + p_mu * cos_theta)
        if abs(denominator) < self.DENOMINATOR_EPS:
            logger.debug("CCQE denominator %.3g MeV, no solution", denominator)
            return UNDEFINED_ENERGY

        E_qe = numerator / denominator
        if not math.isfinite(E_qe) or E_qe <= 0 or E_qe > self._max_E:
            logger.debug("CCQE estimate %.6g MeV outside plausible range", E_qe)
            return UNDEFINED_ENERGY
        return E_qe

    def reconstruct(self, event: EventRecord) -> EnergyEstimates | None:
        """All three estimators for a charged-current event.

        Returns:
            EnergyEstimates, or None for events without the CC tag.
        """
        if not event.is_cc:
            return None
        return EnergyEstimates(
            true_MeV=self.true_energy(event),
            calorimetric_MeV=self.calorimetric_energy(event),
            kinematic_MeV=self.kinematic_energy(event),
        )

    @staticmethod
    def _find_muon(event: EventRecord) -> ParticleRecord | None:
        for p in event.particles:
            if p.is_final_state and abs(p.pdg) == PDG_MUON:
                return p
        return None
