"""Kinematics engine — momentum transfer and Bjorken scaling variables.

All quantities in GeV (core kinematics units).
"""

from __future__ import annotations

import math

from nuana.constants import CHARGED_LEPTON_PDGS
from nuana.models.event import EventRecord, ParticleRecord
from nuana.models.results import KinematicsResult


def find_outgoing_lepton(
    event: EventRecord,
    lepton_pdgs: tuple[int, ...] = CHARGED_LEPTON_PDGS,
) -> ParticleRecord | None:
    """First final-state charged lepton in particle-list order.

    The first match wins even when a later candidate carries more energy.

    Args:
        event: Event record.
        lepton_pdgs: Accepted |PDG| codes (default e and μ).

    Returns:
        Matching particle, or None when the event has no outgoing lepton.
    """
    for p in event.particles:
        if p.is_final_state and abs(p.pdg) in lepton_pdgs:
            return p
    return None


class KinematicsEngine:
    """Event kinematics from the incoming neutrino and outgoing lepton.

    q = p_ν − p_lep,  ω = E_ν − E_lep,  Q² = |q|² − ω²
    x = Q² / (2 M ω),  y = ω / E_ν

    Args:
        nucleon_mass: Target nucleon mass M [GeV].
    """

    NUCLEON_MASS_GEV: float = 0.939

    def __init__(self, nucleon_mass: float = NUCLEON_MASS_GEV) -> None:
        self._mN = nucleon_mass

    def compute(self, event: EventRecord) -> KinematicsResult | None:
        """Derive Q², q3, ω, x and y for one event.

        Returns:
            KinematicsResult, or None if no outgoing lepton was found.
        """
        lepton = find_outgoing_lepton(event)
        if lepton is None:
            return None
        return self.from_lepton(event, lepton)

    def from_lepton(
        self,
        event: EventRecord,
        lepton: ParticleRecord,
    ) -> KinematicsResult:
        """Kinematics for an explicitly chosen lepton."""
        nu = event.neutrino
        qx = nu.px - lepton.px
        qy = nu.py - lepton.py
        qz = nu.pz - lepton.pz
        q3 = math.sqrt(qx * qx + qy * qy + qz * qz)
        omega = nu.energy - lepton.energy

        # Near-elastic rounding can push Q² slightly negative
        Q2 = max(0.0, q3 * q3 - omega * omega)

        y = omega / nu.energy if nu.energy != 0 else 0.0
        x = Q2 / (2.0 * self._mN * omega) if omega > 0 else 0.0

        return KinematicsResult(
            lepton_energy=lepton.energy,
            q3=q3,
            omega=omega,
            Q2=Q2,
            bjorken_x=x,
            bjorken_y=y,
        )
