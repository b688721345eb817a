"""Energy reconstruction tests — true, calorimetric and CCQE estimators."""

import math

import pytest

from nuana.core.energy_reconstruction import REST_MASS_MEV, EnergyReconstructionEngine
from nuana.models.event import ChannelFlag, EventRecord, NeutrinoState, ParticleRecord
from nuana.models.results import UNDEFINED_ENERGY

MUON_MASS_GEV = 0.10566


@pytest.fixture(scope="module")
def engine() -> EnergyReconstructionEngine:
    return EnergyReconstructionEngine()


def _make_event(particles, cc: bool = True, nu_E: float = 1.0) -> EventRecord:
    flags = {ChannelFlag.QE, ChannelFlag.CC if cc else ChannelFlag.NC}
    return EventRecord(
        neutrino=NeutrinoState(pdg=14, energy=nu_E, pz=nu_E),
        flags=frozenset(flags),
        cross_section_weight=2e-39,
        particles=tuple(particles),
    )


def _forward_muon(E_GeV: float) -> ParticleRecord:
    p = math.sqrt(E_GeV ** 2 - MUON_MASS_GEV ** 2)
    return ParticleRecord(pdg=13, status=1, energy=E_GeV, pz=p)


def _ccqe_formula(E_mu: float, p_mu: float, cos_theta: float) -> float:
    Mn, Mp, Eb, mmu = 939.565, 938.272, 27.0, 105.66
    num = 2 * (Mn - Eb) * E_mu - (Eb * Eb - 2 * Mn * Eb + mmu * mmu + (Mn * Mn - Mp * Mp))
    den = 2 * ((Mn - Eb) - E_mu + p_mu * cos_theta)
    return num / den


# -----------------------------------------------------------------------
# True and calorimetric energy
# -----------------------------------------------------------------------

class TestCalorimetric:
    def test_true_energy_in_MeV(self, engine: EnergyReconstructionEngine):
        ev = _make_event([], nu_E=2.5)
        assert engine.true_energy(ev) == pytest.approx(2500.0)

    def test_muon_plus_proton(self, engine: EnergyReconstructionEngine):
        """Muon and proton of 1000 MeV each: (1000−105.66) + (1000−938.27)."""
        ev = _make_event([
            ParticleRecord(pdg=13, status=1, energy=1.0),
            ParticleRecord(pdg=2212, status=1, energy=1.0),
        ])
        assert engine.calorimetric_energy(ev) == pytest.approx(894.34 + 61.73)

    def test_non_final_state_excluded(self, engine: EnergyReconstructionEngine):
        ev = _make_event([
            ParticleRecord(pdg=2112, status=0, energy=1.0),
            ParticleRecord(pdg=2212, status=11, energy=1.5),
            ParticleRecord(pdg=211, status=1, energy=0.5),
        ])
        assert engine.calorimetric_energy(ev) == pytest.approx(500.0 - 139.57)

    def test_unknown_pdg_excluded(self, engine: EnergyReconstructionEngine):
        """Photons, kaons and nuclei have no rest mass entry."""
        ev = _make_event([
            ParticleRecord(pdg=22, status=1, energy=0.3),
            ParticleRecord(pdg=321, status=1, energy=0.8),
            ParticleRecord(pdg=1000180390, status=1, energy=36.0),
            ParticleRecord(pdg=111, status=1, energy=0.2),
        ])
        assert engine.calorimetric_energy(ev) == pytest.approx(200.0 - 134.97)

    def test_below_rest_mass_contributes_nothing(self, engine: EnergyReconstructionEngine):
        ev = _make_event([
            ParticleRecord(pdg=2212, status=1, energy=0.9),
            ParticleRecord(pdg=-211, status=1, energy=0.1),
        ])
        assert engine.calorimetric_energy(ev) == 0.0

    def test_antiparticles_use_same_mass(self, engine: EnergyReconstructionEngine):
        ev = _make_event([ParticleRecord(pdg=-13, status=1, energy=1.0)])
        assert engine.calorimetric_energy(ev) == pytest.approx(1000.0 - REST_MASS_MEV[13])


# -----------------------------------------------------------------------
# Kinematic (CCQE) energy
# -----------------------------------------------------------------------

class TestKinematicEnergy:
    def test_forward_muon(self, engine: EnergyReconstructionEngine):
        mu = _forward_muon(1.0)
        ev = _make_event([mu])
        expected = _ccqe_formula(1000.0, mu.pz * 1000.0, 1.0)
        assert engine.kinematic_energy(ev) == pytest.approx(expected, rel=1e-9)
        # Forward muon: neutrino energy slightly above muon energy
        assert 1000.0 < expected < 1100.0

    def test_angled_muon(self, engine: EnergyReconstructionEngine):
        mu = ParticleRecord(pdg=13, status=1, energy=0.8, px=0.4, pz=0.6)
        ev = _make_event([mu])
        p = math.sqrt(0.4 ** 2 + 0.6 ** 2)
        expected = _ccqe_formula(800.0, p * 1000.0, 0.6 / p)
        assert engine.kinematic_energy(ev) == pytest.approx(expected, rel=1e-9)

    def test_first_final_state_muon_used(self, engine: EnergyReconstructionEngine):
        first = _forward_muon(1.0)
        second = _forward_muon(2.0)
        ev = _make_event([
            ParticleRecord(pdg=13, status=0, energy=3.0, pz=3.0),
            first,
            second,
        ])
        expected = _ccqe_formula(1000.0, first.pz * 1000.0, 1.0)
        assert engine.kinematic_energy(ev) == pytest.approx(expected, rel=1e-9)

    def test_no_muon_undefined(self, engine: EnergyReconstructionEngine):
        ev = _make_event([ParticleRecord(pdg=11, status=1, energy=1.0, pz=1.0)])
        assert engine.kinematic_energy(ev) == UNDEFINED_ENERGY

    def test_zero_momentum_undefined(self, engine: EnergyReconstructionEngine):
        ev = _make_event([ParticleRecord(pdg=13, status=1, energy=0.10566)])
        assert engine.kinematic_energy(ev) == UNDEFINED_ENERGY

    def test_vanishing_denominator_undefined(self, engine: EnergyReconstructionEngine):
        """Backward muon with Eμ + pμ = Mn − Eb makes the denominator zero."""
        s = 939.565 - 27.0
        m = 105.66
        E_mu = (s * s + m * m) / (2 * s)
        p_mu = s - E_mu
        mu = ParticleRecord(pdg=13, status=1, energy=E_mu / 1000.0, pz=-p_mu / 1000.0)
        ev = _make_event([mu])
        assert engine.kinematic_energy(ev) == UNDEFINED_ENERGY

    def test_negative_solution_undefined(self, engine: EnergyReconstructionEngine):
        """Very backward energetic muon gives a negative, unphysical result."""
        mu = ParticleRecord(pdg=13, status=1, energy=2.0, pz=-1.997)
        ev = _make_event([mu])
        assert _ccqe_formula(2000.0, 1997.0, -1.0) < 0
        assert engine.kinematic_energy(ev) == UNDEFINED_ENERGY

    def test_result_is_always_finite(self, engine: EnergyReconstructionEngine):
        for pz in (-0.95, -0.5, 0.0, 0.5, 0.99):
            mu = ParticleRecord(pdg=13, status=1, energy=1.0, px=0.1, pz=pz)
            E = engine.kinematic_energy(_make_event([mu]))
            assert math.isfinite(E)
            assert E == UNDEFINED_ENERGY or 0 < E <= engine.MAX_ENERGY_MEV


# -----------------------------------------------------------------------
# Full reconstruction
# -----------------------------------------------------------------------

class TestReconstruct:
    def test_nc_event_skipped(self, engine: EnergyReconstructionEngine):
        ev = _make_event([_forward_muon(1.0)], cc=False)
        assert engine.reconstruct(ev) is None

    def test_cc_event_estimates(self, engine: EnergyReconstructionEngine):
        mu = _forward_muon(1.0)
        ev = _make_event([mu, ParticleRecord(pdg=2212, status=1, energy=1.0)], nu_E=1.2)
        est = engine.reconstruct(ev)
        assert est.true_MeV == pytest.approx(1200.0)
        assert est.calorimetric_MeV == pytest.approx((1000.0 - 105.66) + (1000.0 - 938.27))
        assert est.kinematic_defined
        assert est.kinematic_MeV > 0

    def test_cc_event_without_muon(self, engine: EnergyReconstructionEngine):
        ev = _make_event([ParticleRecord(pdg=2212, status=1, energy=1.1)])
        est = engine.reconstruct(ev)
        assert not est.kinematic_defined
        assert est.calorimetric_MeV == pytest.approx(1100.0 - 938.27)
