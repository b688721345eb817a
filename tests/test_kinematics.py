"""Kinematics engine tests — Q², q3, ω, Bjorken x/y and lepton selection."""

import math

import pytest

from nuana.core.kinematics import KinematicsEngine, find_outgoing_lepton
from nuana.models.event import ChannelFlag, EventRecord, NeutrinoState, ParticleRecord


@pytest.fixture(scope="module")
def engine() -> KinematicsEngine:
    return KinematicsEngine()


def _make_event(particles, nu_E: float = 2.0) -> EventRecord:
    return EventRecord(
        neutrino=NeutrinoState(pdg=14, energy=nu_E, pz=nu_E),
        flags=frozenset({ChannelFlag.QE, ChannelFlag.CC}),
        cross_section_weight=1e-38,
        particles=tuple(particles),
    )


# -----------------------------------------------------------------------
# Lepton selection
# -----------------------------------------------------------------------

class TestLeptonSelection:
    def test_first_final_state_lepton_wins(self):
        """First match in list order, not the most energetic lepton."""
        ev = _make_event([
            ParticleRecord(pdg=14, status=0, energy=2.0, pz=2.0),
            ParticleRecord(pdg=11, status=1, energy=0.5, pz=0.5),
            ParticleRecord(pdg=13, status=1, energy=1.8, pz=1.7),
        ])
        lep = find_outgoing_lepton(ev)
        assert lep is not None
        assert lep.pdg == 11
        assert lep.energy == pytest.approx(0.5)

    def test_non_final_leptons_ignored(self):
        ev = _make_event([
            ParticleRecord(pdg=13, status=0, energy=1.0),
            ParticleRecord(pdg=13, status=3, energy=1.0),
            ParticleRecord(pdg=-13, status=1, energy=0.7, pz=0.6),
        ])
        lep = find_outgoing_lepton(ev)
        assert lep.pdg == -13

    def test_neutrinos_and_taus_not_leptons(self):
        ev = _make_event([
            ParticleRecord(pdg=14, status=1, energy=1.0),
            ParticleRecord(pdg=15, status=1, energy=1.0),
            ParticleRecord(pdg=2212, status=1, energy=1.2),
        ])
        assert find_outgoing_lepton(ev) is None

    def test_no_lepton_gives_no_result(self, engine: KinematicsEngine):
        ev = _make_event([ParticleRecord(pdg=2212, status=1, energy=1.0)])
        assert engine.compute(ev) is None


# -----------------------------------------------------------------------
# Observables
# -----------------------------------------------------------------------

class TestObservables:
    def test_forward_muon_scenario(self, engine: KinematicsEngine):
        """Eν = 2 GeV, Eμ = 1.5 GeV, pμ = (0, 0, 1.4) GeV."""
        ev = _make_event([ParticleRecord(pdg=13, status=1, energy=1.5, pz=1.4)])
        r = engine.compute(ev)
        assert r.q3 == pytest.approx(0.6)
        assert r.omega == pytest.approx(0.5)
        assert r.Q2 == pytest.approx(0.11)
        assert r.bjorken_y == pytest.approx(0.25)
        assert r.bjorken_x == pytest.approx(0.11 / (2 * 0.939 * 0.5))
        assert r.lepton_energy == pytest.approx(1.5)
        for value in (r.q3, r.omega, r.Q2, r.bjorken_x, r.bjorken_y):
            assert value >= 0

    def test_transverse_momentum_transfer(self, engine: KinematicsEngine):
        ev = _make_event([ParticleRecord(pdg=13, status=1, energy=1.2, px=0.3, pz=1.1)])
        r = engine.compute(ev)
        expected_q3 = math.sqrt(0.3 ** 2 + 0.9 ** 2)
        assert r.q3 == pytest.approx(expected_q3)
        assert r.Q2 == pytest.approx(expected_q3 ** 2 - 0.8 ** 2)

    def test_negative_Q2_clamped_to_zero(self, engine: KinematicsEngine):
        """|q|² < ω² (off-shell input) clamps Q² to 0."""
        ev = _make_event([ParticleRecord(pdg=13, status=1, energy=0.5, pz=1.9)])
        r = engine.compute(ev)
        assert r.Q2 == 0.0
        assert r.bjorken_x == 0.0

    def test_non_positive_omega_gives_zero_x(self, engine: KinematicsEngine):
        ev = _make_event([ParticleRecord(pdg=13, status=1, energy=2.5, px=1.0, pz=2.2)])
        r = engine.compute(ev)
        assert r.omega == pytest.approx(-0.5)
        assert r.bjorken_x == 0.0
        assert r.bjorken_y == pytest.approx(-0.25)

    def test_custom_nucleon_mass(self):
        ev = _make_event([ParticleRecord(pdg=13, status=1, energy=1.5, pz=1.4)])
        r = KinematicsEngine(nucleon_mass=1.0).compute(ev)
        assert r.bjorken_x == pytest.approx(0.11)

    @pytest.mark.parametrize("E_lep,p_lep", [
        (1.9, (0.0, 0.0, 1.9)),
        (1.0, (0.5, 0.2, 0.8)),
        (0.3, (0.0, 0.0, 0.29)),
        (1.99, (0.0, 0.0, 2.5)),  # |p| > E, unphysical but tolerated
    ])
    def test_Q2_never_negative(self, engine: KinematicsEngine, E_lep, p_lep):
        px, py, pz = p_lep
        ev = _make_event([ParticleRecord(pdg=11, status=1, energy=E_lep, px=px, py=py, pz=pz)])
        r = engine.compute(ev)
        assert r.Q2 >= 0
        assert r.q3 >= 0
