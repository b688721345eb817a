"""Event record data models.

One EventRecord per simulated interaction. Energies and momenta in GeV,
cross-section weight in cm².

Records are immutable after construction; engines consume them
independently and keep no cross-event state.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum

from nuana.constants import STATUS_FINAL


class InvalidWeightError(ValueError):
    """Cross-section weight is negative or not finite."""


class ChannelFlag(Enum):
    """Interaction channel and weak-current tags.

    Values are the producer's branch names.
    """
    QE = "IsQE"
    RES = "IsRES"
    DIS = "IsDIS"
    MEC = "IsMEC"
    COH = "IsCoh"
    CC = "IsCC"
    NC = "IsNC"


HADRONIC_CHANNELS = (
    ChannelFlag.QE,
    ChannelFlag.RES,
    ChannelFlag.DIS,
    ChannelFlag.MEC,
    ChannelFlag.COH,
)


@dataclass(frozen=True)
class ParticleRecord:
    """Single particle of the event record.

    Attributes:
        pdg: Signed PDG code (sign encodes particle/antiparticle).
        status: Status code; 1 = final state, others are initial or
            intermediate particles.
        energy: Total energy [GeV].
        px, py, pz: Momentum components [GeV].
    """
    pdg: int
    status: int
    energy: float
    px: float = 0.0
    py: float = 0.0
    pz: float = 0.0

    @property
    def is_final_state(self) -> bool:
        return self.status == STATUS_FINAL

    @property
    def momentum(self) -> tuple[float, float, float]:
        return (self.px, self.py, self.pz)

    @property
    def momentum_magnitude(self) -> float:
        """|p| [GeV]."""
        return math.sqrt(self.px ** 2 + self.py ** 2 + self.pz ** 2)


@dataclass(frozen=True)
class NeutrinoState:
    """Incoming neutrino.

    Attributes:
        pdg: PDG code (14 = νμ).
        energy: Energy [GeV].
        px, py, pz: Momentum [GeV].
    """
    pdg: int
    energy: float
    px: float = 0.0
    py: float = 0.0
    pz: float = 0.0

    @property
    def momentum(self) -> tuple[float, float, float]:
        return (self.px, self.py, self.pz)


@dataclass(frozen=True)
class EventRecord:
    """One simulated neutrino interaction.

    Attributes:
        neutrino: Incoming neutrino state.
        flags: Channel and current tags. Exactly one hadronic channel and
            one current are expected but not enforced.
        cross_section_weight: Per-event weight [cm²], ≥ 0.
        particles: Particles in generation order.

    Raises:
        InvalidWeightError: If the weight is negative or not finite.
    """
    neutrino: NeutrinoState
    flags: frozenset[ChannelFlag] = field(default_factory=frozenset)
    cross_section_weight: float = 1.0
    particles: tuple[ParticleRecord, ...] = ()

    def __post_init__(self) -> None:
        w = self.cross_section_weight
        if not math.isfinite(w) or w < 0:
            raise InvalidWeightError(
                f"Cross-section weight must be finite and >= 0, got {w!r}"
            )
        # Accept any iterable on construction, store immutable containers
        if not isinstance(self.flags, frozenset):
            object.__setattr__(self, "flags", frozenset(self.flags))
        if not isinstance(self.particles, tuple):
            object.__setattr__(self, "particles", tuple(self.particles))

    def has(self, flag: ChannelFlag) -> bool:
        return flag in self.flags

    @property
    def is_cc(self) -> bool:
        return ChannelFlag.CC in self.flags

    @property
    def is_nc(self) -> bool:
        return ChannelFlag.NC in self.flags

    def final_state(self) -> list[ParticleRecord]:
        """Final-state (status 1) particles in generation order."""
        return [p for p in self.particles if p.is_final_state]
