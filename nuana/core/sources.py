"""Event and cross-section sources consumed by the analysis engines.

The engines only need ``count()`` / ``get(index)`` for events and
``get_curve(directory, channel)`` for cross-section splines. Decoding the
on-disk tree format happens outside this package; the in-memory sources
here take already-decoded records or branch columns.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from typing import Protocol

from nuana.constants import PDG_NU_MU
from nuana.core.units import natural_xsec_to_cm2
from nuana.models.event import (
    ChannelFlag,
    EventRecord,
    NeutrinoState,
    ParticleRecord,
)
from nuana.models.results import CrossSectionCurve

logger = logging.getLogger(__name__)

# Event-tree branches
REQUIRED_EVENT_BRANCHES = ("nuE",)
MOMENTUM_BRANCHES = ("nuPx", "nuPy", "nuPz")
# Particles-tree branches, one list per event
REQUIRED_PARTICLE_BRANCHES = ("status", "pdg", "energy", "px", "py", "pz")


class MissingBranchError(KeyError):
    """A required branch is absent or inconsistent in the event source."""


class MissingCurveError(KeyError):
    """A directory or channel curve is absent from the cross-section source."""


class EventSource(Protocol):
    """Finite, sequentially readable collection of event records."""

    def count(self) -> int: ...

    def get(self, index: int) -> EventRecord: ...


class CrossSectionSource(Protocol):
    """Named cross-section splines grouped by target directory."""

    def directories(self) -> list[str]: ...

    def get_curve(self, directory: str, channel: str) -> CrossSectionCurve: ...


def iter_events(
    source: EventSource,
    start: int = 0,
    stop: int | None = None,
) -> Iterator[EventRecord]:
    """Iterate records ``start`` … ``stop - 1`` of *source* in order."""
    n = source.count()
    end = n if stop is None else min(stop, n)
    for i in range(max(start, 0), end):
        yield source.get(i)


class ListEventSource:
    """Event source over an in-memory sequence of records.

    Args:
        events: Event records in input order.
    """

    def __init__(self, events: Sequence[EventRecord]) -> None:
        self._events = list(events)

    def count(self) -> int:
        return len(self._events)

    def get(self, index: int) -> EventRecord:
        return self._events[index]

    def __iter__(self) -> Iterator[EventRecord]:
        return iter(self._events)

    def __len__(self) -> int:
        return len(self._events)


class BranchEventSource:
    """Event source over decoded ``Event`` and ``Particles`` tree columns.

    Event branches hold one scalar per event (``nupdg``, ``nuE``,
    ``nuPx/Py/Pz``, ``xsection``, ``IsQE`` … ``IsNC``). Particle branches
    hold one list per event (``status``, ``pdg``, ``energy``, ``px``,
    ``py``, ``pz``). Missing ``nupdg`` defaults to 14, missing
    ``xsection`` to 1.0, missing flag branches to False.

    Args:
        event_branches: Branch name → per-event values.
        particle_branches: Branch name → per-event value lists. May be
            omitted when only event-level quantities are needed.
        xsec_natural_units: ``xsection`` is stored in GeV⁻² and must be
            converted to cm².

    Raises:
        MissingBranchError: If a required branch is absent or branch
            lengths disagree.
    """

    def __init__(
        self,
        event_branches: Mapping[str, Sequence],
        particle_branches: Mapping[str, Sequence[Sequence]] | None = None,
        xsec_natural_units: bool = False,
    ) -> None:
        for name in REQUIRED_EVENT_BRANCHES:
            if name not in event_branches:
                raise MissingBranchError(f"Event branch not found: {name!r}")
        self._events = event_branches
        self._n = len(event_branches["nuE"])
        for name, column in event_branches.items():
            if len(column) != self._n:
                raise MissingBranchError(
                    f"Event branch {name!r} has {len(column)} entries, expected {self._n}"
                )

        self._particles = particle_branches
        if particle_branches is not None:
            for name in REQUIRED_PARTICLE_BRANCHES:
                if name not in particle_branches:
                    raise MissingBranchError(f"Particles branch not found: {name!r}")
                if len(particle_branches[name]) != self._n:
                    raise MissingBranchError(
                        f"Particles branch {name!r} has "
                        f"{len(particle_branches[name])} entries, expected {self._n}"
                    )
        self._natural = xsec_natural_units
        logger.debug("Branch source with %d entries", self._n)

    def count(self) -> int:
        return self._n

    def get(self, index: int) -> EventRecord:
        ev = self._events
        nupdg = int(ev["nupdg"][index]) if "nupdg" in ev else PDG_NU_MU
        xsec = float(ev["xsection"][index]) if "xsection" in ev else 1.0
        if self._natural:
            xsec = float(natural_xsec_to_cm2(xsec))

        px, py, pz = (
            float(ev[name][index]) if name in ev else 0.0
            for name in MOMENTUM_BRANCHES
        )
        neutrino = NeutrinoState(
            pdg=nupdg, energy=float(ev["nuE"][index]), px=px, py=py, pz=pz,
        )
        flags = frozenset(
            flag for flag in ChannelFlag
            if flag.value in ev and bool(ev[flag.value][index])
        )
        return EventRecord(
            neutrino=neutrino,
            flags=flags,
            cross_section_weight=xsec,
            particles=self._particles_at(index),
        )

    def _particles_at(self, index: int) -> tuple[ParticleRecord, ...]:
        if self._particles is None:
            return ()
        cols = [self._particles[name][index] for name in REQUIRED_PARTICLE_BRANCHES]
        n = len(cols[0])
        if any(len(c) != n for c in cols):
            raise MissingBranchError(
                f"Particle columns of entry {index} have inconsistent lengths"
            )
        return tuple(
            ParticleRecord(
                pdg=int(pdg), status=int(status), energy=float(energy),
                px=float(px), py=float(py), pz=float(pz),
            )
            for status, pdg, energy, px, py, pz in zip(*cols)
        )


class DictCrossSectionSource:
    """Cross-section source over in-memory curves.

    Args:
        curves: Directory → channel name → curve, or (energies, values)
            pair.
    """

    def __init__(
        self,
        curves: Mapping[str, Mapping[str, CrossSectionCurve | tuple[Sequence[float], Sequence[float]]]],
    ) -> None:
        self._dirs: dict[str, dict[str, CrossSectionCurve]] = {}
        for directory, channels in curves.items():
            self._dirs[directory] = {
                name: self._as_curve(name, curve) for name, curve in channels.items()
            }

    @staticmethod
    def _as_curve(name: str, curve) -> CrossSectionCurve:
        if isinstance(curve, CrossSectionCurve):
            return curve
        energies, values = curve
        return CrossSectionCurve(
            energies_GeV=[float(e) for e in energies],
            values=[float(v) for v in values],
            name=name,
        )

    def directories(self) -> list[str]:
        return list(self._dirs)

    def channels(self, directory: str) -> list[str]:
        return list(self._directory(directory))

    def has_curve(self, directory: str, channel: str) -> bool:
        return channel in self._dirs.get(directory, {})

    def get_curve(self, directory: str, channel: str) -> CrossSectionCurve:
        """Return one channel curve.

        Raises:
            MissingCurveError: If the directory or channel is unknown.
        """
        curves = self._directory(directory)
        try:
            return curves[channel]
        except KeyError:
            raise MissingCurveError(
                f"Curve {channel!r} not found in directory {directory!r}"
            )

    def _directory(self, directory: str) -> dict[str, CrossSectionCurve]:
        try:
            return self._dirs[directory]
        except KeyError:
            raise MissingCurveError(f"Directory not found: {directory!r}")
