"""Cross-section aggregator — per-channel splines to σ per nucleon per energy.

Combines GENIE-style channel splines of one target into CC, NC and CC+NC
composites per channel family and normalises them by E·A:

    σ̃(E) = Σ_i σ_i(E) / (E · A),   σ̃(0) = 0

Curves are matched by energy value, not by position; combining curves on
different energy grids raises MisalignedCurvesError.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

import numpy as np

from nuana.constants import DEFAULT_MASS_NUMBER
from nuana.core.sources import CrossSectionSource, MissingCurveError
from nuana.models.results import (
    ChannelComposite,
    CrossSectionCurve,
    CrossSectionSummary,
)

logger = logging.getLogger(__name__)

# Family → (CC channels, NC channels)
FAMILY_CHANNELS: dict[str, tuple[tuple[str, ...], tuple[str, ...]]] = {
    "QE": (("qel_cc_n",), ("qel_nc_n", "qel_nc_p")),
    "RES": (("res_cc_p", "res_cc_n"), ("res_nc_p", "res_nc_n")),
    "DIS": (("dis_cc",), ("dis_nc",)),
    "COH": (("coh_cc",), ("coh_nc",)),
    "MEC": (("mec_cc",), ("mec_nc",)),
    "Total": (("tot_cc",), ("tot_nc",)),
}
TOTAL_FAMILY = "Total"

_DIGIT_RUN = re.compile(r"\d+")


class MisalignedCurvesError(ValueError):
    """Curves to combine do not share one energy grid."""


def parse_mass_number(label: str, default: int = DEFAULT_MASS_NUMBER) -> int:
    """Target mass number from the first digit run of *label*.

    ``"nu_mu_Ar40"`` → 40, ``"nu_mu_C12"`` → 12.

    Returns:
        Parsed A, or *default* if *label* holds no digits.
    """
    match = _DIGIT_RUN.search(label)
    if match is None:
        logger.warning(
            "Could not detect mass number in %r, defaulting to %d", label, default,
        )
        return default
    return int(match.group())


def align_curves(
    curves: Sequence[CrossSectionCurve],
) -> tuple[np.ndarray, list[np.ndarray]]:
    """Order curves by energy and verify they share one grid.

    Returns:
        (energies, values per curve), all ordered by ascending energy.

    Raises:
        ValueError: If *curves* is empty.
        MisalignedCurvesError: If lengths or energy samples differ.
    """
    if not curves:
        raise ValueError("No curves to combine")

    grid: np.ndarray | None = None
    values: list[np.ndarray] = []
    for curve in curves:
        x = np.asarray(curve.energies_GeV, dtype=float)
        y = np.asarray(curve.values, dtype=float)
        if x.shape != y.shape:
            raise MisalignedCurvesError(
                f"Curve {curve.name!r} has {x.size} energies but {y.size} values"
            )
        order = np.argsort(x, kind="stable")
        x, y = x[order], y[order]
        if grid is None:
            grid = x
        elif x.shape != grid.shape:
            raise MisalignedCurvesError(
                f"Curve {curve.name!r} has {x.size} points, expected {grid.size}"
            )
        elif not np.allclose(x, grid, rtol=1e-9, atol=1e-12):
            bad = int(np.argmax(~np.isclose(x, grid, rtol=1e-9, atol=1e-12)))
            raise MisalignedCurvesError(
                f"Curve {curve.name!r} energy {x[bad]!r} does not match "
                f"grid energy {grid[bad]!r} at sample {bad}"
            )
        values.append(y)
    return grid, values


class CrossSectionAggregator:
    """Channel-family composites normalised per nucleon per energy."""

    def combine(
        self,
        curves: Sequence[CrossSectionCurve],
        mass_number: int = DEFAULT_MASS_NUMBER,
        name: str = "",
    ) -> CrossSectionCurve:
        """Sum aligned curves and rescale by 1/(E·A).

        Args:
            curves: Curves sharing one energy grid.
            mass_number: Target mass number A.
            name: Label of the composite.

        Returns:
            CrossSectionCurve with σ/(E·A); 0 where E == 0.
        """
        if mass_number <= 0:
            raise ValueError(f"Mass number must be positive, got {mass_number!r}")
        energies, values = align_curves(curves)
        total = np.sum(values, axis=0)

        scaled = np.zeros_like(total)
        nonzero = energies != 0
        scaled[nonzero] = total[nonzero] / (energies[nonzero] * mass_number)

        return CrossSectionCurve(
            energies_GeV=energies.tolist(),
            values=scaled.tolist(),
            name=name,
        )

    def aggregate_family(
        self,
        source: CrossSectionSource,
        directory: str,
        family: str,
        mass_number: int = DEFAULT_MASS_NUMBER,
    ) -> ChannelComposite:
        """CC, NC and CC+NC composites of one channel family.

        Raises:
            KeyError: Unknown family.
            MissingCurveError: A channel curve is absent from *source*.
            MisalignedCurvesError: Channel curves are on different grids.
        """
        try:
            cc_names, nc_names = FAMILY_CHANNELS[family]
        except KeyError:
            raise KeyError(f"Unknown channel family: {family!r}")
        cc = [source.get_curve(directory, n) for n in cc_names]
        nc = [source.get_curve(directory, n) for n in nc_names]
        return self._composite(family, cc, nc, mass_number)

    def summarize(
        self,
        source: CrossSectionSource,
        directory: str,
        mass_number: int | None = None,
    ) -> CrossSectionSummary:
        """All channel families of one target directory.

        If the directory has neither ``tot_cc`` nor ``tot_nc``, the Total
        family is the sum of every channel of the other families. Having
        only one of them raises MissingCurveError.

        Args:
            source: Cross-section spline source.
            directory: Target directory (e.g. "nu_mu_Ar40").
            mass_number: Target A; parsed from *directory* when omitted.

        Returns:
            CrossSectionSummary with one ChannelComposite per family.
        """
        if mass_number is None:
            mass_number = parse_mass_number(directory)
            logger.info("Mass number for %s: %d", directory, mass_number)

        summary = CrossSectionSummary(directory=directory, mass_number=mass_number)
        all_cc: list[CrossSectionCurve] = []
        all_nc: list[CrossSectionCurve] = []
        for family, (cc_names, nc_names) in FAMILY_CHANNELS.items():
            if family == TOTAL_FAMILY:
                continue
            cc = [source.get_curve(directory, n) for n in cc_names]
            nc = [source.get_curve(directory, n) for n in nc_names]
            all_cc.extend(cc)
            all_nc.extend(nc)
            summary.families[family] = self._composite(family, cc, nc, mass_number)

        tot_cc_names, tot_nc_names = FAMILY_CHANNELS[TOTAL_FAMILY]
        found: dict[str, CrossSectionCurve] = {}
        missing: list[str] = []
        for name in tot_cc_names + tot_nc_names:
            try:
                found[name] = source.get_curve(directory, name)
            except MissingCurveError:
                missing.append(name)

        if not found:
            logger.info("No total splines in %s, summing channel splines", directory)
            summary.families[TOTAL_FAMILY] = self._composite(
                TOTAL_FAMILY, all_cc, all_nc, mass_number,
            )
        elif missing:
            raise MissingCurveError(
                f"Curve {missing[0]!r} not found in directory {directory!r} "
                f"(required alongside {sorted(found)!r})"
            )
        else:
            summary.families[TOTAL_FAMILY] = self._composite(
                TOTAL_FAMILY,
                [found[n] for n in tot_cc_names],
                [found[n] for n in tot_nc_names],
                mass_number,
            )
        return summary

    def _composite(
        self,
        family: str,
        cc: list[CrossSectionCurve],
        nc: list[CrossSectionCurve],
        mass_number: int,
    ) -> ChannelComposite:
        return ChannelComposite(
            family=family,
            total=self.combine(cc + nc, mass_number, f"{family} Total"),
            cc=self.combine(cc, mass_number, f"{family} CC"),
            nc=self.combine(nc, mass_number, f"{family} NC"),
        )
