"""Serialization utilities — model ↔ JSON-safe dict conversion.

Handles Enum fields, NumPy arrays, tuples of nested dataclasses and the
histogram accumulators. Used by the export modules.
"""

from __future__ import annotations

import dataclasses
from enum import Enum
from typing import Any

import numpy as np

from nuana.constants import APP_VERSION
from nuana.core.histogram import BinnedSeries, BinnedSeries2D
from nuana.models.event import (
    ChannelFlag,
    EventRecord,
    NeutrinoState,
    ParticleRecord,
)
from nuana.models.results import (
    ChannelComposite,
    CrossSectionCurve,
    CrossSectionSummary,
)


# =====================================================================
# Generic helpers
# =====================================================================


def _serialize_value(val: Any) -> Any:
    """Convert a value to a JSON-safe type."""
    if val is None:
        return None
    if isinstance(val, Enum):
        return val.value
    if isinstance(val, np.ndarray):
        return val.tolist()
    if isinstance(val, np.generic):
        return val.item()
    if dataclasses.is_dataclass(val) and not isinstance(val, type):
        return _dataclass_to_dict(val)
    if isinstance(val, (list, tuple)):
        return [_serialize_value(v) for v in val]
    if isinstance(val, (set, frozenset)):
        return sorted(_serialize_value(v) for v in val)
    if isinstance(val, dict):
        return {str(k): _serialize_value(v) for k, v in val.items()}
    if isinstance(val, (int, float, str, bool)):
        return val
    return str(val)


def _dataclass_to_dict(obj: Any) -> dict:
    """Recursively convert a dataclass to a JSON-safe dict."""
    result = {}
    for f in dataclasses.fields(obj):
        val = getattr(obj, f.name)
        result[f.name] = _serialize_value(val)
    return result


def to_dict(obj: Any) -> Any:
    """JSON-safe form of any result dataclass."""
    return _serialize_value(obj)


# =====================================================================
# Event records
# =====================================================================


def event_to_dict(event: EventRecord) -> dict:
    """Serialize an EventRecord; flags stored as branch names."""
    return _dataclass_to_dict(event)


def dict_to_event(data: dict) -> EventRecord:
    """Deserialize an EventRecord.

    Raises:
        KeyError: If the neutrino block or its energy is missing.
        InvalidWeightError: If the stored weight is negative.
    """
    nu = data["neutrino"]
    neutrino = NeutrinoState(
        pdg=int(nu.get("pdg", 14)),
        energy=float(nu["energy"]),
        px=float(nu.get("px", 0.0)),
        py=float(nu.get("py", 0.0)),
        pz=float(nu.get("pz", 0.0)),
    )
    particles = tuple(
        ParticleRecord(
            pdg=int(p["pdg"]),
            status=int(p["status"]),
            energy=float(p["energy"]),
            px=float(p.get("px", 0.0)),
            py=float(p.get("py", 0.0)),
            pz=float(p.get("pz", 0.0)),
        )
        for p in data.get("particles", [])
    )
    return EventRecord(
        neutrino=neutrino,
        flags=frozenset(ChannelFlag(f) for f in data.get("flags", [])),
        cross_section_weight=float(data.get("cross_section_weight", 1.0)),
        particles=particles,
    )


# =====================================================================
# Histograms
# =====================================================================


def series_to_dict(series: BinnedSeries) -> dict:
    """Serialize a BinnedSeries (binning, weights and entry count)."""
    return {
        "name": series.name,
        "title": series.title,
        "n_bins": series.n_bins,
        "low": series.low,
        "high": series.high,
        "entries": series.entries,
        "weights": series.weights.tolist(),
    }


def dict_to_series(data: dict) -> BinnedSeries:
    """Deserialize a BinnedSeries.

    Raises:
        ValueError: If the weight count does not match the bin count.
    """
    series = BinnedSeries(
        int(data["n_bins"]), float(data["low"]), float(data["high"]),
        name=data.get("name", ""), title=data.get("title", ""),
    )
    weights = np.asarray(data.get("weights", [0.0] * series.n_bins), dtype=float)
    if weights.shape != (series.n_bins,):
        raise ValueError(
            f"Series {series.name!r}: {weights.size} weights for {series.n_bins} bins"
        )
    series._weights = weights
    series.entries = int(data.get("entries", 0))
    return series


def series2d_to_dict(series: BinnedSeries2D) -> dict:
    """Serialize a BinnedSeries2D; weights indexed [x_bin][y_bin]."""
    return {
        "name": series.name,
        "title": series.title,
        "x_binning": list(series.x_binning),
        "y_binning": list(series.y_binning),
        "entries": series.entries,
        "weights": series.weights.tolist(),
    }


# =====================================================================
# Cross-section curves
# =====================================================================


def curve_to_dict(curve: CrossSectionCurve) -> dict:
    return _dataclass_to_dict(curve)


def summary_to_dict(summary: CrossSectionSummary) -> dict:
    """Serialize a CrossSectionSummary with the package version embedded."""
    d = _dataclass_to_dict(summary)
    d["version"] = APP_VERSION
    return d


def dict_to_summary(data: dict) -> CrossSectionSummary:
    """Deserialize a CrossSectionSummary."""

    def _curve(d: dict) -> CrossSectionCurve:
        return CrossSectionCurve(
            energies_GeV=[float(e) for e in d.get("energies_GeV", [])],
            values=[float(v) for v in d.get("values", [])],
            name=d.get("name", ""),
        )

    families = {
        label: ChannelComposite(
            family=fam.get("family", label),
            total=_curve(fam.get("total", {})),
            cc=_curve(fam.get("cc", {})),
            nc=_curve(fam.get("nc", {})),
        )
        for label, fam in data.get("families", {}).items()
    }
    return CrossSectionSummary(
        directory=data.get("directory", ""),
        mass_number=int(data.get("mass_number", 1)),
        families=families,
    )
