"""Unit conversion module — single conversion point for the analysis engines.

All unit conversions between event records and engines go through here.

Event record units:
    Energy    : GeV
    Momentum  : GeV
    σ         : cm²

Engine units:
    Kinematics          : GeV
    Energy estimators   : MeV
    Baseline            : km
    Mass splitting      : eV²
    Density             : g/cm³
    Angle               : radian
"""

import math
from typing import NewType

# Unit aliases for static checking only
GeV = NewType('GeV', float)
MeV = NewType('MeV', float)
Radian = NewType('Radian', float)
Cm2 = NewType('Cm2', float)

# ħc = 0.1973 GeV·fm  →  1 GeV⁻¹ = 1.973e-14 cm, i.e. 1 cm⁻¹ = 5.07e13 GeV
_INV_GEV_PER_CM = 5.07e13


# ---------------------------------------------------------------------------
# Energy conversions
# ---------------------------------------------------------------------------

def GeV_to_MeV(gev: float) -> MeV:
    """GeV → MeV."""
    return MeV(gev * 1000.0)


def MeV_to_GeV(mev: float) -> GeV:
    """MeV → GeV."""
    return GeV(mev / 1000.0)


# ---------------------------------------------------------------------------
# Angle conversions
# ---------------------------------------------------------------------------

def deg_to_rad(deg: float) -> Radian:
    """Degree → Radian."""
    return Radian(deg * (math.pi / 180.0))


def rad_to_deg(rad: float) -> float:
    """Radian → Degree."""
    return rad * (180.0 / math.pi)


# ---------------------------------------------------------------------------
# Cross-section conversions
# ---------------------------------------------------------------------------

def natural_xsec_to_cm2(xsec_inv_GeV2: float) -> Cm2:
    """Natural-unit cross-section [GeV⁻²] → cm².

    σ [cm²] = σ [GeV⁻²] / (5.07e13)²

    Args:
        xsec_inv_GeV2: Cross-section in natural units [GeV⁻²].

    Returns:
        Cross-section [cm²].
    """
    return Cm2(xsec_inv_GeV2 / (_INV_GEV_PER_CM * _INV_GEV_PER_CM))


def cm2_to_natural_xsec(xsec_cm2: float) -> float:
    """cm² → natural-unit cross-section [GeV⁻²]."""
    return xsec_cm2 * _INV_GEV_PER_CM * _INV_GEV_PER_CM
