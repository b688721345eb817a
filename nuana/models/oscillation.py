"""Oscillation parameter data model.

Reference values: NuFIT-style global best fit, normal ordering.
"""

from dataclasses import dataclass

from nuana.constants import (
    DEFAULT_BASELINE_KM,
    DEFAULT_DENSITY_G_CM3,
    DEFAULT_ELECTRON_FRACTION,
)
from nuana.core.units import deg_to_rad


@dataclass(frozen=True)
class OscillationParameters:
    """Three-flavour mixing parameters and propagation setup.

    Immutable; derive scan points with ``dataclasses.replace``.

    Attributes:
        theta12: Solar mixing angle [radian].
        theta13: Reactor mixing angle [radian].
        theta23: Atmospheric mixing angle [radian].
        dm21: Δm²₂₁ [eV²].
        dm31: Δm²₃₁ [eV²].
        delta_cp: CP phase [radian].
        baseline_km: Baseline L [km].
        density_g_cm3: Matter density ρ [g/cm³].
        electron_fraction: Electron fraction Ye.
    """
    theta12: float = deg_to_rad(33.44)
    theta13: float = deg_to_rad(8.57)
    theta23: float = deg_to_rad(49.2)
    dm21: float = 7.42e-5
    dm31: float = 2.517e-3
    delta_cp: float = deg_to_rad(197.0)
    baseline_km: float = DEFAULT_BASELINE_KM
    density_g_cm3: float = DEFAULT_DENSITY_G_CM3
    electron_fraction: float = DEFAULT_ELECTRON_FRACTION
