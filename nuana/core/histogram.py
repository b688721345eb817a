"""Binned accumulators — fixed-range weighted 1-D and 2-D histograms.

Values outside [low, high) are discarded; there are no overflow or
underflow bins. Accumulators are owned by one analysis run; shards of a
run merge into a new accumulator by element-wise summation.
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray


def _check_binning(n_bins: int, low: float, high: float) -> None:
    if n_bins <= 0:
        raise ValueError(f"Bin count must be positive, got {n_bins!r}")
    if not high > low:
        raise ValueError(f"Invalid histogram range [{low!r}, {high!r})")


def _bin_index(value: float, n_bins: int, low: float, high: float) -> int | None:
    """Index of the bin holding *value*, or None if outside [low, high)."""
    if math.isnan(value) or value < low or value >= high:
        return None
    idx = int((value - low) / (high - low) * n_bins)
    # Guard against rounding pushing values just below high into n_bins
    return min(idx, n_bins - 1)


class BinnedSeries:
    """Fixed-binning weighted 1-D histogram.

    Args:
        n_bins: Number of equal-width bins.
        low: Lower edge of the first bin (inclusive).
        high: Upper edge of the last bin (exclusive).
        name: Identifier used by exporters.
        title: Axis / display title.
    """

    def __init__(
        self,
        n_bins: int,
        low: float,
        high: float,
        name: str = "",
        title: str = "",
    ) -> None:
        _check_binning(n_bins, low, high)
        self.n_bins = n_bins
        self.low = float(low)
        self.high = float(high)
        self.name = name
        self.title = title
        self._weights: NDArray[np.float64] = np.zeros(n_bins)
        self.entries = 0

    @classmethod
    def from_binning(
        cls, binning: tuple[int, float, float], name: str = "", title: str = "",
    ) -> BinnedSeries:
        n_bins, low, high = binning
        return cls(n_bins, low, high, name=name, title=title)

    # ------------------------------------------------------------------
    # Accumulation
    # ------------------------------------------------------------------

    def find_bin(self, value: float) -> int | None:
        return _bin_index(value, self.n_bins, self.low, self.high)

    def fill(self, value: float, weight: float = 1.0) -> bool:
        """Add *weight* to the bin containing *value*.

        Returns:
            True if the value was inside the range and accumulated.
        """
        idx = self.find_bin(value)
        if idx is None:
            return False
        self._weights[idx] += weight
        self.entries += 1
        return True

    def integral(self) -> float:
        """Sum of all bin weights."""
        return float(self._weights.sum())

    def scale(self, factor: float) -> None:
        """Multiply every bin weight by *factor*."""
        self._weights *= factor

    def normalize(self) -> bool:
        """Scale to unit integral.

        No-op for an empty or zero-weight series.

        Returns:
            True if the series was rescaled.
        """
        total = self.integral()
        if total <= 0:
            return False
        self.scale(1.0 / total)
        return True

    def merge(self, other: BinnedSeries) -> BinnedSeries:
        """Element-wise sum with a series of identical binning.

        Returns:
            New BinnedSeries; neither operand is modified.
        """
        if (other.n_bins, other.low, other.high) != (self.n_bins, self.low, self.high):
            raise ValueError(
                f"Cannot merge {self.name!r} with incompatible binning "
                f"({other.n_bins}, {other.low}, {other.high})"
            )
        merged = BinnedSeries(self.n_bins, self.low, self.high, self.name, self.title)
        merged._weights = self._weights + other._weights
        merged.entries = self.entries + other.entries
        return merged

    def copy(self) -> BinnedSeries:
        dup = BinnedSeries(self.n_bins, self.low, self.high, self.name, self.title)
        dup._weights = self._weights.copy()
        dup.entries = self.entries
        return dup

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def weights(self) -> NDArray[np.float64]:
        return self._weights.copy()

    @property
    def bin_width(self) -> float:
        return (self.high - self.low) / self.n_bins

    @property
    def bin_edges(self) -> NDArray[np.float64]:
        return np.linspace(self.low, self.high, self.n_bins + 1)

    @property
    def bin_centers(self) -> NDArray[np.float64]:
        edges = self.bin_edges
        return 0.5 * (edges[:-1] + edges[1:])

    def bins(self) -> list[tuple[float, float, float]]:
        """(bin_low_edge, bin_width, weight_sum) per bin, in order."""
        width = self.bin_width
        return [
            (float(edge), width, float(w))
            for edge, w in zip(self.bin_edges[:-1], self._weights)
        ]

    def __repr__(self) -> str:
        return (
            f"BinnedSeries({self.name!r}, bins={self.n_bins}, "
            f"range=[{self.low}, {self.high}), integral={self.integral():.6g})"
        )


class BinnedSeries2D:
    """Fixed-binning weighted 2-D histogram (response relation).

    Args:
        x_binning: (bins, low, high) along x.
        y_binning: (bins, low, high) along y.
        name: Identifier used by exporters.
        title: Display title.
    """

    def __init__(
        self,
        x_binning: tuple[int, float, float],
        y_binning: tuple[int, float, float],
        name: str = "",
        title: str = "",
    ) -> None:
        _check_binning(*x_binning)
        _check_binning(*y_binning)
        self.nx, self.x_low, self.x_high = x_binning[0], float(x_binning[1]), float(x_binning[2])
        self.ny, self.y_low, self.y_high = y_binning[0], float(y_binning[1]), float(y_binning[2])
        self.name = name
        self.title = title
        self._weights: NDArray[np.float64] = np.zeros((self.nx, self.ny))
        self.entries = 0

    @property
    def x_binning(self) -> tuple[int, float, float]:
        return (self.nx, self.x_low, self.x_high)

    @property
    def y_binning(self) -> tuple[int, float, float]:
        return (self.ny, self.y_low, self.y_high)

    def fill(self, x: float, y: float, weight: float = 1.0) -> bool:
        """Add *weight* at (x, y); dropped if either falls outside its range."""
        ix = _bin_index(x, self.nx, self.x_low, self.x_high)
        iy = _bin_index(y, self.ny, self.y_low, self.y_high)
        if ix is None or iy is None:
            return False
        self._weights[ix, iy] += weight
        self.entries += 1
        return True

    def integral(self) -> float:
        return float(self._weights.sum())

    def scale(self, factor: float) -> None:
        self._weights *= factor

    def normalize(self) -> bool:
        total = self.integral()
        if total <= 0:
            return False
        self.scale(1.0 / total)
        return True

    def merge(self, other: BinnedSeries2D) -> BinnedSeries2D:
        if (other.x_binning, other.y_binning) != (self.x_binning, self.y_binning):
            raise ValueError(f"Cannot merge {self.name!r} with incompatible binning")
        merged = BinnedSeries2D(self.x_binning, self.y_binning, self.name, self.title)
        merged._weights = self._weights + other._weights
        merged.entries = self.entries + other.entries
        return merged

    def copy(self) -> BinnedSeries2D:
        dup = BinnedSeries2D(self.x_binning, self.y_binning, self.name, self.title)
        dup._weights = self._weights.copy()
        dup.entries = self.entries
        return dup

    @property
    def weights(self) -> NDArray[np.float64]:
        """Bin weights indexed [x_bin, y_bin]."""
        return self._weights.copy()

    @property
    def x_edges(self) -> NDArray[np.float64]:
        return np.linspace(self.x_low, self.x_high, self.nx + 1)

    @property
    def y_edges(self) -> NDArray[np.float64]:
        return np.linspace(self.y_low, self.y_high, self.ny + 1)

    def projection_x(self) -> BinnedSeries:
        proj = BinnedSeries(self.nx, self.x_low, self.x_high, f"{self.name}_px", self.title)
        proj._weights = self._weights.sum(axis=1)
        proj.entries = self.entries
        return proj

    def projection_y(self) -> BinnedSeries:
        proj = BinnedSeries(self.ny, self.y_low, self.y_high, f"{self.name}_py", self.title)
        proj._weights = self._weights.sum(axis=0)
        proj.entries = self.entries
        return proj

    def mean_y_per_x_bin(self) -> NDArray[np.float64]:
        """Weighted mean y in each x bin (NaN where the x bin is empty).

        For a true-vs-reconstructed response this is the mean reconstructed
        energy per true-energy bin.
        """
        y_edges = self.y_edges
        y_centers = 0.5 * (y_edges[:-1] + y_edges[1:])
        row_sums = self._weights.sum(axis=1)
        weighted = self._weights @ y_centers
        means = np.full(self.nx, np.nan)
        nonzero = row_sums > 0
        means[nonzero] = weighted[nonzero] / row_sums[nonzero]
        return means

    def __repr__(self) -> str:
        return (
            f"BinnedSeries2D({self.name!r}, bins={self.nx}x{self.ny}, "
            f"integral={self.integral():.6g})"
        )
