"""CSV export — histograms, response relation and cross-section curves.

BOM UTF-8 encoding for Excel compatibility.
"""

from __future__ import annotations

import csv

from nuana.core.histogram import BinnedSeries, BinnedSeries2D
from nuana.models.results import CrossSectionSummary, OscillationCurve


class CsvExporter:
    """CSV file export operations."""

    def export_series(self, series: BinnedSeries, output_path: str) -> None:
        """Export a 1-D histogram.

        Columns: Bin Low Edge, Bin Width, Weight.

        Args:
            series: Histogram to export.
            output_path: Destination file path (.csv).
        """
        with open(output_path, "w", newline="", encoding="utf-8-sig") as f:
            writer = csv.writer(f)
            writer.writerow(["Bin Low Edge", "Bin Width", "Weight"])
            for low, width, weight in series.bins():
                writer.writerow([f"{low:.6g}", f"{width:.6g}", f"{weight:.8g}"])

    def export_series_table(
        self, series: list[BinnedSeries], output_path: str,
    ) -> None:
        """Export several histograms of identical binning side by side.

        Columns: Bin Center, then one column per histogram name.

        Raises:
            ValueError: If the histograms are binned differently.
        """
        if not series:
            raise ValueError("No histograms to export")
        ref = series[0]
        for s in series[1:]:
            if (s.n_bins, s.low, s.high) != (ref.n_bins, ref.low, ref.high):
                raise ValueError(
                    f"Histogram {s.name!r} binning differs from {ref.name!r}"
                )
        columns = [s.weights for s in series]
        with open(output_path, "w", newline="", encoding="utf-8-sig") as f:
            writer = csv.writer(f)
            writer.writerow(["Bin Center"] + [s.name for s in series])
            for i, center in enumerate(ref.bin_centers):
                writer.writerow(
                    [f"{center:.6g}"] + [f"{float(col[i]):.8g}" for col in columns]
                )

    def export_response(self, response: BinnedSeries2D, output_path: str) -> None:
        """Export a 2-D response as long-format rows of non-empty cells.

        Columns: X Low Edge, Y Low Edge, Weight.
        """
        x_edges = response.x_edges
        y_edges = response.y_edges
        weights = response.weights
        with open(output_path, "w", newline="", encoding="utf-8-sig") as f:
            writer = csv.writer(f)
            writer.writerow(["X Low Edge", "Y Low Edge", "Weight"])
            for ix in range(response.nx):
                for iy in range(response.ny):
                    w = float(weights[ix, iy])
                    if w == 0.0:
                        continue
                    writer.writerow([
                        f"{x_edges[ix]:.6g}", f"{y_edges[iy]:.6g}", f"{w:.8g}",
                    ])

    def export_cross_sections(
        self, summary: CrossSectionSummary, output_path: str,
    ) -> None:
        """Export every family composite on the shared energy grid.

        Columns: Energy (GeV), then "<family> Total/CC/NC" per family.
        """
        families = list(summary.families.values())
        headers = ["Energy (GeV)"]
        columns = []
        for fam in families:
            for curve in (fam.total, fam.cc, fam.nc):
                headers.append(curve.name)
                columns.append(curve.values)
        energies = families[0].total.energies_GeV if families else []

        with open(output_path, "w", newline="", encoding="utf-8-sig") as f:
            writer = csv.writer(f)
            writer.writerow(headers)
            for i, E in enumerate(energies):
                writer.writerow([f"{E:.6g}"] + [f"{col[i]:.8g}" for col in columns])

    def export_oscillation_curves(
        self, curves: list[OscillationCurve], output_path: str,
    ) -> None:
        """Export probability curves sampled on the same energies.

        Columns: Energy (GeV), then one "<channel> rho=<density>" column per curve.
        """
        if not curves:
            raise ValueError("No curves to export")
        headers = ["Energy (GeV)"] + [
            f"P({c.channel}) rho={c.density_g_cm3:g}" for c in curves
        ]
        with open(output_path, "w", newline="", encoding="utf-8-sig") as f:
            writer = csv.writer(f)
            writer.writerow(headers)
            for i, E in enumerate(curves[0].energies_GeV):
                writer.writerow(
                    [f"{E:.6g}"] + [f"{c.probabilities[i]:.8f}" for c in curves]
                )
