"""JSON export/import — analysis results, cross-section summaries and events."""

from __future__ import annotations

import json

from nuana.constants import APP_VERSION
from nuana.core.analysis import AnalysisResult
from nuana.core.histogram import BinnedSeries
from nuana.core.serializers import (
    dict_to_event,
    dict_to_series,
    dict_to_summary,
    event_to_dict,
    series2d_to_dict,
    series_to_dict,
    summary_to_dict,
    to_dict,
)
from nuana.models.event import EventRecord
from nuana.models.results import CrossSectionSummary


class JsonExporter:
    """JSON file operations."""

    def export_analysis(self, result: AnalysisResult, output_path: str) -> None:
        """Write every histogram, the response and run statistics.

        Args:
            result: Analysis result.
            output_path: Destination file path (.json).
        """
        data = {
            "version": APP_VERSION,
            "finalized": result.finalized,
            "stats": to_dict(result.stats),
            "histograms": {
                name: series_to_dict(h) for name, h in result.histograms.items()
            },
            "response": (
                series2d_to_dict(result.response) if result.response is not None else None
            ),
        }
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def import_histograms(self, input_path: str) -> dict[str, BinnedSeries]:
        """Read the 1-D histograms written by ``export_analysis``."""
        with open(input_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return {
            name: dict_to_series(d) for name, d in data.get("histograms", {}).items()
        }

    def export_cross_sections(
        self, summary: CrossSectionSummary, output_path: str,
    ) -> None:
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(summary_to_dict(summary), f, indent=2, ensure_ascii=False)

    def import_cross_sections(self, input_path: str) -> CrossSectionSummary:
        with open(input_path, "r", encoding="utf-8") as f:
            return dict_to_summary(json.load(f))

    def export_events(self, events: list[EventRecord], output_path: str) -> None:
        """Write event records (per-event diagnostic dump)."""
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump([event_to_dict(e) for e in events], f, indent=2)

    def import_events(self, input_path: str) -> list[EventRecord]:
        """Read event records written by ``export_events``.

        Raises:
            InvalidWeightError: If a stored weight is negative.
        """
        with open(input_path, "r", encoding="utf-8") as f:
            return [dict_to_event(d) for d in json.load(f)]
