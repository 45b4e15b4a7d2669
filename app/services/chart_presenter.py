"""Chart payload shaping for the admin panel widgets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence

PRIMARY_COLOR = "#bc5a3c"
MUTED_COLOR = "#e0e0e0"
DOUGHNUT_PALETTE = ("#bc5a3c", "#d4692f", "#ec7c3c", "#f39c67", "#fabc92", "#f8a75c", "#f8d79c")


@dataclass(frozen=True)
class LineSeries:
    """A named data series; ``dashed`` marks comparison or target lines."""

    label: str
    data: Sequence[float]
    dashed: bool = False
    fill: bool = False


class ChartPresenter(Protocol):
    def line(self, labels: Sequence[str], series: Sequence[LineSeries]) -> Dict[str, Any]:
        ...

    def doughnut(self, labels: Sequence[str], values: Sequence[float]) -> Dict[str, Any]:
        ...


class ChartJsPresenter:
    """Emits the ``{"labels", "datasets"}`` structure consumed by Chart.js."""

    def __init__(self, primary: str = PRIMARY_COLOR, muted: str = MUTED_COLOR, palette: Optional[Sequence[str]] = None) -> None:
        self.primary = primary
        self.muted = muted
        self.palette = tuple(palette or DOUGHNUT_PALETTE)

    def line(self, labels: Sequence[str], series: Sequence[LineSeries]) -> Dict[str, Any]:
        datasets: List[Dict[str, Any]] = []
        for entry in series:
            color = self.muted if entry.dashed else self.primary
            dataset: Dict[str, Any] = {
                "label": entry.label,
                "data": list(entry.data),
                "borderColor": color,
                "backgroundColor": "rgba(188, 90, 60, 0.1)" if entry.fill else color,
                "borderWidth": 2,
                "fill": entry.fill,
                "tension": 0.4,
            }
            if entry.dashed:
                dataset["borderDash"] = [5, 5]
            datasets.append(dataset)
        return {"labels": list(labels), "datasets": datasets}

    def doughnut(self, labels: Sequence[str], values: Sequence[float]) -> Dict[str, Any]:
        if not labels:
            return {
                "labels": ["No Data"],
                "datasets": [{"data": [1], "backgroundColor": [self.muted], "borderWidth": 0}],
            }
        colors = [self.palette[index % len(self.palette)] for index in range(len(labels))]
        return {
            "labels": list(labels),
            "datasets": [{"data": list(values), "backgroundColor": colors, "borderWidth": 0}],
        }


__all__ = ["ChartJsPresenter", "ChartPresenter", "LineSeries"]
