"""
JSON renderer for blueprintcheck.

Outputs machine-readable validation reports and previews.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from blueprintcheck.domain.models import BlueprintPreview
    from blueprintcheck.domain.report import ValidationReport


class JsonRenderer:
    """
    Renders validation reports as JSON.

    Provides machine-readable output for CI pipelines. Several reports are
    rendered as a JSON array.
    """

    def __init__(self, indent: int = 2) -> None:
        self.indent = indent

    def render(self, report: ValidationReport | list[ValidationReport]) -> str:
        """Render one report, or a list of reports, as a JSON string."""
        if isinstance(report, list):
            data: Any = [self.to_dict(r) for r in report]
        else:
            data = self.to_dict(report)
        return json.dumps(data, indent=self.indent, default=str)

    def to_dict(self, report: ValidationReport) -> dict[str, Any]:
        """
        Convert a validation report to a dictionary.

        Args:
            report: The report to convert.

        Returns:
            Dictionary representation.
        """
        data = report.to_json()
        data["summary"] = report.summary.model_dump() | {"total": report.summary.total}
        return data

    def render_preview(self, preview: BlueprintPreview, source: str) -> str:
        """Render a resolution preview as a JSON string."""
        data = preview.model_dump(mode="json", by_alias=True)
        data["unresolved"] = {path: sorted(bodies) for path, bodies in preview.unresolved.items()}
        data["target"] = source
        return json.dumps(data, indent=self.indent, default=str)

    def render_to_file(self, report: ValidationReport | list[ValidationReport], path: str | Path) -> None:
        """Render a report to a JSON file."""
        Path(path).write_text(self.render(report), encoding="utf-8")

