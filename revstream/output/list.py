"""
ListRenderer -- Render revisions as a one-line-per-commit log

Each row:

    <kind> <short id> <date> <author> <sign> <subject>

Anomalies, if any, follow as a warning section.
"""

from typing import TYPE_CHECKING, Dict, List

from .base import BaseRenderer
from ..presentation.symbols import (
    sanitize_control_chars, symbol_for_sign, AUTHOR_LENGTH,
)

if TYPE_CHECKING:
    from . import OutputSpec


class ListRenderer(BaseRenderer):
    """Render revision rows as a compact log."""

    def render(self, spec: "OutputSpec") -> str:
        """
        Expected data formats:
        - List of row dicts
        - Dict with "items" (rows), optional "anomalies" and "summary"
        """
        if isinstance(spec.data, list):
            items, anomalies, summary = spec.data, [], None
        elif isinstance(spec.data, dict):
            items = spec.data.get("items") or []
            anomalies = spec.data.get("anomalies") or []
            summary = spec.data.get("summary")
        else:
            items, anomalies, summary = [], [], None

        lines = []

        if spec.title:
            lines.append(f"\n{spec.title}\n")

        if items:
            lines.extend(self._render_rows(items))
        else:
            lines.append(spec.empty_message)

        if anomalies:
            lines.append("")
            lines.append(f"{self.symbols.check_warn} {self.format_count(len(anomalies), 'anomaly', 'anomalies')}:")
            for anomaly in anomalies:
                lines.append(f"  {self.symbols.bullet} {self.truncate(str(anomaly), self.width - 4)}")

        if summary:
            lines.append("")
            lines.append(summary)

        return "\n".join(lines)

    def _render_rows(self, items: List[Dict]) -> List[str]:
        s = self.symbols
        lines = []

        for item in items:
            kind = getattr(s, item.get("kind", "commit"), s.commit)
            author = self.truncate(sanitize_control_chars(item.get("author", "")), AUTHOR_LENGTH)
            subject = sanitize_control_chars(item.get("subject", ""))

            sign = symbol_for_sign(s, item.get("sign"))
            prefix = f"{kind} {item.get('short_id', '')} {item.get('date', '')} {author:<{AUTHOR_LENGTH}} "
            if sign:
                prefix += f"{sign} "

            subject = self.truncate(subject, max(10, self.width - len(prefix)))
            lines.append(prefix + subject)

        return lines
