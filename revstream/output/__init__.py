"""
Output Module -- View layer for the revstream CLI

Separates data from presentation (MVC-lite pattern).
Commands build an OutputSpec, renderers handle display.

Usage:
    from revstream.output import OutputSpec, render, snapshot_spec

    spec = snapshot_spec(result)
    print(render(spec, format="auto"))
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..presentation.symbols import SymbolSet
    from ..services.walker import WalkResult

from .base import BaseRenderer
from .list import ListRenderer  # also binds `list` in this namespace; no list() here
from .json import JsonRenderer


@dataclass
class OutputSpec:
    """
    Data envelope that commands return for rendering.

    Attributes:
        data: The actual data (dict or list)
        shape: Rendering hint - "list" | "json" | "auto"
        title: Optional section title/header
        empty_message: Message when data is empty
    """
    data: Any
    shape: str = "auto"
    title: Optional[str] = None
    empty_message: str = "No revisions."


# Maps format name to renderer class
RENDERERS = {
    "list": ListRenderer,
    "json": JsonRenderer,
}

# Valid format values for config/CLI
VALID_FORMATS = ("auto",) + tuple(RENDERERS)


def get_renderer(format: str, symbols: "SymbolSet", width: int = None, full: bool = False) -> BaseRenderer:
    """
    Get appropriate renderer instance.

    Raises:
        ValueError: If format is invalid
    """
    if format not in RENDERERS:
        valid = ", ".join(RENDERERS.keys())
        raise ValueError(f"Unknown format '{format}'. Valid: {valid}")

    renderer_class = RENDERERS[format]
    return renderer_class(symbols=symbols, width=width, full=full)


def render(
    spec: OutputSpec,
    format: str = "auto",
    symbols: "SymbolSet" = None,
    width: int = None,
    full: bool = False
) -> str:
    """
    Render OutputSpec to formatted string.

    Args:
        spec: OutputSpec from command
        format: "auto" | "list" | "json"
        symbols: SymbolSet for visual elements (auto-detect if None)
        width: Terminal width (auto-detect if None)
        full: If True, don't truncate content
    """
    import shutil
    from ..presentation.symbols import get_symbols

    if symbols is None:
        symbols = get_symbols()

    if width is None:
        width = shutil.get_terminal_size().columns

    if format == "auto":
        effective_format = spec.shape if spec.shape != "auto" else "list"
    else:
        effective_format = format

    renderer = get_renderer(effective_format, symbols, width, full)
    return renderer.render(spec)


def snapshot_rows(snapshot) -> List[Dict[str, Any]]:
    """Flatten snapshot records into display rows."""
    rows = []
    for record in snapshot:
        if record.is_merge:
            kind = "merge"
        elif record.is_root:
            kind = "root"
        else:
            kind = "commit"
        rows.append({
            "id": record.id,
            "short_id": record.short_id,
            "kind": kind,
            "date": record.timestamp.strftime("%Y-%m-%d %H:%M"),
            "author": record.author_name,
            "subject": record.subject,
            "sign": record.sign_marker,
            "parents": [*record.parent_ids],
            "timestamp_millis": record.timestamp_millis,
        })
    return rows


def snapshot_spec(result: "WalkResult", title: Optional[str] = None) -> OutputSpec:
    """Build the OutputSpec for a finished walk."""
    summary = (
        f"{result.record_count} revision(s), {result.generations} generation(s), "
        f"{result.duration_ms:.0f} ms"
    )
    return OutputSpec(
        data={
            "items": snapshot_rows(result.snapshot),
            "anomalies": [*result.anomalies],
            "summary": summary,
            "_fingerprint": result.snapshot.fingerprint,
        },
        shape="list",
        title=title,
    )
