"""
BaseRenderer -- Abstract base class for output renderers

All renderers inherit from this class and implement render().
Provides common utilities for terminal width and truncation.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING
import shutil

if TYPE_CHECKING:
    from ..presentation.symbols import SymbolSet
    from . import OutputSpec


class BaseRenderer(ABC):
    """
    Abstract base class for all output renderers.

    Provides:
    - Symbol set access (Unicode/ASCII)
    - Terminal width detection
    - Truncation utilities

    Subclasses must implement render() method.
    """

    def __init__(
        self,
        symbols: "SymbolSet" = None,
        width: int = None,
        full: bool = False,
    ):
        """
        Initialize renderer.

        Args:
            symbols: SymbolSet for visual elements (auto-detect if None)
            width: Terminal width (auto-detect if None)
            full: If True, don't truncate content
        """
        from ..presentation.symbols import get_symbols

        self.symbols = symbols or get_symbols()
        self.width = width or shutil.get_terminal_size().columns
        self.full = full

    @abstractmethod
    def render(self, spec: "OutputSpec") -> str:
        """Render OutputSpec to formatted string."""
        pass

    def truncate(self, text: str, length: int = None, ellipsis: str = None) -> str:
        """
        Truncate text with ellipsis, respecting full mode.

        Args:
            text: Text to truncate
            length: Max length (default: based on terminal width)
            ellipsis: Ellipsis character (default: from symbols)
        """
        if not text:
            return ""

        if self.full:
            return text

        if length is None:
            length = max(20, self.width - 10)

        if ellipsis is None:
            ellipsis = self.symbols.ellipsis

        if len(text) <= length:
            return text

        ellip_len = len(ellipsis)
        if length <= ellip_len:
            return text[:length]

        return text[:length - ellip_len] + ellipsis

    def format_count(self, count: int, singular: str, plural: str = None) -> str:
        """Format count with singular/plural noun (e.g., "3 commits", "1 commit")."""
        if count == 1:
            return f"{count} {singular}"
        return f"{count} {plural or singular + 's'}"
