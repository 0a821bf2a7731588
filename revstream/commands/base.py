"""
BaseCommand -- Shared foundation for all CLI commands

Provides access to CLI resources via composition.
Commands receive the CLI instance and access its resources through properties.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..cli import RevstreamCLI


class BaseCommand:
    """
    Base class for CLI commands with access to shared resources.

    Design principle: Composition over inheritance.
    Commands don't reinitialize resources, they access them via the CLI instance.
    """

    def __init__(self, cli: 'RevstreamCLI'):
        """
        Initialize command with CLI instance.

        Args:
            cli: The main RevstreamCLI instance holding all resources
        """
        self._cli = cli

    @property
    def project_dir(self):
        """Repository directory the CLI operates on."""
        return self._cli.project_dir

    @property
    def config(self):
        """Application configuration."""
        return self._cli.config

    @property
    def config_manager(self):
        return self._cli.config_manager

    @property
    def symbols(self):
        """Symbol set for display (Unicode/ASCII)."""
        return self._cli.symbols

    @property
    def git(self):
        """Git integration for the project directory."""
        return self._cli.git
