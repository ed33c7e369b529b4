"""
CLI Context for managing application dependencies.

Provides a clean way to manage CLI-level dependencies like settings, output
and the service instance, avoiding global state and enabling proper
dependency injection.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .operations.printers import Output
from .service import PastilaService
from .settings import Settings, create_settings_from_env


@dataclass
class CLIContext:
    """
    Shared context for the CLI command.

    Manages application-level dependencies (settings, output, service) that
    are initialized once and shared across a CLI command execution.
    """
    settings: Settings
    output: Output = field(default_factory=Output)
    _service: Optional[PastilaService] = None

    @classmethod
    def from_env(cls) -> CLIContext:
        """
        Create CLI context from environment variables.

        Returns:
            CLIContext with settings loaded from environment
        """
        return cls(settings=create_settings_from_env())

    @property
    def service(self) -> PastilaService:
        """
        Get or create the service instance (lazy initialization).

        Returns:
            PastilaService instance
        """
        if self._service is None:
            self._service = PastilaService(self.settings)
        return self._service

    def close(self) -> None:
        """Release the HTTP client, if one was created."""
        if self._service is not None:
            self._service.close()
            self._service = None
