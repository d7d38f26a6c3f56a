"""Application bootstrap wiring ports, adapters, and services."""

from __future__ import annotations

from dataclasses import dataclass

from pgpgate.app import MessageService
from pgpgate.app.adapters import GPGEngineAdapter
from pgpgate.app.ports import CryptoEnginePort
from pgpgate.config import Settings, get_settings


@dataclass(slots=True)
class ApplicationContainer:
    """Aggregates wired services and adapters for the CLI layer."""

    settings: Settings
    engine: CryptoEnginePort
    gpg_adapter: GPGEngineAdapter
    message_service: MessageService


def bootstrap_application(settings: Settings | None = None) -> ApplicationContainer:
    """Create the application container using configured adapters."""

    active_settings = settings or get_settings()
    adapter = GPGEngineAdapter.from_settings(active_settings)

    return ApplicationContainer(
        settings=active_settings,
        engine=adapter,
        gpg_adapter=adapter,
        message_service=MessageService(adapter),
    )
