"""
Type-safe Quart application class for TeamUp services.

Declares the cross-cutting infrastructure attributes every service sets in
its create_app factory, instead of setattr()/getattr() on a plain Quart app.
"""

from __future__ import annotations

from typing import Any

from dishka import AsyncContainer
from quart import Quart
from sqlalchemy.ext.asyncio import AsyncEngine


class TeamUpApp(Quart):
    """Quart application with guaranteed TeamUp infrastructure.

    GUARANTEED INFRASTRUCTURE (set by create_app):
        database_engine: SQLAlchemy async engine
        container: Dishka async container

    OPTIONAL INFRASTRUCTURE (service-specific):
        background_components: long-running components started before serving
            and stopped after serving, keyed by name
    """

    database_engine: AsyncEngine
    container: AsyncContainer

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.background_components: dict[str, Any] = {}
