"""
EAS Station - Emergency Alert System
Copyright (c) 2025 Timothy Kramer (KR8MER)

This file is part of EAS Station.

EAS Station is dual-licensed software:
- GNU Affero General Public License v3 (AGPL-3.0) for open-source use
- Commercial License for proprietary use

You should have received a copy of both licenses with this software.
For more information, see LICENSE and LICENSE-COMMERCIAL files.

IMPORTANT: This software cannot be rebranded or have attribution removed.
See NOTICE file for complete terms.

Repository: https://github.com/KR8MER/eas-station
"""

from __future__ import annotations

"""Route scaffolding helpers for the NWS alert importer."""

from dataclasses import dataclass
from typing import Callable, Iterable

from flask import Flask

from . import admin


@dataclass(frozen=True)
class RouteModule:
    """Describe a route bundle that can be attached to the Flask app."""

    name: str
    registrar: Callable[..., None]


def iter_route_modules() -> Iterable[RouteModule]:
    """Yield the registered route modules in initialization order."""

    yield RouteModule("routes_admin", admin.register)


def register_routes(app: Flask, logger) -> None:
    """Register all route groups with the provided Flask application."""

    for module in iter_route_modules():
        module_logger = logger.getChild(module.name)
        try:
            module.registrar(app, logger)
        except Exception as exc:  # pragma: no cover - defensive
            module_logger.error("Failed to register route module: %s", exc)
            raise
        else:
            module_logger.debug("Registered route module")


__all__ = ["RouteModule", "iter_route_modules", "register_routes"]
