"""Control application factory for the run command.

This module provides a factory function for creating the in-process
FastAPI control application that exposes gateway control endpoints.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI

from clawgate.supervisor import create_control_router

if TYPE_CHECKING:
    from clawgate.supervisor import GatewaySupervisor


def create_control_app(supervisor: GatewaySupervisor) -> FastAPI:
    """Create the FastAPI control application.

    Args:
        supervisor: The GatewaySupervisor instance to control.

    Returns:
        A FastAPI application with gateway control endpoints.
    """
    app = FastAPI(
        title="clawgate control",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.include_router(create_control_router(supervisor))

    return app
