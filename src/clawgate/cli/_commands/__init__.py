"""clawgate CLI commands."""
# pyright: reportUnusedCallResult=false

from __future__ import annotations

from typing import TYPE_CHECKING

from ._log import app as log_app
from ._run import app as run_app
from ._service import app as service_app
from ._status import probe_app, status_app

if TYPE_CHECKING:
    from cyclopts import App

__all__ = [
    "log_app",
    "probe_app",
    "register_commands",
    "run_app",
    "service_app",
    "status_app",
]


def register_commands(app: App) -> None:
    app.command(log_app)
    app.command(probe_app)
    app.command(run_app)
    app.command(service_app)
    app.command(status_app)

    @app.command(name="--prefix")
    def _prefix() -> None:  # pyright: ignore[reportUnusedFunction]
        """Show clawgate's install path."""
        from clawgate.utils import get_package_dir

        print(get_package_dir())  # noqa: T201
