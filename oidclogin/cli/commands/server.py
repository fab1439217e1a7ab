"""Server commands."""

import os
import sys
from pathlib import Path

import cyclopts
import uvicorn

from oidclogin.cli.console import get_console

app = cyclopts.App(name="server", help="Run the HTTP server")


@app.command
def run(
    host: str = "127.0.0.1",
    port: int = 8000,
    config: Path | None = None,
    reload: bool = False,
) -> None:
    """Run the server in the foreground.

    Args:
        host: Host to bind to.
        port: Port to listen on.
        config: YAML config file, exported as OIDCLOGIN_CONFIG_FILE.
        reload: Restart on code changes (development).
    """
    console = get_console()
    if config is not None:
        if not config.exists():
            console.error(f"Config file not found: {config}")
            sys.exit(1)
        os.environ["OIDCLOGIN_CONFIG_FILE"] = str(config.resolve())

    console.info(f"Listening on http://{host}:{port}")
    uvicorn.run(
        "oidclogin.application.api.rest.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_config=None,  # configure_logging owns the root logger
    )
