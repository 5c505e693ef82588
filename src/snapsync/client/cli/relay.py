"""Relay command for SnapSync CLI.

Commands:
- relay: Serve the WebDAV forwarding relay
"""

from __future__ import annotations

import click


@click.command()
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind address.")
@click.option("--port", "-p", type=int, default=8000, show_default=True, help="Bind port.")
@click.option(
    "--allow",
    "allowed",
    multiple=True,
    help="Upstream URL prefix the relay may contact (repeatable). Default: any.",
)
@click.option("--timeout", type=float, default=30.0, show_default=True, help="Upstream timeout.")
def relay(host: str, port: int, allowed: tuple[str, ...], timeout: float) -> None:
    """Serve the WebDAV forwarding relay.

    Examples:

        # Relay for any endpoint on localhost
        snapsync relay

        # Public relay restricted to one WebDAV server
        snapsync relay --host 0.0.0.0 --allow https://dav.example.com/
    """
    import uvicorn

    from snapsync.relay.app import create_app

    app = create_app(allowed_endpoints=list(allowed) or None, timeout=timeout)
    click.echo(f"Relay listening on http://{host}:{port}/api/webdav/")
    uvicorn.run(app, host=host, port=port)
