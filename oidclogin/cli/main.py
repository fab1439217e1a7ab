"""Main CLI application using Cyclopts."""

import cyclopts

from oidclogin.cli.commands import db, server

app = cyclopts.App(
    name="oidclogin",
    help="Federated sign-in through OpenID Connect",
)

app.command(server.app, name="server")
app.command(db.app, name="db")


def main() -> None:
    app()
