"""Custom Dishka scopes for oidclogin."""

from dishka import BaseScope, new_scope


class Scope(BaseScope):  # type: ignore[misc]
    """Dependency injection scopes.

    Hierarchy: APP -> UOW

    - APP: Application lifetime (config, engine, HTTP client, provider registry)
    - UOW: Unit of Work, one per HTTP request (DB session, flow context, handlers)
    """

    APP = new_scope("APP")
    UOW = new_scope("UOW")
