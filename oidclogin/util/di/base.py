"""Base Dishka provider."""

from dishka import Provider as DishkaProvider

from oidclogin.util.di.scope import Scope


class Provider(DishkaProvider):
    """Dishka provider whose factories default to the per-request UOW scope."""

    scope = Scope.UOW
