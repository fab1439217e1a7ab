"""Command and CommandHandler base classes with a signed-in session gate."""

from abc import ABCMeta, abstractmethod
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from functools import wraps
from typing import Any, ClassVar, Generic, TypeVar, dataclass_transform

from pydantic import BaseModel


class Command(BaseModel):
    # Public commands may be run by anonymous callers (sign-in, callback, logout)
    __public__: ClassVar[bool] = False


class Result(BaseModel): ...


C = TypeVar("C", bound=Command)
R = TypeVar("R", bound=Result)

# Unbound async handler method: (self, cmd) -> Coroutine -> Result
_HandlerMethod = Callable[..., Coroutine[Any, Any, Any]]


def require_session(handler: Any) -> None:
    """Raise unless the handler's caller identity is a signed-in Principal."""
    from oidclogin.domain.auth.model.identity import Principal
    from oidclogin.domain.shared.error import AuthorizationError, ConfigurationError

    if not hasattr(handler, "identity"):
        raise ConfigurationError(
            f"Handler {type(handler).__name__} runs a non-public request "
            f"but declares no `identity` field"
        )
    if not isinstance(handler.identity, Principal):
        raise AuthorizationError("Authentication required", code="missing_session")


def wrap_run_with_session_gate(original_run: _HandlerMethod) -> _HandlerMethod:
    """Wrap run() so non-public requests are rejected for anonymous callers."""

    @wraps(original_run)
    async def gated_run(self: Any, request: Any) -> Any:
        if not getattr(type(request), "__public__", False):
            require_session(self)
        return await original_run(self, request)

    return gated_run


@dataclass_transform()
class _CommandHandlerMeta(ABCMeta):
    """Metaclass that combines ABC with auto-dataclass and the session gate for subclasses."""

    def __new__(mcs, name: str, bases: tuple[type, ...], namespace: dict[str, Any]):
        cls = super().__new__(mcs, name, bases, namespace)
        if any(isinstance(b, mcs) for b in bases):
            cls = dataclass(cls)

            original_run = cls.__dict__.get("run")
            if original_run is not None:
                cls.run = wrap_run_with_session_gate(original_run)

        return cls


class CommandHandler(Generic[C, R], metaclass=_CommandHandlerMeta):
    """Base class for command handlers. Subclasses are automatically dataclasses.

    Commands that are not ``__public__`` need a signed-in caller:
        class UnlinkHandler(CommandHandler[Unlink, UnlinkResult]):
            identity: Identity
    """

    @abstractmethod
    async def run(self, cmd: C) -> R: ...
