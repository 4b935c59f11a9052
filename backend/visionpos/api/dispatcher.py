"""Command dispatcher: verb + path routing in front of the permission gate.

Patterns are ``/``-separated; a ``:name`` segment binds a path parameter.
When several patterns match, an all-literal pattern wins, then the pattern
whose literal prefix is longest, then the one registered first.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from visionpos.core.errors import InternalError, NotFoundError, PosError, ValidationError
from visionpos.core.gate import PermissionGate
from visionpos.schemas.auth import Session
from visionpos.schemas.envelope import Envelope

logger = logging.getLogger(__name__)

VERBS = frozenset({"GET", "POST", "PUT", "DELETE", "PATCH"})

M = TypeVar("M", bound=BaseModel)


@dataclass
class Command:
    verb: str
    path: str
    data: Any = None
    token: str | None = None


@dataclass
class CommandContext:
    params: dict[str, str]
    data: Any
    session: Session | None
    token: str | None = None

    def parse(self, model: type[M]) -> M:
        """Validate the command payload into ``model``."""
        try:
            return model.model_validate(self.data if self.data is not None else {})
        except PydanticValidationError as exc:
            raise ValidationError.from_pydantic(exc)


Handler = Callable[[CommandContext], Awaitable[Envelope]]
SessionResolver = Callable[[str | None], Session | None]


def _segments(path: str) -> list[str]:
    return [s for s in path.strip("/").split("/") if s]


@dataclass
class Route:
    verb: str
    pattern: str
    handler: Handler
    permissions: frozenset[str] = field(default_factory=frozenset)
    order: int = 0

    def __post_init__(self):
        self.segments = _segments(self.pattern)
        self.shape = tuple(":" if s.startswith(":") else s for s in self.segments)

    @property
    def is_literal(self) -> bool:
        return ":" not in self.shape

    @property
    def literal_prefix(self) -> int:
        count = 0
        for seg in self.shape:
            if seg == ":":
                break
            count += 1
        return count

    def match(self, segments: list[str]) -> dict[str, str] | None:
        if len(segments) != len(self.segments):
            return None
        params = {}
        for expected, actual in zip(self.segments, segments):
            if expected.startswith(":"):
                params[expected[1:]] = actual
            elif expected != actual:
                return None
        return params

    def sort_key(self) -> tuple:
        # literal-ness, then literal-vs-parameter at each position, then order
        return (
            not self.is_literal,
            -self.literal_prefix,
            tuple(seg == ":" for seg in self.shape),
            self.order,
        )


class CommandDispatcher:
    def __init__(self, gate: PermissionGate, session_resolver: SessionResolver):
        self.gate = gate
        self.session_resolver = session_resolver
        self._routes: dict[str, list[Route]] = {}

    @property
    def routes(self) -> list[Route]:
        return [r for routes in self._routes.values() for r in routes]

    def register(
        self,
        verb: str,
        pattern: str,
        handler: Handler,
        permissions: Iterable[str] = (),
    ) -> Route:
        verb = verb.upper()
        if verb not in VERBS:
            raise ValueError(f"Unsupported verb: {verb}")

        routes = self._routes.setdefault(verb, [])
        route = Route(
            verb=verb,
            pattern=pattern,
            handler=handler,
            permissions=frozenset(getattr(p, "value", p) for p in permissions),
            order=len(self.routes),
        )
        for existing in routes:
            if existing.shape == route.shape:
                raise ValueError(
                    f"Route {verb} {pattern} conflicts with {existing.verb} {existing.pattern}"
                )
        routes.append(route)
        routes.sort(key=Route.sort_key)
        return route

    def resolve(self, verb: str, path: str) -> tuple[Route, dict[str, str]] | None:
        segments = _segments(path)
        for route in self._routes.get(verb.upper(), []):
            params = route.match(segments)
            if params is not None:
                return route, params
        return None

    async def dispatch(self, command: Command) -> Envelope:
        """Run one command; every outcome comes back as an envelope."""
        logger.debug(f"Dispatching {command.verb} {command.path}")
        try:
            resolved = self.resolve(command.verb, command.path)
            if resolved is None:
                raise NotFoundError("Endpoint not found")
            route, params = resolved

            session = self.session_resolver(command.token)
            self.gate.check(route.permissions, session)

            ctx = CommandContext(params=params, data=command.data, session=session, token=command.token)
            return await route.handler(ctx)
        except PosError as exc:
            if exc.status >= 500:
                logger.error(f"{command.verb} {command.path} failed: {exc.message}")
            return Envelope.fail(exc.status, exc.message)
        except Exception:
            logger.exception(f"Unhandled error in {command.verb} {command.path}")
            error = InternalError()
            return Envelope.fail(error.status, error.message)
