"""
Name -> handler table for function tags.

Handlers raise domain errors (shared.errors); the registry turns every
outcome into a FunctionResult so one failing call never aborts the
others in the same reply. Admin-tier handlers never run for non-admin
callers.
"""
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import settings
from shared.errors import AuthorizationError, CommerceError, ErrorKind, NotFoundError
from shared.observability import ecomm_function_calls_total
from shared.security.admin import is_admin
from services.notification_service.events import OrderEventBus
from services.settings_service.service import SettingsService

logger = structlog.get_logger(__name__)

GENERIC_FAILURE = "Something went wrong while handling this request."


@dataclass
class CallContext:
    db: AsyncSession
    caller: str
    events: Optional[OrderEventBus] = None
    _admin: Optional[bool] = field(default=None, repr=False)

    async def is_admin(self) -> bool:
        # One lookup per inbound message
        if self._admin is None:
            admin_address = await SettingsService.admin_address(self.db)
            self._admin = is_admin(self.caller, admin_address, settings.DEFAULT_COUNTRY_CODE)
        return self._admin


@dataclass
class FunctionResult:
    name: str
    success: bool
    data: Any = None
    message: str = ""
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def ok(cls, name: str, data: Any = None, message: str = "") -> "FunctionResult":
        return cls(name=name, success=True, data=data, message=message)

    @classmethod
    def failure(cls, name: str, error: CommerceError) -> "FunctionResult":
        return cls(name=name, success=False, error=error.message, error_kind=error.kind)

    @property
    def outcome(self) -> str:
        return "success" if self.success else self.error_kind.value


Handler = Callable[[CallContext, dict], Awaitable[FunctionResult]]


@dataclass
class FunctionSpec:
    name: str
    handler: Handler
    usage: str
    description: str
    admin: bool = False
    aliases: tuple = ()


class FunctionRegistry:
    def __init__(self):
        self._specs: dict[str, FunctionSpec] = {}
        self._names: dict[str, str] = {}

    def add(self, name: str, handler: Handler, usage: str, description: str,
            admin: bool = False, aliases: tuple = ()):
        """Builder method; returns self so registrations can be chained."""
        spec = FunctionSpec(name, handler, usage, description, admin, tuple(aliases))
        self._specs[name] = spec
        for alias in (name, *aliases):
            self._names[alias.lower()] = name
        return self

    def lookup(self, name: str) -> Optional[FunctionSpec]:
        canonical = self._names.get((name or "").strip().lower())
        return self._specs.get(canonical) if canonical else None

    def specs(self, include_admin: bool = True) -> list[FunctionSpec]:
        return [s for s in self._specs.values() if include_admin or not s.admin]

    async def execute(self, ctx: CallContext, name: str, args: dict) -> FunctionResult:
        spec = self.lookup(name)
        if spec is None:
            result = FunctionResult.failure(name, NotFoundError(f"Unknown function: {name}"))
            ecomm_function_calls_total.labels(function="unknown", outcome=result.outcome).inc()
            logger.info("function_unknown", function=name, caller=ctx.caller)
            return result

        if spec.admin and not await ctx.is_admin():
            result = FunctionResult.failure(spec.name, AuthorizationError())
            logger.warning("function_denied", function=spec.name, caller=ctx.caller)
        else:
            try:
                result = await spec.handler(ctx, args)
            except CommerceError as e:
                result = FunctionResult.failure(spec.name, e)
            except Exception:
                logger.exception("function_failed", function=spec.name, caller=ctx.caller)
                # Leave the session usable for the remaining calls of this reply
                await ctx.db.rollback()
                result = FunctionResult(name=spec.name, success=False, error=GENERIC_FAILURE,
                                        error_kind=ErrorKind.INTERNAL)

        ecomm_function_calls_total.labels(function=spec.name, outcome=result.outcome).inc()
        logger.info("function_executed", function=spec.name, caller=ctx.caller, outcome=result.outcome)
        return result
