"""
Ordered, short-circuiting request pipelines.

A Pipeline is data: a name, an ordered tuple of Steps and a terminal
handler. ``execute`` walks the steps once. Each step returns one of

    Continue(context)  -> move on to the next step
    Halt(response)     -> stop and send this response
    Fail(error)        -> stop and send the error's response

Raising from a step is equivalent to returning Fail. Whatever happens, the
caller always gets a PipelineResponse back.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Sequence, Tuple, Union

import structlog

from catalog.core.context import RequestContext, Services
from catalog.core.exceptions import AuthenticationError, CatalogError, InternalError
from catalog.core.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PipelineResponse:
    status_code: int
    body: Any = None
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Continue:
    context: RequestContext


@dataclass(frozen=True)
class Halt:
    response: PipelineResponse


@dataclass(frozen=True)
class Fail:
    error: BaseException


StepResult = Union[Continue, Halt, Fail]
StepFn = Callable[[RequestContext, Services], Awaitable[StepResult]]
HandlerFn = Callable[[RequestContext, Services], Awaitable[PipelineResponse]]


@dataclass(frozen=True)
class Step:
    name: str
    run: StepFn


def step(fn: StepFn) -> Step:
    """Wrap an async step function into a named Step descriptor."""
    return Step(name=fn.__name__, run=fn)


def error_response(error: BaseException, debug: bool = False) -> PipelineResponse:
    """Turn any exception into a client-visible error response."""
    if isinstance(error, AuthenticationError):
        return PipelineResponse(error.status_code, error.to_body(), {"WWW-Authenticate": "Bearer"})
    if isinstance(error, CatalogError):
        return PipelineResponse(error.status_code, error.to_body())

    message = str(error) if debug else "An unexpected error occurred"
    body = InternalError(message).to_body()
    body["error"]["name"] = type(error).__name__
    if debug:
        body["error"]["stack"] = "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        )
    return PipelineResponse(InternalError.status_code, body)


class Pipeline:
    """A named, ordered list of steps followed by a terminal handler"""

    def __init__(self, name: str, steps: Sequence[Step], handler: HandlerFn):
        self.name = name
        self.steps: Tuple[Step, ...] = tuple(steps)
        self.handler = handler

    def __repr__(self) -> str:
        names = " -> ".join([s.name for s in self.steps] + [self.handler.__name__])
        return f"Pipeline({self.name}: {names})"

    async def execute(self, context: RequestContext, services: Services) -> PipelineResponse:
        with structlog.contextvars.bound_contextvars(pipeline=self.name):
            for current in self.steps:
                result = await self._run_step(current, context, services)

                if isinstance(result, Continue):
                    context = result.context
                    continue
                if isinstance(result, Halt):
                    logger.info("Pipeline halted", step=current.name, status=result.response.status_code)
                    return result.response
                if isinstance(result, Fail):
                    return self._fail(current.name, result.error, services)

                return self._fail(
                    current.name,
                    InternalError(f"Step {current.name} returned {type(result).__name__}"),
                    services,
                )

            try:
                return await self.handler(context, services)
            except Exception as e:
                return self._fail(self.handler.__name__, e, services)

    async def _run_step(self, current: Step, context: RequestContext, services: Services) -> Any:
        try:
            return await current.run(context, services)
        except Exception as e:
            return Fail(e)

    def _fail(self, where: str, error: BaseException, services: Services) -> PipelineResponse:
        if isinstance(error, CatalogError) and error.status_code < 500:
            logger.info("Request rejected", step=where, error=error.name, reason=error.message)
        else:
            logger.error(
                "Request failed",
                step=where,
                error=type(error).__name__,
                exc_info=(type(error), error, error.__traceback__),
            )
        return error_response(error, debug=services.debug)
