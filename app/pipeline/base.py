"""Ordered request pipeline.

A ``Pipeline`` runs a fixed list of ``Stage`` objects for every request, in
declaration order. Each stage either lets the request continue (returns
``None``), short-circuits with its own response, or fails by raising. When all
stages continue, the request is handed to the router.

Failures from stages and exceptions escaping the route handlers are passed
to the centralized error renderer, never formatted here.

Usage:
    pipeline = Pipeline([RateLimitStage(...), BodyParserStage(...)])
    app.middleware("http")(pipeline)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import ClassVar, Sequence

from starlette.requests import Request
from starlette.responses import Response

from app.core.exception_handlers import render_error
from app.pipeline.context import RequestContext

logger = logging.getLogger(__name__)


class Stage(ABC):
    """One step of the request pipeline.

    Class attributes:
        name: Short identifier used in logs.
        reads_raw_body: Stage needs the unmodified body bytes.
        parses_body: Stage consumes and decodes the body.
    """

    name: ClassVar[str] = "stage"
    reads_raw_body: ClassVar[bool] = False
    parses_body: ClassVar[bool] = False

    def applies_to(self, context: RequestContext) -> bool:
        """Return False to skip this stage for the request."""
        return True

    @abstractmethod
    async def process(self, context: RequestContext) -> Response | None:
        """Run the stage.

        Returns:
            None to continue, or a Response to stop the pipeline.

        Raises:
            AppError: To fail the request through the error renderer.
        """
        raise NotImplementedError

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"{type(self).__name__}()"


class Pipeline:
    """Fixed-order executor for request stages."""

    def __init__(self, stages: Sequence[Stage], *, trust_proxy: bool = True) -> None:
        self._stages: tuple[Stage, ...] = tuple(stages)
        self._trust_proxy = trust_proxy
        self._validate_order()

    @property
    def stages(self) -> tuple[Stage, ...]:
        return self._stages

    def _validate_order(self) -> None:
        parser_seen: Stage | None = None
        for stage in self._stages:
            if stage.parses_body:
                parser_seen = stage
            elif stage.reads_raw_body and parser_seen is not None:
                raise ValueError(
                    f"{type(stage).__name__} must run before {type(parser_seen).__name__}: "
                    "a parsed body can no longer be verified byte-for-byte"
                )

    def with_stage(self, stage: Stage, *, after: type[Stage] | None = None) -> "Pipeline":
        """Return a new pipeline with ``stage`` inserted.

        Args:
            stage: Stage to insert.
            after: Insert right after the first stage of this type; append
                when None or not present.
        """
        stages = list(self._stages)
        index = len(stages)
        if after is not None:
            for position, existing in enumerate(stages):
                if isinstance(existing, after):
                    index = position + 1
                    break
        stages.insert(index, stage)
        return Pipeline(stages, trust_proxy=self._trust_proxy)

    async def run(self, context: RequestContext) -> Response | None:
        """Run every applicable stage; return the first short-circuit response."""
        for stage in self._stages:
            if not stage.applies_to(context):
                continue
            response = await stage.process(context)
            if response is not None:
                logger.debug(
                    "pipeline.short_circuit",
                    extra={"stage": stage.name, "status_code": response.status_code},
                )
                return response
        return None

    async def __call__(self, request: Request, call_next) -> Response:
        context = RequestContext.from_request(request, trust_proxy=self._trust_proxy)
        request.state.context = context

        try:
            response = await self.run(context)
            if response is None:
                response = await call_next(request)
        except Exception as exc:
            response = render_error(request, exc)

        if context.response_headers:
            response.headers.update(context.response_headers)
        return response
