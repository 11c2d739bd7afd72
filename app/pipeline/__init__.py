"""Ordered request pipeline and its stages."""

from app.pipeline.base import Pipeline, Stage
from app.pipeline.body import BodyParserStage, RawBodyRouteStage, read_body_limited
from app.pipeline.context import RequestContext
from app.pipeline.parameters import (
    MULTI_VALUE_PARAMETERS,
    ParameterPollutionStage,
    RequestTimestampStage,
)
from app.pipeline.rate_limit import RateLimitStage
from app.pipeline.sanitize import OperatorSanitizerStage, ScriptSanitizerStage

__all__ = [
    "MULTI_VALUE_PARAMETERS",
    "BodyParserStage",
    "OperatorSanitizerStage",
    "ParameterPollutionStage",
    "Pipeline",
    "RateLimitStage",
    "RawBodyRouteStage",
    "RequestContext",
    "RequestTimestampStage",
    "ScriptSanitizerStage",
    "Stage",
    "read_body_limited",
]
