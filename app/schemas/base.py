"""Shared schema configuration.

Resources travel as camelCase JSON (``maxGroupSize``) while Python code uses
snake_case attributes.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ResourceSchema(BaseModel):
    """Base for create/update payloads; unknown fields are dropped."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )
