"""
Shared pydantic base classes.

Every model reads and writes the camelCase wire format used by the UI
(``gameId``, ``tasteProfile``) while exposing snake_case attributes in Python.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class OracleModel(BaseModel):
    """Base for engine output models (built by the pipeline)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrozenModel(BaseModel):
    """Base for engine input models; immutable for the whole run, NaN/inf rejected."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        allow_inf_nan=False,
    )
