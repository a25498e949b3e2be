# app/verticals/agrimarket/schemas/base_v1.py
from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ContractV1(BaseModel):
    """
    Shared config for the checkout contracts:
    - camelCase on the wire (checkout page), snake_case accepted too
    - unknown fields are rejected
    """

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )
