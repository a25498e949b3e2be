# app/verticals/agrimarket/schemas/loyalty_v1.py
from __future__ import annotations

from pydantic import Field

from .base_v1 import ContractV1


class LoyaltySummaryV1(ContractV1):
    """Point balance as the checkout redeem panel shows it."""

    buyer_id: str
    balance: int
    worth_rm: float = Field(alias="worthRM")
    milestone_bonus_points: int
