from __future__ import annotations

from typing import List, Optional

from sqlalchemy import JSON, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db import Base


class LogisticsProviderORM(Base):
    __tablename__ = "logistics_providers"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    company_name: Mapped[str] = mapped_column(String(200), nullable=False)

    # stored label, e.g. "Tiered Rate by Weight"
    pricing_model: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    # list of strings, e.g. ["0-10@0.06", "10-+@0.03"]
    pricing_config: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)

    estimated_delivery_time: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    carrier: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return f"<LogisticsProviderORM id={self.id!r} pricing_model={self.pricing_model!r}>"


class BuyerLoyaltyORM(Base):
    __tablename__ = "buyer_loyalty"

    buyer_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    loyalty_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
