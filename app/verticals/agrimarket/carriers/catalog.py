from __future__ import annotations

import json
from dataclasses import dataclass, field
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from jsonschema import validate

from ..domain.models import FlatRateConfig
from ..domain.money import format_number

D = Decimal

SCHEMA_PATH = Path(__file__).with_name("carriers.schema.json")


@dataclass(frozen=True)
class Carrier:
    id: str
    name: str
    rate_per_kg_km: D
    delivery_time: str
    aliases: Tuple[str, ...] = ()

    @property
    def pricing_config(self) -> FlatRateConfig:
        return FlatRateConfig(rate=self.rate_per_kg_km)

    @property
    def rate_method(self) -> str:
        return f"Distance × Weight × RM {format_number(self.rate_per_kg_km)}/kg"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "deliveryTime": self.delivery_time,
            "ratePerKgKm": float(self.rate_per_kg_km),
            "rateMethod": self.rate_method,
        }


def normalize_carrier_name(name: Optional[str]) -> str:
    return " ".join((name or "").lower().split())


@dataclass
class CarrierCatalog:
    carriers: List[Carrier] = field(default_factory=list)
    currency: str = "RM"

    def __post_init__(self) -> None:
        self._index: Dict[str, Carrier] = {}
        for c in self.carriers:
            for key in (c.id, c.name, *c.aliases):
                self._index[normalize_carrier_name(key)] = c

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CarrierCatalog":
        carriers = [
            Carrier(
                id=str(c["id"]),
                name=str(c["name"]),
                rate_per_kg_km=D(str(c["rate_per_kg_km"])),
                delivery_time=str(c["delivery_time"]),
                aliases=tuple(c.get("aliases") or ()),
            )
            for c in d.get("carriers") or []
        ]
        return cls(carriers=carriers, currency=str(d.get("currency", "RM")))

    @classmethod
    def from_yaml_file(cls, path: str) -> "CarrierCatalog":
        catalog_path = Path(path)

        with catalog_path.open("r", encoding="utf-8") as f:
            d = yaml.safe_load(f)

        with SCHEMA_PATH.open("r", encoding="utf-8") as f:
            schema = json.load(f)

        validate(instance=d, schema=schema)
        return cls.from_dict(d)

    def get(self, name: Optional[str]) -> Optional[Carrier]:
        """Lookup by id, display name or alias ("jnt", "pos-laju", ...)."""
        if not name:
            return None
        return self._index.get(normalize_carrier_name(name))

    def default_delivery_time(self, name: Optional[str]) -> Optional[str]:
        c = self.get(name)
        return c.delivery_time if c else None


@lru_cache(maxsize=4)
def load_catalog(path: str) -> CarrierCatalog:
    return CarrierCatalog.from_yaml_file(path)
