from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from ..domain.errors import ConfigurationError, InvalidAmountError
from ..domain.models import Tier
from ..domain.money import format_number, to_decimal


# =========================
# Validation outputs
# =========================


@dataclass(frozen=True)
class TierIssue:
    row: Optional[int]  # 1-based tier position, None = table-level
    code: str
    message: str

    def to_dict(self) -> dict:
        return {"row": self.row, "code": self.code, "message": self.message}


@dataclass
class ValidationResult:
    ok: bool
    errors: List[TierIssue] = field(default_factory=list)
    warnings: List[TierIssue] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
        }

    def raise_for_errors(self) -> None:
        if self.errors:
            raise ConfigurationError(
                "; ".join(f"tier {e.row}: {e.message}" if e.row else e.message for e in self.errors),
                {"errors": [e.to_dict() for e in self.errors]},
            )


def _fmt_max(t: Tier) -> str:
    return "+" if t.max is None else format_number(t.max)


# =========================
# Row level (profile edit form)
# =========================


def build_tiers(rows: Sequence[Mapping[str, Any]]) -> Tuple[List[Tier], ValidationResult]:
    """
    Edit-form rows {"min", "max", "rate"} -> Tier objects.
    Rows that cannot become a Tier are reported, not dropped silently.
    """
    tiers: List[Tier] = []
    errors: List[TierIssue] = []

    for idx, r in enumerate(rows):
        rownum = idx + 1
        try:
            tmin = to_decimal(r.get("min"), field="min")
            rate = to_decimal(r.get("rate"), field="rate")
            raw_max = r.get("max")
            tmax = None if raw_max in (None, "", "+") else to_decimal(raw_max, field="max")
        except InvalidAmountError as e:
            errors.append(TierIssue(rownum, "INVALID_NUMBER", e.message))
            continue

        if rate < 0:
            errors.append(TierIssue(rownum, "NEGATIVE_RATE", f"Rate must be >= 0, got {rate}."))
            continue
        if tmin < 0 or (tmax is not None and tmax <= tmin):
            errors.append(
                TierIssue(rownum, "INVALID_RANGE", f"Range {tmin}-{tmax} is empty or negative.")
            )
            continue

        tiers.append(Tier(min=tmin, max=tmax, rate=rate))

    return tiers, ValidationResult(ok=not errors, errors=errors)


# =========================
# Table level
# =========================


def validate_tier_table(tiers: Sequence[Tier]) -> ValidationResult:
    """
    Checks a tier table in stored order.

    Errors: UNSORTED, OVERLAP, AFTER_OPEN_ENDED.
    Warnings: COVERAGE_GAP. Gaps are legal to store, but a weight/distance
    that falls into one makes checkout fail with NoMatchingTierError.
    """
    errors: List[TierIssue] = []
    warnings: List[TierIssue] = []

    if not tiers:
        warnings.append(TierIssue(None, "COVERAGE_GAP", "No tiers defined; every quote will fail."))
        return ValidationResult(ok=True, errors=errors, warnings=warnings)

    first = tiers[0]
    if first.min != 0:
        warnings.append(
            TierIssue(1, "COVERAGE_GAP", f"First tier starts at {format_number(first.min)}, not 0.")
        )

    for i in range(1, len(tiers)):
        prev, cur = tiers[i - 1], tiers[i]
        rownum = i + 1

        if prev.max is None:
            errors.append(
                TierIssue(rownum, "AFTER_OPEN_ENDED", "Tier follows an open-ended tier.")
            )
            continue
        if cur.min < prev.min:
            errors.append(
                TierIssue(rownum, "UNSORTED", "Tiers must be ordered ascending by min.")
            )
            continue
        if cur.min < prev.max:
            errors.append(
                TierIssue(
                    rownum,
                    "OVERLAP",
                    f"Previous tier ends at {format_number(prev.max)}, "
                    f"this one starts at {format_number(cur.min)}.",
                )
            )
        elif cur.min > prev.max:
            warnings.append(
                TierIssue(
                    rownum,
                    "COVERAGE_GAP",
                    f"Gap between {format_number(prev.max)} and {format_number(cur.min)}.",
                )
            )

    last = tiers[-1]
    if last.max is not None and not errors:
        warnings.append(
            TierIssue(
                len(tiers),
                "COVERAGE_GAP",
                f"Last tier ends at {_fmt_max(last)}; larger values have no rate.",
            )
        )

    return ValidationResult(ok=not errors, errors=errors, warnings=warnings)
