"""Age distribution statistics over persisted users."""

import logging
import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from csvusers.database import DatabaseService
from csvusers.users.schema import USERS_TABLE

logger = logging.getLogger(__name__)

AGE_STATISTICS_SQL = f"""
SELECT
    COUNT(*) AS total_users,
    COUNT(CASE WHEN age < 20 THEN 1 END) AS under_20,
    COUNT(CASE WHEN age >= 20 AND age < 40 THEN 1 END) AS age_20_to_40,
    COUNT(CASE WHEN age >= 40 AND age < 60 THEN 1 END) AS age_40_to_60,
    COUNT(CASE WHEN age >= 60 THEN 1 END) AS over_60,
    AVG(age) AS average_age,
    MIN(age) AS min_age,
    MAX(age) AS max_age
FROM {USERS_TABLE}
WHERE age IS NOT NULL AND age > 0
"""


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def round_tenths(value: float) -> float:
    """Round to one decimal place, halves away from zero (37.25 -> 37.3)."""
    return float(Decimal(repr(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class AgeBucket:
    label: str
    count: int
    percentage: int


@dataclass(frozen=True)
class AgeStatistics:
    """Counts over users with a positive age.

    An empty table yields zeros everywhere, including average/min/max.
    """

    total: int = 0
    under_20: int = 0
    age_20_to_40: int = 0
    age_40_to_60: int = 0
    over_60: int = 0
    average: float = 0.0
    min_age: int = 0
    max_age: int = 0

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    @property
    def buckets(self) -> list[AgeBucket]:
        # Percentages are rounded independently and may not sum to 100.
        counts = [
            ("< 20", self.under_20),
            ("20 to 40", self.age_20_to_40),
            ("40 to 60", self.age_40_to_60),
            ("> 60", self.over_60),
        ]
        return [
            AgeBucket(
                label=label,
                count=count,
                percentage=round_half_up(count / self.total * 100) if self.total else 0,
            )
            for label, count in counts
        ]

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalUsers": self.total,
            "ageGroups": [
                {"group": b.label, "count": b.count, "percentage": b.percentage}
                for b in self.buckets
            ],
            "averageAge": round_tenths(self.average),
            "ageRange": {"min": self.min_age, "max": self.max_age},
        }


def get_age_statistics(service: DatabaseService) -> AgeStatistics:
    """Run the bucketed aggregate query. Never cached."""
    with service.transaction():
        rows = service.execute(AGE_STATISTICS_SQL)

    row = rows[0] if rows else {}
    total = int(row.get("total_users") or 0)
    if total == 0:
        logger.warning("No users found for age distribution report")
        return AgeStatistics()

    return AgeStatistics(
        total=total,
        under_20=int(row["under_20"] or 0),
        age_20_to_40=int(row["age_20_to_40"] or 0),
        age_40_to_60=int(row["age_40_to_60"] or 0),
        over_60=int(row["over_60"] or 0),
        # PostgreSQL returns Decimal for AVG.
        average=float(row["average_age"]),
        min_age=int(row["min_age"]),
        max_age=int(row["max_age"]),
    )


def format_age_report(stats: AgeStatistics) -> str:
    """Render the fixed-width console report."""
    rule = "=" * 37
    if stats.is_empty:
        return "\n".join(["=== AGE DISTRIBUTION REPORT ===", "No users found in database", rule])

    lines = [
        "=== AGE DISTRIBUTION REPORT ===",
        "Age-Group        Count    % Distribution",
        "-" * 40,
    ]
    for bucket in stats.buckets:
        lines.append(f"{bucket.label:<17}{bucket.count:>5}    {bucket.percentage:>2}%")
    lines.extend(
        [
            "-" * 40,
            f"{'Total Users:':<17}{stats.total:>5}   100%",
            f"{'Average Age:':<17}{round_tenths(stats.average):.1f}",
            f"{'Age Range:':<17}{stats.min_age} - {stats.max_age}",
            rule,
        ]
    )
    return "\n".join(lines)
