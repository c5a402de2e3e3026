"""
Scoring calculators: pure functions, no database access.

    compute_error_union        OR of administrative error flags across reviewers
    compute_total_kesalahan    flagged-row count of one checklist
    compute_substantive_total  Σ skor × bobot for one reviewer, with score guards
    max_possible_total         upper bound used by the weight invariant

Substantive scale: 1=Buruk, 2=Sangat kurang, 3=Kurang, 5=Cukup, 6=Baik,
7=Sangat baik. 4 carries no label and is rejected.

All arithmetic is done with ``Decimal``.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

from app.core.exceptions import ValidationError

SKIPPED_SCORE = Decimal(4)
# Matches DetailPenilaianSubstansi.skor, Numeric(5, 2).
SCORE_QUANTUM = Decimal("0.01")


# ═════════════════════════════════════════════════════════════════════════════
# Data Classes
# ═════════════════════════════════════════════════════════════════════════════


@dataclass
class ErrorUnionItem:
    """Criterion flagged by at least one reviewer."""
    kriteria_administrasi_id: int
    reviewer_count: int

    def to_dict(self) -> dict:
        return {
            "kriteria_administrasi_id": self.kriteria_administrasi_id,
            "reviewer_count": self.reviewer_count,
        }


@dataclass
class ErrorUnion:
    total: int = 0
    errors: list[ErrorUnionItem] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "errors": [e.to_dict() for e in self.errors],
        }


# ═════════════════════════════════════════════════════════════════════════════
# Administrative
# ═════════════════════════════════════════════════════════════════════════════


def compute_error_union(assessments: Iterable[Mapping[int, bool]]) -> ErrorUnion:
    """
    Union of flagged criteria across completed administrative assessments.

    Args:
        assessments: one ``{kriteria_administrasi_id: ada_kesalahan}`` mapping
            per reviewer who completed the checklist.

    Returns:
        ErrorUnion with one item per criterion flagged by ≥1 reviewer,
        annotated with how many reviewers flagged it. No assessments → total 0.
    """
    counts: Counter = Counter()
    for checklist in assessments:
        for kriteria_id, ada_kesalahan in checklist.items():
            if ada_kesalahan:
                counts[kriteria_id] += 1

    errors = [
        ErrorUnionItem(kriteria_administrasi_id=kid, reviewer_count=n)
        for kid, n in sorted(counts.items())
    ]
    return ErrorUnion(total=len(errors), errors=errors)


def compute_total_kesalahan(checklist: Mapping[int, bool]) -> int:
    """Number of criteria flagged as error in one checklist."""
    return sum(1 for flagged in checklist.values() if flagged)


# ═════════════════════════════════════════════════════════════════════════════
# Substantive
# ═════════════════════════════════════════════════════════════════════════════


def to_decimal(value: Any, label: str = "skor") -> Decimal:
    """Coerce a JSON number into a finite Decimal, rejecting booleans."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{label} harus berupa angka", details={label: value})
    try:
        dec = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{label} harus berupa angka", details={label: value})
    if not dec.is_finite():
        raise ValidationError(f"{label} harus berupa angka", details={label: value})
    return dec


def compute_substantive_total(
    scores: Iterable[tuple[int, Any]],
    kriteria_list: Iterable,
    skipped_score: Decimal = SKIPPED_SCORE,
) -> Decimal:
    """
    Weighted total for one reviewer: Σ skor × bobot.

    Args:
        scores: ``(kriteria_substansi_id, skor)`` pairs.
        kriteria_list: KriteriaSubstansi rows (or objects with ``id``, ``nama``,
            ``skor_min``, ``skor_max``, ``bobot``) of the proposal's grant type.
        skipped_score: the label-less value that is never accepted.

    Raises:
        ValidationError: unknown or repeated criterion, score outside
            [skor_min, skor_max], score equal to the skipped value, or more
            than two decimal places.
    """
    by_id = {k.id: k for k in kriteria_list}
    seen: set[int] = set()
    total = Decimal(0)

    for kriteria_id, raw_skor in scores:
        kriteria = by_id.get(kriteria_id)
        if kriteria is None:
            raise ValidationError(
                f"Kriteria substansi {kriteria_id} tidak ditemukan",
                details={"kriteria_substansi_id": kriteria_id},
            )
        if kriteria_id in seen:
            raise ValidationError(
                f"Kriteria substansi {kriteria_id} dinilai lebih dari sekali",
                details={"kriteria_substansi_id": kriteria_id},
            )
        seen.add(kriteria_id)

        skor = to_decimal(raw_skor)
        if skor < kriteria.skor_min or skor > kriteria.skor_max:
            raise ValidationError(
                f'Skor untuk "{kriteria.nama}" harus antara {kriteria.skor_min} dan {kriteria.skor_max}',
                details={"kriteria_substansi_id": kriteria_id, "skor": str(skor)},
            )
        if skor == skipped_score:
            raise ValidationError(
                f"Skor {skipped_score} tidak diperbolehkan (skipped)",
                details={"kriteria_substansi_id": kriteria_id, "skor": str(skor)},
            )
        if skor != skor.quantize(SCORE_QUANTUM):
            raise ValidationError(
                f'Skor untuk "{kriteria.nama}" maksimal 2 angka desimal',
                details={"kriteria_substansi_id": kriteria_id, "skor": str(skor)},
            )

        total += skor * Decimal(kriteria.bobot)

    return total


def missing_kriteria_ids(scored_ids: Iterable[int], kriteria_list: Iterable) -> list[int]:
    """Criterion ids of the grant type that received no score."""
    scored = set(scored_ids)
    return sorted(k.id for k in kriteria_list if k.id not in scored)


def max_possible_total(kriteria_list: Iterable) -> Decimal:
    """Highest total reachable with this criteria set (Σ bobot × max skor_max)."""
    kriteria_list = list(kriteria_list)
    if not kriteria_list:
        return Decimal(0)
    bobot_sum = sum(Decimal(k.bobot) for k in kriteria_list)
    return bobot_sum * Decimal(max(k.skor_max for k in kriteria_list))
