"""Setup compliance scoring against a playbook rubric.

A pure function of the playbook definition and what the trader ticked at
entry time::

    rules_pct     = checked rule weight / total rule weight
    conf_pct      = checked confluence weight / total confluence weight
    checklist_pct = checked checklist weight / total checklist weight
    score         = w_rules * rules_pct + w_conf * conf_pct
                    + w_checklist * checklist_pct
                    - must_rule_penalty   (if any must rule is unchecked)

Primary confluences and checklist items weigh 1.2x.  The score is clamped
to [0, 1] and mapped to the highest grade whose cutoff it reaches; below
every cutoff the grade is ``F``.  Any hard invalidation short-circuits to
a score of 0 and grade ``F``.

Scoring never validates the rubric.  ``validate_rubric`` is the separate
check to run when a playbook configuration is saved.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import asdict, dataclass
from typing import Any, Union

from ..core.config import PRIMARY_WEIGHT_MULTIPLIER, RUBRIC_WEIGHT_TOLERANCE
from ..core.enums import RuleType
from ..core.errors import RubricValidationError
from ..core.models import (
    DEFAULT_GRADE_CUTOFFS,
    ChecklistItem,
    Confluence,
    Playbook,
    Rubric,
    Rule,
)

logger = logging.getLogger(__name__)

FAIL_GRADE = "F"

# Either {"id": True/False} or an iterable of checked ids
Checked = Union[Mapping[str, bool], Iterable[str], None]


@dataclass(frozen=True)
class ScoreParts:
    rules_pct: float = 0.0
    conf_pct: float = 0.0
    checklist_pct: float = 0.0
    missed_must: bool = False
    has_invalidations: bool = False
    must_count: int = 0
    must_hit: int = 0
    should_count: int = 0
    should_hit: int = 0
    optional_count: int = 0
    optional_hit: int = 0
    primary_conf_count: int = 0
    primary_conf_hit: int = 0
    checklist_count: int = 0
    checklist_hit: int = 0
    primary_checklist_count: int = 0
    primary_checklist_hit: int = 0


@dataclass(frozen=True)
class ScoreResult:
    score: float
    grade: str
    parts: ScoreParts

    def to_dict(self) -> dict[str, Any]:
        return {"score": self.score, "grade": self.grade, "parts": asdict(self.parts)}


# ------------------------------------------------------------------ #
# Helpers                                                              #
# ------------------------------------------------------------------ #

def _checked_ids(checked: Checked) -> set[str]:
    if checked is None:
        return set()
    if isinstance(checked, Mapping):
        return {k for k, v in checked.items() if v}
    return set(checked)


def _boosted(item: Confluence | ChecklistItem) -> float:
    return item.weight * (PRIMARY_WEIGHT_MULTIPLIER if item.primary else 1.0)


def _weighted_pct(
    items: Sequence[Confluence | ChecklistItem], hit: set[str]
) -> float:
    total = sum(_boosted(i) for i in items)
    if total == 0:
        return 0.0
    return sum(_boosted(i) for i in items if i.id in hit) / total


def _rules_pct(rules: Sequence[Rule], hit: set[str]) -> float:
    total = sum(r.weight for r in rules)
    if total == 0:
        # No rules to break
        return 1.0
    return sum(r.weight for r in rules if r.id in hit) / total


def _counts(
    rules: Sequence[Rule],
    rules_hit: set[str],
    confluences: Sequence[Confluence],
    conf_hit: set[str],
    checklist: Sequence[ChecklistItem],
    checklist_hit: set[str],
) -> dict[str, int]:
    by_type = {t: [r for r in rules if r.type == t] for t in RuleType}
    primary_conf = [c for c in confluences if c.primary]
    primary_check = [c for c in checklist if c.primary]
    return {
        "must_count": len(by_type[RuleType.MUST]),
        "must_hit": sum(1 for r in by_type[RuleType.MUST] if r.id in rules_hit),
        "should_count": len(by_type[RuleType.SHOULD]),
        "should_hit": sum(1 for r in by_type[RuleType.SHOULD] if r.id in rules_hit),
        "optional_count": len(by_type[RuleType.OPTIONAL]),
        "optional_hit": sum(1 for r in by_type[RuleType.OPTIONAL] if r.id in rules_hit),
        "primary_conf_count": len(primary_conf),
        "primary_conf_hit": sum(1 for c in primary_conf if c.id in conf_hit),
        "checklist_count": len(checklist),
        "checklist_hit": sum(1 for c in checklist if c.id in checklist_hit),
        "primary_checklist_count": len(primary_check),
        "primary_checklist_hit": sum(1 for c in primary_check if c.id in checklist_hit),
    }


def grade_for(score: float, cutoffs: Mapping[str, float]) -> str:
    """Highest grade whose cutoff is <= ``score``; ``F`` otherwise."""
    for grade, cutoff in sorted(cutoffs.items(), key=lambda kv: kv[1], reverse=True):
        if score >= cutoff:
            return grade
    return FAIL_GRADE


# ------------------------------------------------------------------ #
# Scoring                                                              #
# ------------------------------------------------------------------ #

def score_setup(
    rules: Sequence[Rule],
    rules_checked: Checked,
    confluences: Sequence[Confluence],
    conf_checked: Checked,
    rubric: Rubric,
    *,
    checklist: Sequence[ChecklistItem] | None = None,
    checklist_checked: Checked = None,
    invalidations: Sequence[str] | None = None,
) -> ScoreResult:
    """Score one setup.

    Parameters
    ----------
    rules_checked, conf_checked, checklist_checked
        Either an ``{id: bool}`` mapping or an iterable of checked ids.
        Ids that are not in the playbook are ignored.
    invalidations : Sequence[str], optional
        Ids of hard invalidations present; any one fails the setup.
    """
    checklist = list(checklist or [])
    rules_hit = _checked_ids(rules_checked)
    conf_hit = _checked_ids(conf_checked)
    checklist_hit = _checked_ids(checklist_checked)

    if invalidations:
        logger.debug("Setup invalidated: %s", list(invalidations))
        counts = _counts(rules, set(), confluences, set(), checklist, set())
        return ScoreResult(
            score=0.0,
            grade=FAIL_GRADE,
            parts=ScoreParts(has_invalidations=True, **counts),
        )

    rules_pct = _rules_pct(rules, rules_hit)
    conf_pct = _weighted_pct(confluences, conf_hit)
    checklist_pct = _weighted_pct(checklist, checklist_hit) if checklist else 0.0

    score = (
        rubric.weight_rules * rules_pct
        + rubric.weight_confluences * conf_pct
        + rubric.weight_checklist * checklist_pct
    )
    missed_must = any(
        r.type == RuleType.MUST and r.id not in rules_hit for r in rules
    )
    if missed_must:
        score = max(0.0, score - rubric.must_rule_penalty)
    score = max(0.0, min(1.0, score))

    return ScoreResult(
        score=score,
        grade=grade_for(score, rubric.grade_cutoffs),
        parts=ScoreParts(
            rules_pct=rules_pct,
            conf_pct=conf_pct,
            checklist_pct=checklist_pct,
            missed_must=missed_must,
            **_counts(rules, rules_hit, confluences, conf_hit, checklist, checklist_hit),
        ),
    )


def score_playbook(
    playbook: Playbook,
    rules_checked: Checked,
    conf_checked: Checked,
    *,
    checklist_checked: Checked = None,
    invalidations: Sequence[str] | None = None,
) -> ScoreResult:
    """``score_setup`` with the rules, confluences and rubric of ``playbook``."""
    return score_setup(
        playbook.rules,
        rules_checked,
        playbook.confluences,
        conf_checked,
        playbook.rubric,
        checklist=playbook.checklist,
        checklist_checked=checklist_checked,
        invalidations=invalidations,
    )


# ------------------------------------------------------------------ #
# Rubric                                                               #
# ------------------------------------------------------------------ #

def default_rubric() -> Rubric:
    return Rubric(
        weight_rules=0.6,
        weight_confluences=0.4,
        weight_checklist=0.0,
        must_rule_penalty=0.4,
        grade_cutoffs=dict(DEFAULT_GRADE_CUTOFFS),
    )


def validate_rubric(
    rubric: Rubric, *, tolerance: float = RUBRIC_WEIGHT_TOLERANCE
) -> None:
    """Raise ``RubricValidationError`` if the rubric is inconsistent.

    Checks that the component weights sum to 1.0 within ``tolerance`` and
    that the penalty and every grade cutoff lie in [0, 1].
    """
    total = rubric.weight_rules + rubric.weight_confluences + rubric.weight_checklist
    if abs(total - 1.0) > tolerance:
        logger.warning("Rubric rejected: weights sum to %.4f", total)
        raise RubricValidationError(
            f"weights must sum to 1.0 (+/-{tolerance}), got {total:.4f}"
        )
    for name in ("weight_rules", "weight_confluences", "weight_checklist"):
        if getattr(rubric, name) < 0:
            raise RubricValidationError(f"{name} must not be negative")
    if not 0.0 <= rubric.must_rule_penalty <= 1.0:
        raise RubricValidationError(
            f"must_rule_penalty must be in [0, 1], got {rubric.must_rule_penalty}"
        )
    for grade, cutoff in rubric.grade_cutoffs.items():
        if not 0.0 <= cutoff <= 1.0:
            raise RubricValidationError(
                f"cutoff for grade {grade!r} must be in [0, 1], got {cutoff}"
            )


def explain(result: ScoreResult) -> list[str]:
    """Human-readable lines describing how a score was reached."""
    p = result.parts
    if p.has_invalidations:
        return [f"Setup invalidated: score 0, grade {result.grade}"]
    lines = [
        f"Rules: {p.rules_pct:.0%} "
        f"(must {p.must_hit}/{p.must_count}, should {p.should_hit}/{p.should_count}, "
        f"optional {p.optional_hit}/{p.optional_count})",
        f"Confluences: {p.conf_pct:.0%} "
        f"(primary {p.primary_conf_hit}/{p.primary_conf_count})",
    ]
    if p.checklist_count:
        lines.append(
            f"Checklist: {p.checklist_pct:.0%} "
            f"({p.checklist_hit}/{p.checklist_count} items)"
        )
    if p.missed_must:
        lines.append("Must rule missed: penalty applied")
    lines.append(f"Score {result.score:.2f} -> grade {result.grade}")
    return lines
