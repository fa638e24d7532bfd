"""Tests for setup compliance scoring."""

import pytest

from journal_analytics.analytics.compliance import (
    default_rubric,
    explain,
    grade_for,
    score_playbook,
    score_setup,
    validate_rubric,
)
from journal_analytics.core.enums import RuleType
from journal_analytics.core.errors import RubricValidationError
from journal_analytics.core.models import (
    DEFAULT_GRADE_CUTOFFS,
    ChecklistItem,
    Confluence,
    Playbook,
    Rubric,
    Rule,
)

ALL_RULES = ["trend", "session", "news"]
ALL_CONF = ["fvg", "ob"]


class TestScore:
    def test_perfect_compliance(self, playbook_parts, rubric):
        rules, confluences = playbook_parts
        result = score_setup(rules, ALL_RULES, confluences, ALL_CONF, rubric)
        assert result.score == 1.0
        assert result.grade == "A+"
        assert not result.parts.missed_must

    def test_missed_must_rule_penalty(self):
        rules = [Rule(id="trend", type=RuleType.MUST)]
        confluences = [Confluence(id="fvg"), Confluence(id="ob")]
        rubric = Rubric(weight_rules=0.0, weight_confluences=1.0)
        result = score_setup(rules, [], confluences, ALL_CONF, rubric)
        assert result.score == 0.6
        assert result.grade == "D"
        assert result.parts.missed_must

    def test_penalty_floors_at_zero(self, playbook_parts, rubric):
        rules, confluences = playbook_parts
        result = score_setup(rules, [], confluences, [], rubric)
        assert result.score == 0.0
        assert result.grade == "F"

    def test_must_rule_weight_also_lowers_rules_pct(self, playbook_parts, rubric):
        rules, confluences = playbook_parts
        result = score_setup(rules, ["session", "news"], confluences, ALL_CONF, rubric)
        assert result.parts.rules_pct == 0.5
        # 0.6 * 0.5 + 0.4 - 0.4
        assert result.score == pytest.approx(0.3)
        assert result.grade == "F"

    def test_primary_confluence_weighs_more(self, playbook_parts, rubric):
        rules, confluences = playbook_parts
        result = score_setup(rules, ALL_RULES, confluences, ["fvg"], rubric)
        assert result.parts.conf_pct == pytest.approx(1.2 / 2.2)
        assert result.parts.primary_conf_hit == 1

    def test_no_rules_is_full_rule_compliance(self, rubric):
        result = score_setup([], [], [], [], rubric)
        assert result.parts.rules_pct == 1.0
        assert result.parts.conf_pct == 0.0
        assert result.score == 0.6
        assert result.grade == "D"

    def test_mapping_input(self, playbook_parts, rubric):
        rules, confluences = playbook_parts
        checked = {"trend": True, "session": True, "news": False, "unknown": True}
        result = score_setup(rules, checked, confluences, {"fvg": True, "ob": True}, rubric)
        assert result.parts.rules_pct == 0.75
        assert (result.parts.must_hit, result.parts.optional_hit) == (1, 0)

    def test_score_clamped_with_oversized_weights(self, playbook_parts):
        rules, confluences = playbook_parts
        rubric = Rubric(weight_rules=1.0, weight_confluences=1.0)
        result = score_setup(rules, ALL_RULES, confluences, ALL_CONF, rubric)
        assert result.score == 1.0


class TestSupplements:
    def test_invalidation_fails_setup(self, playbook_parts, rubric):
        rules, confluences = playbook_parts
        result = score_setup(
            rules, ALL_RULES, confluences, ALL_CONF, rubric, invalidations=["news_spike"]
        )
        assert result.score == 0.0
        assert result.grade == "F"
        assert result.parts.has_invalidations
        assert result.parts.must_count == 1
        assert result.parts.must_hit == 0

    def test_checklist_component(self, playbook_parts):
        rules, confluences = playbook_parts
        checklist = [ChecklistItem(id="plan"), ChecklistItem(id="size", primary=True)]
        rubric = Rubric(weight_rules=0.5, weight_confluences=0.2, weight_checklist=0.3)
        full = score_setup(
            rules, ALL_RULES, confluences, ALL_CONF, rubric,
            checklist=checklist, checklist_checked=["plan", "size"],
        )
        assert full.score == pytest.approx(1.0)
        partial = score_setup(
            rules, ALL_RULES, confluences, ALL_CONF, rubric,
            checklist=checklist, checklist_checked=["plan"],
        )
        assert partial.parts.checklist_pct == pytest.approx(1 / 2.2)
        assert partial.parts.checklist_hit == 1
        assert partial.parts.primary_checklist_hit == 0

    def test_score_playbook(self, playbook_parts):
        rules, confluences = playbook_parts
        playbook = Playbook(id="pb1", name="London breakout", rules=rules, confluences=confluences)
        assert score_playbook(playbook, ALL_RULES, ALL_CONF).grade == "A+"

    def test_explain(self, playbook_parts, rubric):
        rules, confluences = playbook_parts
        lines = explain(score_setup(rules, ["session"], confluences, ["ob"], rubric))
        assert lines[0].startswith("Rules: 25%")
        assert "Must rule missed: penalty applied" in lines
        assert lines[-1] == "Score 0.00 -> grade F"


class TestGrade:
    @pytest.mark.parametrize(
        "score, grade",
        [(1.0, "A+"), (0.95, "A+"), (0.9, "A"), (0.8, "B"), (0.7999, "C"), (0.6, "D"), (0.59, "F")],
    )
    def test_cutoff_boundaries(self, score, grade):
        assert grade_for(score, DEFAULT_GRADE_CUTOFFS) == grade

    def test_cutoff_order_independent(self):
        assert grade_for(0.85, {"D": 0.6, "B": 0.8, "A": 0.9}) == "B"


class TestValidateRubric:
    def test_default_is_valid(self):
        validate_rubric(default_rubric())

    def test_within_tolerance(self):
        validate_rubric(Rubric(weight_rules=0.605, weight_confluences=0.4))

    def test_weight_sum(self):
        with pytest.raises(RubricValidationError, match="sum to 1.0"):
            validate_rubric(Rubric(weight_rules=0.5, weight_confluences=0.4))

    def test_negative_weight(self):
        with pytest.raises(RubricValidationError):
            validate_rubric(Rubric(weight_rules=1.2, weight_confluences=-0.2))

    def test_penalty_range(self):
        with pytest.raises(RubricValidationError):
            validate_rubric(Rubric(must_rule_penalty=1.5))

    def test_cutoff_range(self):
        with pytest.raises(RubricValidationError):
            validate_rubric(Rubric(grade_cutoffs={"A": 1.2}))

    def test_scoring_does_not_validate(self, playbook_parts):
        rules, confluences = playbook_parts
        result = score_setup(rules, ALL_RULES, confluences, ALL_CONF, Rubric(weight_rules=0.1))
        assert result.score == pytest.approx(0.5)
