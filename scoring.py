from models import ScoreResult
from rules import BUCKETS, run_rules

BASE_SCORE = 70
MIN_SCORE = 0
MAX_SCORE = 100

# (lower bound, grade), highest first
GRADE_BANDS = (
    (90, "A+"),
    (85, "A"),
    (80, "A-"),
    (75, "B+"),
    (70, "B"),
    (65, "B-"),
    (60, "C+"),
    (55, "C"),
    (50, "C-"),
    (40, "D"),
)
FAILING_GRADE = "F"


def grade_for(total_score: int) -> str:
    for lower_bound, grade in GRADE_BANDS:
        if total_score >= lower_bound:
            return grade
    return FAILING_GRADE


def score(signals) -> ScoreResult:
    """
    Scores a page from the shared rule table.

    Every rule adds its bonus to its bucket when the page passes it and
    subtracts its issue's deduction when it fires. The total is the base
    score plus all buckets, clamped to 0-100.

    Raises:
        pydantic.ValidationError / TypeError: signals are incomplete or of the wrong type.
    """
    breakdown = {bucket: 0 for bucket in BUCKETS}
    for rule, issue in run_rules(signals):
        breakdown[rule.bucket] += -issue.score_impact if issue else rule.bonus

    total_score = max(MIN_SCORE, min(MAX_SCORE, round(BASE_SCORE + sum(breakdown.values()))))
    return ScoreResult(total_score=total_score, breakdown=breakdown, grade=grade_for(total_score))
