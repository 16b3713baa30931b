"""
Answer evaluation.

Pure functions only: the same question and raw answer always produce the
same result, and nothing here touches the network or the store. Scoring
is all-or-nothing per question.
"""
import re
from dataclasses import dataclass
from typing import Iterable, List, Mapping

from schemas.participant import Answer
from schemas.question import CaseStudyQuestion, McqQuestion, SyntaxQuestion, coerce_int

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class Evaluation:
    is_correct: bool
    points_awarded: int
    skipped: bool = False


@dataclass(frozen=True)
class ResultSummary:
    correct: int
    wrong: int
    skipped: int
    score: int
    total_points: int

    @property
    def percentage(self) -> int:
        if self.total_points <= 0:
            return 0
        return round(self.score / self.total_points * 100)


def normalize_code(text: str) -> str:
    """Collapse whitespace runs, trim and lowercase."""
    return _WHITESPACE.sub(" ", text or "").strip().lower()


def question_points(question) -> int:
    return max(0, coerce_int(getattr(question, "points", 0)))


def is_blank(raw_answer) -> bool:
    return raw_answer is None or str(raw_answer).strip() == ""


def _check(question, answer: str) -> bool:
    if isinstance(question, SyntaxQuestion):
        return normalize_code(answer) == normalize_code(question.correct_code)
    if isinstance(question, McqQuestion):
        # String comparison on purpose: "02" is not "2"
        return answer.strip() == str(question.correct_option_index).strip()
    if isinstance(question, CaseStudyQuestion):
        submitted = answer.strip().lower()
        return any((accepted or "").lower() == submitted for accepted in question.accepted_answers)
    raise TypeError(f"Unsupported question variant: {type(question).__name__}")


def evaluate(question, raw_answer) -> Evaluation:
    if is_blank(raw_answer):
        return Evaluation(is_correct=False, points_awarded=0, skipped=True)

    is_correct = _check(question, str(raw_answer))
    return Evaluation(
        is_correct=is_correct,
        points_awarded=question_points(question) if is_correct else 0,
    )


def evaluate_all(questions: Iterable, answers: Mapping[str, str]) -> List[Answer]:
    """Build the full answer list for a submission, one entry per question."""
    evaluated = []
    for question in questions:
        user_answer = answers.get(question.id) or ""
        result = evaluate(question, user_answer)
        evaluated.append(Answer(
            question_id=question.id,
            question_type=question.type,
            user_answer=user_answer,
            is_correct=result.is_correct,
            points_awarded=result.points_awarded,
        ))
    return evaluated


def total_points(questions: Iterable) -> int:
    return sum(question_points(q) for q in questions)


def summarize(answers: Iterable[Answer], total: int) -> ResultSummary:
    answers = list(answers)
    skipped = sum(1 for a in answers if is_blank(a.user_answer))
    correct = sum(1 for a in answers if a.is_correct)
    return ResultSummary(
        correct=correct,
        wrong=len(answers) - correct - skipped,
        skipped=skipped,
        score=sum(a.points_awarded for a in answers),
        total_points=total,
    )
