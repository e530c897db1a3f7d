import pytest
from pydantic import ValidationError

from careercoach.types import AnswerFeedback, FitAnalysis, Identity, InterviewQuestion, Recommendation


def test_match_score_is_clamped_and_rounded() -> None:
    assert FitAnalysis(match_score=140).match_score == 100
    assert FitAnalysis(match_score=-3).match_score == 0
    assert FitAnalysis(match_score="71.6").match_score == 72


def test_match_score_must_be_numeric() -> None:
    with pytest.raises(ValidationError):
        FitAnalysis(match_score="high")


def test_answer_score_is_clamped() -> None:
    assert AnswerFeedback(score=12).score == 10


def test_priority_and_question_type_are_normalized() -> None:
    assert Recommendation(priority=" HIGH ", suggestion="x").priority == "high"
    assert InterviewQuestion(type="Technical", question="q").type == "technical"


def test_unknown_priority_rejected() -> None:
    with pytest.raises(ValidationError):
        Recommendation(priority="urgent", suggestion="x")


def test_identity_requires_email_shape() -> None:
    assert Identity(email=" a@b.com ", name="A").email == "a@b.com"
    with pytest.raises(ValidationError):
        Identity(email="nobody")
