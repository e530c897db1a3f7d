from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from careercoach.core import session as sessions
from careercoach.core.session import AnswerRecord, Session, Utterance
from careercoach.errors import ValidationError
from careercoach.types import AnswerFeedback, ArtifactVersion, InterviewQuestion


def _versions(*names: str) -> tuple[ArtifactVersion, ...]:
    return tuple(ArtifactVersion(id=f"v{i}", name=name, content=f"{name} body") for i, name in enumerate(names))


def _questions(count: int) -> tuple[InterviewQuestion, ...]:
    return tuple(InterviewQuestion(type="technical", question=f"Q{i}?", why_asked="") for i in range(count))


def _feedback(score: float) -> AnswerFeedback:
    return AnswerFeedback(score=score, strengths=(), improvements=(), model_answer="", specific_feedback="")


def test_new_sessions_are_distinct_and_empty() -> None:
    first, second = sessions.new_session(), sessions.new_session()
    assert first.id != second.id
    assert first.optimized_resumes == ()
    assert first.selected_resume_index == 0
    assert first.analysis is None


def test_evolve_returns_new_value_and_keeps_original() -> None:
    original = sessions.new_session()
    updated = sessions.evolve(original, resume_text="hello")

    assert updated.resume_text == "hello"
    assert original.resume_text == ""
    assert updated.id == original.id


def test_evolve_rejects_unknown_fields() -> None:
    with pytest.raises(TypeError):
        sessions.evolve(sessions.new_session(), resumeText="x")


def test_selected_index_must_be_zero_for_empty_list() -> None:
    with pytest.raises(PydanticValidationError):
        Session(selected_resume_index=1)


def test_selected_index_must_be_in_range() -> None:
    with pytest.raises(PydanticValidationError):
        Session(optimized_resumes=_versions("a", "b"), selected_cover_letter_index=0, selected_resume_index=2)


def test_answer_must_reference_existing_question() -> None:
    with pytest.raises(PydanticValidationError):
        Session(questions=_questions(1), written_answers=(AnswerRecord(question_index=3, answer="x"),))


def test_duplicate_answers_per_category_rejected() -> None:
    record = AnswerRecord(question_index=0, answer="x")
    with pytest.raises(PydanticValidationError):
        Session(questions=_questions(1), verbal_answers=(record, record))

    # The same index in different categories is fine.
    Session(questions=_questions(1), written_answers=(record,), verbal_answers=(record,))


def test_replace_resumes_resets_selection_and_drops_old_versions() -> None:
    base = sessions.replace_resumes(sessions.new_session(), _versions("a", "b", "c"))
    base = sessions.select_resume(base, 2)

    replaced = sessions.replace_resumes(base, _versions("x", "y", "z"))

    assert replaced.selected_resume_index == 0
    assert [v.name for v in replaced.optimized_resumes] == ["x", "y", "z"]
    assert base.selected_resume_index == 2


def test_select_out_of_range_raises_domain_error() -> None:
    base = sessions.replace_cover_letters(sessions.new_session(), _versions("a"))
    with pytest.raises(ValidationError):
        sessions.select_cover_letter(base, 1)


def test_edit_resume_changes_only_content() -> None:
    base = sessions.replace_resumes(sessions.new_session(), _versions("a", "b"))
    edited = sessions.edit_resume(base, 1, "new content")

    assert edited.optimized_resumes[1].content == "new content"
    assert edited.optimized_resumes[1].id == base.optimized_resumes[1].id
    assert edited.optimized_resumes[0] == base.optimized_resumes[0]
    assert base.optimized_resumes[1].content == "b body"


def test_upsert_answer_twice_keeps_single_record_with_latest_data() -> None:
    base = sessions.replace_questions(sessions.new_session(), _questions(3))
    first = sessions.upsert_answer(base, "written", AnswerRecord(question_index=1, answer="first"))
    first = sessions.upsert_answer(first, "written", AnswerRecord(question_index=2, answer="other"))
    second = sessions.upsert_answer(first, "written", AnswerRecord(question_index=1, answer="second"))

    matching = [r for r in second.written_answers if r.question_index == 1]
    assert len(matching) == 1
    assert matching[0].answer == "second"
    assert second.written_answers[-1].question_index == 1


def test_upsert_answer_for_missing_question_raises() -> None:
    with pytest.raises(ValidationError):
        sessions.upsert_answer(sessions.new_session(), "verbal", AnswerRecord(question_index=0, answer="x"))


def test_replace_questions_clears_answers() -> None:
    base = sessions.replace_questions(sessions.new_session(), _questions(2))
    answered = sessions.upsert_answer(base, "written", AnswerRecord(question_index=1, answer="x"))

    replaced = sessions.replace_questions(answered, _questions(1))

    assert replaced.written_answers == ()
    assert len(replaced.questions) == 1


def test_interview_score_averages_graded_answers() -> None:
    base = sessions.replace_questions(sessions.new_session(), _questions(2))
    assert sessions.interview_score(base) == 0

    graded = sessions.upsert_answer(
        base, "written", AnswerRecord(question_index=0, answer="a", feedback=_feedback(6))
    )
    graded = sessions.upsert_answer(
        graded, "verbal", AnswerRecord(question_index=1, answer="b", feedback=_feedback(9))
    )
    graded = sessions.upsert_answer(graded, "written", AnswerRecord(question_index=1, answer="ungraded"))

    assert sessions.interview_score(graded) == 75


def test_session_round_trips_through_json() -> None:
    base = sessions.append_utterances(
        sessions.new_session(),
        Utterance(speaker="interviewer", text="Hi"),
        Utterance(speaker="candidate", text="Hello"),
    )
    restored = Session.model_validate_json(base.model_dump_json())
    assert restored == base


def test_sessions_are_immutable() -> None:
    with pytest.raises(PydanticValidationError):
        sessions.new_session().resume_text = "x"  # type: ignore[misc]
