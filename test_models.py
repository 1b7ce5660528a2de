"""Row mapping for stored questions, attempts and answer records."""
from datetime import datetime, timezone

from exam_runner.clock import elapsed_seconds, parse_timestamp
from exam_runner.models import AnswerRecord, Attempt, AttemptStatus, Question, QuestionKind, Trigger


def test_answer_record_round_trips_through_row():
    record = AnswerRecord("a1", "q1", ["b", "a"], True, 3)
    assert AnswerRecord.from_row(record.to_row()) == record


def test_unanswered_record_is_stored_as_null_not_empty_list():
    assert AnswerRecord("a1", "q1", []).to_row()["selected_answers"] is None
    assert AnswerRecord.from_row({"attempt_id": "a1", "question_id": "q1", "selected_answers": []}).selected_answers is None


def test_question_defaults_to_single_select():
    question = Question.from_row({"id": 7, "question_text": "?", "options": [{"id": 1, "text": "one"}], "correct_answers": [1]})
    assert question.question_type is QuestionKind.SINGLE
    assert question.id == "7"
    assert question.has_option("1")
    assert question.correct_answers == ("1",)


def test_attempt_from_row_handles_finalized_attempt():
    attempt = Attempt.from_row({
        "id": "a1",
        "test_id": "t1",
        "user_id": "u1",
        "started_at": "2026-01-10T09:00:00",
        "status": "auto_submitted",
        "submitted_at": "2026-01-10T09:30:00.250000+00:00",
        "time_taken_seconds": 1800,
        "score": 4,
    })
    assert attempt.is_terminal
    assert attempt.started_at.tzinfo is not None
    assert attempt.submitted_at > attempt.started_at


def test_trigger_maps_to_terminal_status():
    assert Trigger.MANUAL.status is AttemptStatus.SUBMITTED
    assert Trigger.AUTOMATIC.status is AttemptStatus.AUTO_SUBMITTED


def test_naive_timestamps_are_utc_and_elapsed_is_floored():
    start = parse_timestamp("2026-01-10T09:00:00")
    now = datetime(2026, 1, 10, 9, 0, 59, 999000, tzinfo=timezone.utc)
    assert elapsed_seconds(start, now) == 59
