"""AnswerSet selection policy: single-select replaces, multi-select toggles."""
from conftest import make_question
from exam_runner.answer_set import AnswerSet
from exam_runner.models import AnswerRecord, QuestionKind

SINGLE = make_question("s1", ["a"])
MULTI = make_question("m1", ["a", "c"], kind=QuestionKind.MULTIPLE)


def test_single_select_replaces_previous_choice():
    answers = AnswerSet()
    answers.select(SINGLE, "a")
    assert answers.select(SINGLE, "b") == ("b",)
    assert answers.get("s1") == ("b",)


def test_single_select_same_option_twice_keeps_it():
    answers = AnswerSet()
    answers.select(SINGLE, "a")
    answers.select(SINGLE, "a")
    assert answers.get("s1") == ("a",)


def test_multi_select_toggles_membership():
    answers = AnswerSet()
    answers.select(MULTI, "a")
    answers.select(MULTI, "c")
    assert set(answers.get("m1")) == {"a", "c"}
    answers.select(MULTI, "a")
    assert answers.get("m1") == ("c",)


def test_multi_select_toggle_back_to_empty_removes_key():
    answers = AnswerSet()
    answers.select(MULTI, "b")
    assert answers.select(MULTI, "b") is None
    assert "m1" not in answers
    assert len(answers) == 0


def test_multi_select_deselect_restores_previous_state():
    answers = AnswerSet()
    answers.select(MULTI, "a")
    before = answers.snapshot()
    answers.select(MULTI, "d")
    answers.select(MULTI, "d")
    assert answers.snapshot() == before


def test_clear_reports_whether_anything_was_removed():
    answers = AnswerSet()
    answers.select(SINGLE, "a")
    assert answers.clear("s1") is True
    assert answers.clear("s1") is False
    assert answers.get("s1") is None


def test_from_records_skips_null_and_empty_selections():
    records = [
        AnswerRecord("att", "s1", ["b"]),
        AnswerRecord("att", "m1", None),
        AnswerRecord("att", "q9", []),
    ]
    answers = AnswerSet.from_records(records)
    assert answers.get("s1") == ("b",)
    assert "m1" not in answers
    assert "q9" not in answers
    assert len(answers) == 1
