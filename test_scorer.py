"""Scoring: set equality per question, all-or-nothing marks."""
from conftest import make_question
from exam_runner.answer_set import AnswerSet
from exam_runner.models import QuestionKind
from exam_runner.scorer import is_correct_selection, score_answers

MULTI = make_question("m1", ["a", "c"], kind=QuestionKind.MULTIPLE, marks=4)


def test_order_of_selection_does_not_matter():
    assert is_correct_selection(MULTI, ("c", "a"))


def test_subset_and_superset_are_incorrect():
    assert not is_correct_selection(MULTI, ("a",))
    assert not is_correct_selection(MULTI, ("a", "c", "d"))
    assert not is_correct_selection(MULTI, None)


def test_correct_key_is_not_reordered():
    question = make_question("m2", ["c", "a"], kind=QuestionKind.MULTIPLE)
    is_correct_selection(question, ("a", "c"))
    assert question.correct_answers == ("c", "a")


def test_score_totals_marks_of_correct_questions(questions):
    answers = AnswerSet()
    answers.select(questions[0], "a")   # correct, 2 marks
    answers.select(questions[1], "c")
    answers.select(questions[1], "a")   # correct set, 3 marks
    answers.select(questions[2], "b")   # wrong
    result = score_answers("att-1", questions, answers)

    assert result.total_score == 5
    assert result.max_score == 6
    assert result.correct_count == 2
    assert result.answered_count == 3
    assert [r.marks_obtained for r in result.records] == [2, 3, 0]


def test_all_unanswered_scores_zero_with_null_selections():
    questions = [make_question(f"q{i}", ["a"]) for i in range(3)]
    result = score_answers("att-1", questions, AnswerSet())

    assert result.total_score == 0
    assert len(result.records) == 3
    for record in result.records:
        assert record.selected_answers is None
        assert record.is_correct is False
        assert record.marks_obtained == 0
        assert record.to_row()["selected_answers"] is None


def test_scoring_twice_gives_identical_results(questions):
    answers = AnswerSet()
    answers.select(questions[0], "a")
    first = score_answers("att-1", questions, answers)
    second = score_answers("att-1", questions, answers)
    assert first == second
