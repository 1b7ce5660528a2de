"""In-memory selections for one attempt: question id -> selected option ids."""
from typing import Dict, Iterable, List, Optional, Tuple

from exam_runner.models import AnswerRecord, Question


class AnswerSet:
    """
    Selections keyed by question id.

    A missing key means unanswered. A multi-select question toggled back to no
    options is removed, so "answered with nothing" is never observable.
    """

    def __init__(self) -> None:
        self._selected: Dict[str, List[str]] = {}

    @classmethod
    def from_records(cls, records: Iterable[AnswerRecord]) -> "AnswerSet":
        answers = cls()
        for record in records:
            if record.selected_answers:
                answers._selected[record.question_id] = list(dict.fromkeys(record.selected_answers))
        return answers

    def select(self, question: Question, option_id: str) -> Optional[Tuple[str, ...]]:
        """
        Apply a click on option_id and return the question's new selection (None if now unanswered).

        Single-select replaces the selection. Multi-select toggles membership.
        """
        if not question.is_multiple:
            self._selected[question.id] = [option_id]
            return self.get(question.id)

        current = self._selected.get(question.id, [])
        if option_id in current:
            remaining = [o for o in current if o != option_id]
            if remaining:
                self._selected[question.id] = remaining
            else:
                del self._selected[question.id]
        else:
            self._selected[question.id] = current + [option_id]
        return self.get(question.id)

    def clear(self, question_id: str) -> bool:
        """Drop the selection for question_id. Returns True if there was one."""
        return self._selected.pop(question_id, None) is not None

    def get(self, question_id: str) -> Optional[Tuple[str, ...]]:
        selected = self._selected.get(question_id)
        return tuple(selected) if selected else None

    def snapshot(self) -> Dict[str, Tuple[str, ...]]:
        return {qid: tuple(sel) for qid, sel in self._selected.items()}

    def __contains__(self, question_id: str) -> bool:
        return question_id in self._selected

    def __len__(self) -> int:
        return len(self._selected)
