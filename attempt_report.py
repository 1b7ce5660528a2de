"""
Print a persisted attempt with its answer records.
Run: python attempt_report.py ATTEMPT_ID
      python attempt_report.py --user USER_ID   # list the user's recent attempts
"""
import argparse
import logging
import sys

from db import get_attempt, get_attempt_answers, get_attempt_history, get_supabase_uncached
from exam_runner.models import AnswerRecord, Attempt
from exam_runner.timer import format_time

logger = logging.getLogger(__name__)


def summarize_attempt(attempt_row: dict, answer_rows: list[dict]) -> dict:
    """Counts and score for one attempt, from its stored rows."""
    attempt = Attempt.from_row(attempt_row)
    records = [AnswerRecord.from_row(r) for r in answer_rows]
    answered = sum(1 for r in records if r.is_answered)
    correct = sum(1 for r in records if r.is_correct)
    return {
        "attempt_id": attempt.id,
        "status": attempt.status.value,
        "score": attempt.score,
        "time_taken": format_time(attempt.time_taken_seconds) if attempt.time_taken_seconds is not None else "-",
        "records": len(records),
        "answered": answered,
        "unanswered": len(records) - answered,
        "correct": correct,
        "marks_total": sum(r.marks_obtained for r in records),
    }


def main():
    parser = argparse.ArgumentParser(description="Show a stored test attempt and its answers.")
    parser.add_argument("attempt_id", nargs="?", help="Attempt to report on")
    parser.add_argument("--user", default=None, metavar="USER_ID", help="List recent attempts for this user instead")
    parser.add_argument("--limit", type=int, default=10, help="Attempts to list with --user (default 10)")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    if not args.attempt_id and not args.user:
        parser.error("give an ATTEMPT_ID or --user")

    try:
        client = get_supabase_uncached()
    except ValueError as e:
        print(f"{e} (set them in .env)")
        sys.exit(1)

    if args.user:
        rows = get_attempt_history(args.user, limit=args.limit, client=client).data or []
        print(f"{len(rows)} attempts for user {args.user}:")
        for row in rows:
            print(f"  {row['id']}  {row.get('status', ''):15s}  score={row.get('score')}  started={row.get('started_at')}")
        return

    attempt_row = get_attempt(args.attempt_id, client=client)
    if attempt_row is None:
        print(f"Attempt {args.attempt_id} not found")
        sys.exit(1)
    answer_rows = get_attempt_answers(args.attempt_id, client=client)
    summary = summarize_attempt(attempt_row, answer_rows)

    print()
    print("=" * 60)
    print(f"ATTEMPT {summary['attempt_id']}")
    print("=" * 60)
    print(f"  Status:     {summary['status']}")
    print(f"  Score:      {summary['score']}  (sum of records: {summary['marks_total']})")
    print(f"  Time taken: {summary['time_taken']}")
    print(f"  Answered:   {summary['answered']}/{summary['records']}  correct: {summary['correct']}")
    print()
    for row in answer_rows:
        record = AnswerRecord.from_row(row)
        ok = "OK" if record.is_correct else ("X" if record.is_answered else "-")
        selected = ",".join(record.selected_answers) if record.selected_answers else "(none)"
        print(f"  {record.question_id[:8]}  {ok:2s}  marks={record.marks_obtained}  selected={selected}")
    if summary["marks_total"] != summary["score"] and summary["status"] != "in_progress":
        logger.warning("Attempt score does not match the sum of its answer records")


if __name__ == "__main__":
    main()
