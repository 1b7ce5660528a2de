"""Exam Runner: timed test page over the session engine."""
import logging
import os
import sys
from pathlib import Path

# Ensure project root is in path
project_root = Path(__file__).resolve().parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import streamlit as st

from db import get_attempt_history, get_tests
from exam_runner.bridge import LoopBridge
from exam_runner.database import DatabaseClient
from exam_runner.engine import SessionState, TestSession

logging.basicConfig(
    level=os.getenv("EXAM_LOG_LEVEL", "INFO"),
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)

ALERT_STYLES = {"critical": st.error, "warning": st.warning, "normal": st.info}


# ----- Event loop bridge -----
# Streamlit reruns the script on every interaction; session operations go
# through run() and call() so they execute on the bridge loop thread.

@st.cache_resource
def get_bridge() -> LoopBridge:
    return LoopBridge()


def run(coro):
    return get_bridge().run(coro)


def call(fn, *args):
    return get_bridge().call(fn, *args)


@st.cache_resource
def get_gateway() -> DatabaseClient:
    gateway = run(DatabaseClient.connect())
    if gateway is None:
        raise RuntimeError("Timed out connecting to the database")
    return gateway


def end_session():
    session = st.session_state.pop("exam_session", None)
    if session is not None:
        call(session.close)


# ----- Page -----

st.set_page_config(page_title="Exam Runner", layout="wide")
st.sidebar.title("Exam Runner")
user_id = st.sidebar.text_input("User ID", value=os.getenv("EXAM_USER_ID", ""))
page = st.sidebar.radio("Navigate", ["Take Test", "History"], label_visibility="collapsed")

if not user_id:
    st.info("Enter your user ID in the sidebar to continue.")
    st.stop()

# ----- History -----
if page == "History":
    st.header("My attempts")
    try:
        rows = get_attempt_history(user_id).data or []
    except Exception as e:
        st.error(f"Could not load attempts. Check DB and .env (SUPABASE_URL, SUPABASE_KEY). {e}")
        st.stop()
    if not rows:
        st.info("No attempts yet.")
    else:
        st.dataframe(
            [
                {
                    "Started": r.get("started_at"),
                    "Status": r.get("status"),
                    "Score": r.get("score"),
                    "Time taken (s)": r.get("time_taken_seconds"),
                }
                for r in rows
            ],
            use_container_width=True,
        )
    st.stop()

# ----- Take Test -----
session: TestSession | None = st.session_state.get("exam_session")

if session is None:
    st.header("Take a test")
    try:
        tests = get_tests().data or []
    except Exception as e:
        st.error(f"Could not load tests. Check DB and .env (SUPABASE_URL, SUPABASE_KEY). {e}")
        st.stop()
    if not tests:
        st.warning("No tests available.")
        st.stop()
    chosen = st.selectbox(
        "Test",
        tests,
        format_func=lambda t: f"{t['title']} ({t['duration_minutes']} min)",
    )
    st.caption("The countdown starts when you begin and keeps running if you leave; an unfinished test resumes where you left off.")
    if st.button("Start / resume test", type="primary"):
        session = TestSession(get_gateway(), str(chosen["id"]), user_id, chosen["duration_minutes"])
        st.session_state["exam_session"] = session
        st.session_state["exam_title"] = chosen["title"]
        run(session.load())
        st.rerun()
    st.stop()

title = st.session_state.get("exam_title", "Test")

# one consistent copy of the session per rerun, read on the loop thread
view = call(session.view)
if view is None:
    st.rerun()

if view["load_error"] is not None:
    st.error(f"Could not load the test: {view['load_error']}")
    col1, col2 = st.columns(2)
    if col1.button("Retry"):
        run(session.load())
        st.rerun()
    if col2.button("Back"):
        end_session()
        st.rerun()
    st.stop()

if view["state"] is SessionState.COMPLETED:
    result = view["result"]
    if view["auto_submitted"]:
        st.warning("Time is up. Your test was submitted automatically.")
    else:
        st.success("Test submitted.")
    col1, col2, col3 = st.columns(3)
    col1.metric("Score", f"{result.total_score} / {result.max_score}")
    col2.metric("Correct", f"{result.correct_count} / {len(result.records)}")
    col3.metric("Answered", f"{result.answered_count} / {len(result.records)}")
    if st.button("Back to tests"):
        end_session()
        st.rerun()
    st.stop()

if view["state"] is SessionState.SUBMITTING:
    with st.spinner("Time is up! Submitting test..." if view["time_remaining_sec"] == 0 else "Submitting test..."):
        run(session.wait_idle())
    st.rerun()

if view["state"] is SessionState.LOADING:
    # expired while away and the automatic submit could not be saved
    if view["submit_error"] is not None:
        st.error(f"Time is up, but submitting failed: {view['submit_error']}")
        if st.button("Retry"):
            run(session.load())
            st.rerun()
        st.stop()
    with st.spinner("Loading test..."):
        run(session.load())
    st.rerun()


@st.fragment(run_every=1)
def countdown():
    summary = call(session.summary)
    if summary is None:
        return
    if summary["state"] != SessionState.ACTIVE.value:
        st.rerun(scope="app")
    show = ALERT_STYLES[summary["time_alert"]]
    show(f"Time left: {summary['time_remaining']}")
    if summary["time_alert"] == "critical":
        st.caption("Less than 5 minutes remaining. The test will auto-submit when time expires.")


def on_single(question_id: str, key: str):
    call(session.select, question_id, st.session_state[key])


def on_multi(question_id: str, option_id: str):
    call(session.select, question_id, option_id)


header, timer_col = st.columns([3, 1])
with header:
    st.header(title)
    st.caption(f"Question {view['current_question']} of {view['total_questions']} · Answered: {view['answered']}/{view['total_questions']}")
with timer_col:
    countdown()
    if st.button("Submit Test", type="primary", use_container_width=True):
        run(session.submit())
        st.rerun()

if view["submit_error"] is not None:
    st.error(f"Submitting failed, please try again: {view['submit_error']}")

question = view["question"]
selected = view["selected"]
current_index = view["current_index"]
questions = view["questions"]
st.subheader(f"Question {current_index + 1}")
st.code(question.question_text, language=None)
st.caption(f"Marks: {question.marks}" + (" · Multiple correct" if question.is_multiple else ""))

widget_prefix = f"{view['attempt_id']}-{question.id}"
if question.is_multiple:
    for option in question.options:
        st.checkbox(
            option.text,
            value=option.id in selected,
            key=f"{widget_prefix}-{option.id}",
            on_change=on_multi,
            args=(question.id, option.id),
        )
else:
    option_ids = [o.id for o in question.options]
    texts = {o.id: o.text for o in question.options}
    radio_key = f"{widget_prefix}-radio"
    st.radio(
        "Choose one:",
        option_ids,
        index=option_ids.index(selected[0]) if selected else None,
        format_func=lambda oid: texts.get(oid, ""),
        key=radio_key,
        on_change=on_single,
        args=(question.id, radio_key),
    )

col1, col2, col3 = st.columns([1, 4, 1])
with col1:
    if st.button("Previous", disabled=current_index == 0):
        call(session.previous_question)
        st.rerun()
with col3:
    if st.button("Next", disabled=current_index >= len(questions) - 1):
        call(session.next_question)
        st.rerun()
with col2:
    buttons = st.columns(min(len(questions), 10) or 1)
    for idx, q in enumerate(questions):
        label = f"{idx + 1}" + (" ✓" if q.id in view["answered_ids"] else "")
        if buttons[idx % len(buttons)].button(label, key=f"nav-{idx}", type="primary" if idx == current_index else "secondary"):
            call(session.go_to, idx)
            st.rerun()
