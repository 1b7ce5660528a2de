"""Supabase reads for the test catalogue and attempt history. Client is cached via Streamlit."""
import logging
import os

import streamlit as st
from dotenv import load_dotenv
from supabase import create_client, Client

load_dotenv()

logger = logging.getLogger(__name__)


def _env_client() -> Client:
    url = os.environ.get("SUPABASE_URL")
    key = os.environ.get("SUPABASE_KEY")
    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set")
    return create_client(url, key)


@st.cache_resource
def get_supabase() -> Client:
    return _env_client()


def get_supabase_uncached() -> Client:
    """For CLI/scripts (no Streamlit context)."""
    return _env_client()


# --- Tests ---

def get_tests(client: Client | None = None):
    """All published tests: id, title, duration_minutes."""
    client = client or get_supabase()
    return client.table("tests").select("id", "title", "duration_minutes").order("title").execute()


# --- Attempts ---

def get_attempt_history(user_id: str, limit: int = 20, client: Client | None = None):
    """User's attempts, newest first."""
    client = client or get_supabase()
    return (
        client.table("test_attempts")
        .select("*")
        .eq("user_id", user_id)
        .order("started_at", desc=True)
        .limit(limit)
        .execute()
    )


def get_attempt(attempt_id: str, client: Client | None = None) -> dict | None:
    client = client or get_supabase()
    r = client.table("test_attempts").select("*").eq("id", attempt_id).limit(1).execute()
    return r.data[0] if r.data else None


def get_attempt_answers(attempt_id: str, client: Client | None = None) -> list[dict]:
    client = client or get_supabase()
    try:
        r = client.table("attempt_answers").select("*").eq("attempt_id", attempt_id).execute()
    except Exception as e:
        logger.error(f"Error fetching answers for attempt {attempt_id}: {e}")
        raise
    return r.data or []
