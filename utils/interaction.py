# designflow/utils/interaction.py
"""
Tracks which control caused the current rerun.

Streamlit reruns the whole script after any widget interaction. Pills and dialogs mark
themselves from their callbacks (which run before the rerun); begin_run() then records that
owner for the rest of the run. A control that was not the one touched knows the user
interacted somewhere else and collapses.
"""
import streamlit as st

_PENDING_KEY = "_touched_control"
_CAUSE_KEY = "_rerun_cause"


def mark_interaction(owner):
    st.session_state[_PENDING_KEY] = owner


def begin_run():
    """Call once at the top of every script run."""
    st.session_state[_CAUSE_KEY] = st.session_state.pop(_PENDING_KEY, None)


def touched_control():
    return st.session_state.get(_CAUSE_KEY)
