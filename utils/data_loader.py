# designflow/utils/data_loader.py
import streamlit as st
from connectors.supabase_connector import SupabaseConnector
from services.auth_service import CredentialGate
from services.outlet_tracker import OutletTracker
from utils.status_pill import PILL_STATE_PREFIX


def get_connector(supabase_config):
    """
    One connector per browser session. The connector holds the signed-in user's access token,
    so it must never be shared between sessions.
    """
    if 'connector' not in st.session_state:
        st.session_state.connector = SupabaseConnector(
            base_url=supabase_config['url'],
            anon_key=supabase_config['anon_key'],
            table=supabase_config.get('outlets_table', 'outlets'),
            timeout=supabase_config.get('timeout', 30),
        )
    return st.session_state.connector


def get_credential_gate(connector):
    if 'credential_gate' not in st.session_state:
        st.session_state.credential_gate = CredentialGate(connector)
    return st.session_state.credential_gate


def get_tracker(connector):
    """The session's OutletTracker; the first call also loads the outlet list."""
    if 'tracker' not in st.session_state:
        tracker = OutletTracker(connector)
        with st.spinner("Loading outlets..."):
            tracker.load()
        st.session_state.tracker = tracker
    return st.session_state.tracker


def sign_out():
    connector = st.session_state.get('connector')
    if connector is not None:
        connector.sign_out()
    for key in ('user', 'tracker', 'credential_gate'):
        st.session_state.pop(key, None)
    # Pill state is keyed by outlet id and belongs to the signed-out session
    for key in [k for k in st.session_state if str(k).startswith(PILL_STATE_PREFIX)]:
        del st.session_state[key]
