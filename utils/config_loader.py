# designflow/utils/config_loader.py
import yaml
import os
import logging
import streamlit as st
import gspread
from google.oauth2.service_account import Credentials


logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper(), format='%(asctime)s - %(levelname)s - %(message)s')

DEFAULT_SETTINGS_PATH = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "settings.yaml")

DEFAULT_SUPABASE_SETTINGS = {
    "url": "",
    "anon_key": "",
    "outlets_table": "outlets",
    "timeout": 30,
}

# Environment variable -> key in the 'supabase' section
SUPABASE_ENV_OVERRIDES = {
    "SUPABASE_URL": "url",
    "SUPABASE_ANON_KEY": "anon_key",
    "SUPABASE_OUTLETS_TABLE": "outlets_table",
}

GOOGLE_CREDENTIAL_KEYS = [
    "type", "project_id", "private_key_id", "private_key", "client_email",
    "client_id", "auth_uri", "token_uri", "auth_provider_x509_cert_url",
]


def _google_credentials_from_env():
    private_key = os.environ.get("STREAMLIT_SECRETS_GOOGLE_CREDENTIALS_PRIVATE_KEY", "").replace('\\n', '\n')
    if not all([
        os.environ.get("STREAMLIT_SECRETS_GOOGLE_CREDENTIALS_TYPE"),
        os.environ.get("STREAMLIT_SECRETS_GOOGLE_CREDENTIALS_PROJECT_ID"),
        private_key,
        os.environ.get("STREAMLIT_SECRETS_GOOGLE_CREDENTIALS_CLIENT_EMAIL")
    ]):
        logging.error("One or more required Google credential environment variables are missing.")
        return None
    creds_dict = {key: os.environ.get(f"STREAMLIT_SECRETS_GOOGLE_CREDENTIALS_{key.upper()}") for key in GOOGLE_CREDENTIAL_KEYS}
    creds_dict["private_key"] = private_key
    logging.info("Successfully loaded Google credentials from environment variables.")
    return creds_dict


@st.cache_resource
def get_gspread_client():
    creds_dict = None
    try:
        creds_dict = dict(st.secrets["google_credentials"])
        logging.info("Successfully loaded Google credentials from st.secrets.")
    except Exception:
        logging.info("st.secrets not available. Falling back to environment variables.")
        creds_dict = _google_credentials_from_env()

    if not creds_dict:
        logging.error("Could not load Google credentials from any source.")
        return None

    try:
        creds = Credentials.from_service_account_info(creds_dict, scopes=["https://www.googleapis.com/auth/spreadsheets.readonly"])
        client = gspread.authorize(creds)
        logging.info("Successfully connected to Google Sheets API.")
        return client
    except Exception as e:
        logging.error(f"Failed to connect to Google Sheets API with loaded credentials: {e}")
        return None


def get_settings_from_gsheet(client, spreadsheet_id, worksheet_name):
    """Reads Setting_Key / Setting_Value rows from a worksheet into a dict."""
    try:
        spreadsheet = client.open_by_key(spreadsheet_id)
        worksheet = spreadsheet.worksheet(worksheet_name)
        records = worksheet.get_all_records()
        settings_dict = {row['Setting_Key']: row['Setting_Value'] for row in records if row.get('Setting_Key')}
        logging.info(f"Successfully fetched {len(settings_dict)} settings from Google Sheet.")
        return settings_dict
    except gspread.exceptions.WorksheetNotFound:
        logging.error(f"Settings worksheet '{worksheet_name}' not found in the Google Sheet.")
        return {"error": f"Worksheet '{worksheet_name}' not found."}
    except Exception as e:
        logging.error(f"Failed to fetch settings from GSheet: {e}")
        return {"error": str(e)}


def _secrets_section(name):
    try:
        return dict(st.secrets[name])
    except Exception:
        logging.info(f"No '{name}' section in st.secrets.")
        return {}


def read_app_config(path=DEFAULT_SETTINGS_PATH, secrets=None, environ=None, gsheet_client_factory=get_gspread_client):
    """
    Builds the app config: settings.yaml, then Streamlit secrets, then environment variables,
    then (optionally) a Google Sheet of Setting_Key / Setting_Value rows.
    Returns {"error": ...} when something required is missing.
    """
    environ = os.environ if environ is None else environ
    try:
        with open(path, 'r') as f:
            config = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logging.warning(f"{path} not found. Using secrets and environment variables only.")
        config = {}
    except yaml.YAMLError as e:
        logging.error(f"Could not parse {path}: {e}")
        return {"error": f"settings.yaml is not valid YAML: {e}"}

    supabase = dict(DEFAULT_SUPABASE_SETTINGS)
    supabase.update(config.get("supabase") or {})
    supabase.update(_secrets_section("supabase") if secrets is None else secrets)
    for env_name, key in SUPABASE_ENV_OVERRIDES.items():
        if environ.get(env_name):
            supabase[key] = environ[env_name]
            logging.info(f"Loaded Supabase '{key}' from environment variable {env_name}.")
    config["supabase"] = supabase

    gsheet_settings = config.get("google_sheet_settings") or {}
    spreadsheet_id = gsheet_settings.get("spreadsheet_id")
    worksheet_name = gsheet_settings.get("worksheet_name")
    if spreadsheet_id and worksheet_name:
        gsheet_client = gsheet_client_factory()
        if gsheet_client is None:
            return {"error": "Failed to connect to Google Sheets."}
        dynamic_settings = get_settings_from_gsheet(gsheet_client, spreadsheet_id, worksheet_name)
        if "error" in dynamic_settings:
            return dynamic_settings
        config["supabase"].update(dynamic_settings)

    if not config["supabase"].get("url") or not config["supabase"].get("anon_key"):
        return {"error": "Supabase 'url' and 'anon_key' must be set in settings.yaml, st.secrets or SUPABASE_URL / SUPABASE_ANON_KEY."}
    try:
        config["supabase"]["timeout"] = float(config["supabase"]["timeout"])
    except (TypeError, ValueError):
        return {"error": f"Supabase 'timeout' must be a number, got {config['supabase']['timeout']!r}."}
    return config


@st.cache_data(show_spinner=False)
def load_app_config():
    """Cached read_app_config() for the running app."""
    return read_app_config()
