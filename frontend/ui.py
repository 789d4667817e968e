"""
Streamlit frontend for the programming-language catalog.

Calls GET http://localhost:8000/cards on every change of the search box and
shows the returned card fragment. The fragment is built server-side with all
record text escaped, so it is embedded as-is.
"""

import os

import requests
import streamlit as st

API_URL = os.getenv("CATALOG_API_URL", "http://localhost:8000")

st.set_page_config(page_title="Programming Languages", layout="wide")
st.title("Programming Languages")

st.markdown(
    """
Search the catalog by language name or description.

### Quick start
1. Start backend API in another terminal: `python app/app.py`
2. Type in the box below (example: *concurrent*); press Enter to update the results.

### Notes
- Matching is a case-insensitive substring search on name and description.
- If the API is not running, you'll see a connection error.
"""
)

CARD_CSS = """
<style>
  .card-container { display: grid; gap: 1rem;
                    grid-template-columns: repeat(auto-fill, minmax(16rem, 1fr)); }
  .card { border: 1px solid #ddd; border-radius: 8px; padding: 1rem; }
</style>
"""

query = st.text_input("Search", placeholder="e.g. systems programming")

try:
    resp = requests.get(f"{API_URL}/cards", params={"q": query}, timeout=30)
    resp.raise_for_status()
except (requests.exceptions.ConnectionError, requests.exceptions.Timeout):
    st.error("Cannot reach the API. Start it with: python app/app.py")
    st.stop()
except requests.exceptions.HTTPError as exc:
    st.error(f"API error: {exc}")
    st.stop()

st.html(CARD_CSS + resp.text)
