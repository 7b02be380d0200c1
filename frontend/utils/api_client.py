import os
import re
from urllib.parse import unquote

import requests
import streamlit as st

BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")

_FILENAME_RE = re.compile(r'filename="([^"]+)"')
_FILENAME_STAR_RE = re.compile(r"filename\*=UTF-8''([^;]+)", re.IGNORECASE)


def attachment_filename(res, default: str = "report.pdf") -> str:
    header = res.headers.get("Content-Disposition", "")
    match = _FILENAME_STAR_RE.search(header)
    if match:
        return unquote(match.group(1))
    match = _FILENAME_RE.search(header)
    return match.group(1) if match else default


class ApiClient:
    def __init__(self, token: str | None = None):
        self.token = token

    @property
    def headers(self):
        h = {}
        if self.token:
            h["Authorization"] = f"Bearer {self.token}"
        return h

    def login(self, username: str, password: str):
        return requests.post(f"{BASE_URL}/api/auth/login", json={"username": username, "password": password}, timeout=30)

    def logout(self):
        return requests.post(f"{BASE_URL}/api/auth/logout", headers=self.headers, timeout=30)

    def me(self):
        return requests.get(f"{BASE_URL}/api/auth/me", headers=self.headers, timeout=30)

    def catalog(self):
        return requests.get(f"{BASE_URL}/api/catalog", headers=self.headers, timeout=30)

    def search_patients(self, term: str):
        return requests.get(f"{BASE_URL}/api/patients/search", params={"q": term}, headers=self.headers, timeout=30)

    def generate_pdf(self, submission: dict):
        return requests.post(f"{BASE_URL}/api/reports/pdf", json=submission, headers=self.headers, timeout=120)

    def save_report(self, submission: dict):
        return requests.post(f"{BASE_URL}/api/reports", json=submission, headers=self.headers, timeout=60)

    def admin_patients(self, **filters):
        params = {key: value for key, value in filters.items() if value not in (None, "")}
        return requests.get(f"{BASE_URL}/api/admin/patients", params=params, headers=self.headers, timeout=60)

    def download_report(self, test_result_id: str):
        return requests.get(f"{BASE_URL}/api/admin/test-results/{test_result_id}/pdf", headers=self.headers, timeout=120)


# ---------------------------------------------------------------------------
# Cached data fetchers. Standalone functions so @st.cache_data can hash the
# arguments.
# ---------------------------------------------------------------------------

@st.cache_data(ttl=300, show_spinner=False)
def cached_catalog(token: str) -> tuple[bool, list]:
    res = requests.get(f"{BASE_URL}/api/catalog", headers={"Authorization": f"Bearer {token}"}, timeout=30)
    return res.ok, res.json() if res.ok else []


@st.cache_data(ttl=60, show_spinner=False)
def cached_patient_total(token: str) -> tuple[bool, int]:
    res = requests.get(f"{BASE_URL}/api/admin/patients", headers={"Authorization": f"Bearer {token}"}, timeout=60)
    return res.ok, res.json()["data"]["total"] if res.ok else 0
