import sys
from pathlib import Path

APP_DIR = Path(__file__).resolve().parent
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

import streamlit as st
from utils.api_client import ApiClient, cached_catalog, cached_patient_total
from utils.theme import (
    apply_theme,
    clear_session,
    get_colors,
    kpi_tile,
    render_sidebar_profile,
    session_expired,
)

st.set_page_config(
    page_title="Clinic Lab Reports",
    page_icon="🧪",
    layout="wide",
    initial_sidebar_state="expanded",
)
apply_theme()
COLORS = get_colors()

# ── Session defaults ──────────────────────────────────────────────────────
for key in ("token", "user", "expires_at"):
    if key not in st.session_state:
        st.session_state[key] = None

if st.session_state.token and session_expired():
    clear_session()

client = ApiClient(token=st.session_state.token)

# ── Logged-in view ────────────────────────────────────────────────────────
if st.session_state.token:
    render_sidebar_profile(client)

    user = st.session_state.get("user") or {}
    st.markdown(
        f"""
        <div style="margin-bottom:8px;">
            <span style="font-size:1.8rem;font-weight:800;color:{COLORS['text']};">
                Welcome back, {user.get('username', 'admin')}
            </span>
        </div>
        <p style="color:{COLORS['text_muted']};margin-top:0;">
            Enter results, print reports, and look up past patients.
        </p>
        """,
        unsafe_allow_html=True,
    )

    token = st.session_state.token
    c_ok, catalog = cached_catalog(token)
    p_ok, patient_total = cached_patient_total(token)

    cols = st.columns(3)
    tiles = [
        ("Test Types", len(catalog) if c_ok else "—", COLORS["primary"]),
        ("Registered Patients", patient_total if p_ok else "—", COLORS["info"]),
        ("Session Expires", (st.session_state.expires_at or "—")[:16].replace("T", " "), COLORS["text"]),
    ]
    for col, (label, value, color) in zip(cols, tiles):
        col.markdown(kpi_tile(label, value, color), unsafe_allow_html=True)

    st.markdown("<div style='height:24px'></div>", unsafe_allow_html=True)

    nav_items = [
        ("📝", "New Report", "Enter test values for a new or returning patient and print the PDF."),
        ("🗂️", "Patient Records", "Filter saved patients and re-download any past report."),
    ]
    nav_cols = st.columns(len(nav_items))
    for col, (icon, title, desc) in zip(nav_cols, nav_items):
        col.markdown(
            f"""
            <div class="nav-card">
                <div class="nav-icon">{icon}</div>
                <div class="nav-title">{title}</div>
                <div class="nav-desc">{desc}</div>
            </div>
            """,
            unsafe_allow_html=True,
        )

# ── Auth view ─────────────────────────────────────────────────────────────
else:
    _spacer_l, center, _spacer_r = st.columns([1, 2, 1])
    with center:
        st.markdown(
            f"""
            <div style="text-align:center;margin-top:40px;margin-bottom:8px;">
                <span style="font-size:3rem;">🧪</span>
            </div>
            <h1 style="text-align:center;color:{COLORS['text']};margin-bottom:4px;">
                Clinic Lab Reports
            </h1>
            <p style="text-align:center;color:{COLORS['text_muted']};margin-bottom:32px;">
                Staff sign-in
            </p>
            """,
            unsafe_allow_html=True,
        )

        with st.form("login_form"):
            username = st.text_input("Username", placeholder="admin")
            pwd = st.text_input("Password", type="password", placeholder="••••••••")
            submitted = st.form_submit_button("Sign in", use_container_width=True, type="primary")
        if submitted:
            if not username or not pwd:
                st.error("Please enter both username and password.")
            else:
                res = client.login(username, pwd)
                if res.ok:
                    data = res.json()
                    st.session_state.token = data["token"]
                    st.session_state.user = data["user"]
                    st.session_state.expires_at = data["expires_at"]
                    st.rerun()
                else:
                    st.error("Invalid credentials. Please try again.")
