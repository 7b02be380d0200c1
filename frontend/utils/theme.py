"""
Shared theme, CSS injection, color palette, and UI helper functions
for the Clinic Lab Reports Streamlit frontend.
"""

from __future__ import annotations

from datetime import datetime

import streamlit as st

# ---------------------------------------------------------------------------
# Color palettes (light + dark)
# ---------------------------------------------------------------------------
COLORS_LIGHT: dict[str, str] = {
    "primary": "#0D9488",       # teal-600
    "success": "#10B981",       # emerald-500
    "success_light": "#D1FAE5", # emerald-100
    "info": "#3B82F6",          # blue-500
    "text": "#1E293B",          # slate-800
    "text_muted": "#475569",    # slate-600
    "bg_card": "#FFFFFF",
    "bg_page": "#F8FAFC",       # slate-50
    "border": "#E2E8F0",        # slate-200
}

COLORS_DARK: dict[str, str] = {
    "primary": "#14B8A6",       # teal-400
    "success": "#34D399",       # emerald-400
    "success_light": "#022C22", # emerald-950
    "info": "#60A5FA",          # blue-400
    "text": "#F1F5F9",          # slate-100
    "text_muted": "#94A3B8",    # slate-400
    "bg_card": "#1E293B",       # slate-800
    "bg_page": "#0F172A",       # slate-900
    "border": "#334155",        # slate-700
}


def get_colors() -> dict[str, str]:
    """Return the active palette based on ``st.session_state.dark_mode``."""
    if st.session_state.get("dark_mode", False):
        return COLORS_DARK
    return COLORS_LIGHT


# ---------------------------------------------------------------------------
# CSS injection (built dynamically for active palette)
# ---------------------------------------------------------------------------
_CSS_TEMPLATE = """
<style>
[data-testid="stAppViewContainer"] {
    background-color: %(bg_page)s;
}
[data-testid="stAppViewContainer"] > section[data-testid="stMain"] p,
[data-testid="stAppViewContainer"] > section[data-testid="stMain"] span,
[data-testid="stAppViewContainer"] > section[data-testid="stMain"] td,
[data-testid="stAppViewContainer"] > section[data-testid="stMain"] li {
    color: %(text)s;
}
[data-testid="stMain"] [data-testid="stExpander"] summary span {
    color: %(text)s !important;
}

/* ---------- Card container ---------- */
.card {
    background: %(bg_card)s;
    border: 1px solid %(border)s;
    border-radius: 12px;
    padding: 24px;
    margin-bottom: 16px;
    box-shadow: 0 1px 3px rgba(0,0,0,0.06);
}

/* ---------- Test-type badge ---------- */
.type-badge {
    background: %(success_light)s;
    color: %(success)s;
    display: inline-block;
    padding: 2px 10px;
    border-radius: 9999px;
    font-size: 0.75rem;
    font-weight: 600;
    letter-spacing: 0.03em;
}

/* ---------- KPI tile ---------- */
.kpi-tile {
    background: %(bg_card)s;
    border: 1px solid %(border)s;
    border-radius: 12px;
    padding: 20px;
    text-align: center;
    box-shadow: 0 1px 3px rgba(0,0,0,0.06);
}
.kpi-value {
    font-size: 2rem;
    font-weight: 800;
    line-height: 1.1;
}
.kpi-label {
    font-size: 0.82rem;
    color: %(text_muted)s;
    text-transform: uppercase;
    letter-spacing: 0.04em;
    margin-top: 6px;
}

/* ---------- Nav card ---------- */
.nav-card {
    background: %(bg_card)s;
    border: 1px solid %(border)s;
    border-radius: 12px;
    padding: 24px;
    text-align: center;
    box-shadow: 0 1px 3px rgba(0,0,0,0.06);
}
.nav-icon { font-size: 2rem; margin-bottom: 8px; }
.nav-title { font-weight: 700; font-size: 1rem; color: %(text)s; }
.nav-desc { color: %(text_muted)s; font-size: 0.82rem; margin-top: 4px; }

/* ---------- Section title ---------- */
.section-title {
    font-size: 1.15rem;
    font-weight: 700;
    color: %(text)s;
    margin: 24px 0 12px 0;
    padding-bottom: 8px;
    border-bottom: 2px solid %(primary)s;
    display: inline-block;
}

/* ---------- Sidebar ---------- */
[data-testid="stSidebar"] {
    background-color: %(bg_card)s !important;
}
[data-testid="stSidebar"] * {
    color: %(text)s !important;
}
[data-testid="stSidebarNav"] a[aria-current="page"] span {
    color: %(primary)s !important;
    font-weight: 700;
}

/* ---------- Inputs ---------- */
[data-testid="stTextInput"] input,
[data-testid="stNumberInput"] input,
[data-testid="stDateInput"] input,
[data-testid="stSelectbox"] div[data-baseweb="select"],
input[type="text"],
input[type="password"] {
    color: %(text)s !important;
    background-color: %(bg_card)s !important;
    border-color: %(border)s !important;
}
[data-testid="stTextInput"] label,
[data-testid="stNumberInput"] label,
[data-testid="stDateInput"] label,
[data-testid="stSelectbox"] label {
    color: %(text)s !important;
}
</style>
"""


def apply_theme() -> None:
    """Inject global CSS into the page. Call once at the top of every page."""
    if "dark_mode" not in st.session_state:
        st.session_state.dark_mode = False
    st.markdown(_CSS_TEMPLATE % get_colors(), unsafe_allow_html=True)


# ---------------------------------------------------------------------------
# Session helpers
# ---------------------------------------------------------------------------
def clear_session() -> None:
    st.session_state.token = None
    st.session_state.user = None
    st.session_state.expires_at = None


def session_expired() -> bool:
    expires_at = st.session_state.get("expires_at")
    if not expires_at:
        return False
    return datetime.fromisoformat(expires_at) <= datetime.utcnow()


def auth_guard() -> None:
    """Stop page execution with a friendly message if not logged in."""
    if st.session_state.get("token") and session_expired():
        clear_session()
        st.warning("Your session has expired. Please log in again from the **Home** page.")
        st.stop()
    if not st.session_state.get("token"):
        st.warning("Please log in from the **Home** page to continue.")
        st.stop()


def render_sidebar_profile(client=None) -> None:
    """Render the signed-in admin, logout button, and dark-mode toggle."""
    if not st.session_state.get("token"):
        return
    user = st.session_state.get("user") or {}
    username = user.get("username", "admin")
    c = get_colors()

    with st.sidebar:
        st.markdown(
            f"""
            <div style="text-align:center; padding: 16px 0 8px 0;">
                <div style="width:56px;height:56px;border-radius:50%;background:{c['primary']};
                    color:white;font-size:1.3rem;font-weight:700;display:inline-flex;
                    align-items:center;justify-content:center;margin-bottom:6px;">
                    {username[:1].upper()}
                </div>
                <div style="font-weight:600;color:{c['text']};font-size:0.95rem;">{username}</div>
            </div>
            """,
            unsafe_allow_html=True,
        )
        st.divider()

        dark = st.toggle(
            "🌙 Dark mode",
            value=st.session_state.get("dark_mode", False),
            key="dark_mode_toggle",
        )
        if dark != st.session_state.get("dark_mode", False):
            st.session_state.dark_mode = dark
            st.rerun()

        if st.button("Logout", use_container_width=True, type="secondary"):
            if client is not None:
                client.logout()
            clear_session()
            st.rerun()
        st.divider()


# ---------------------------------------------------------------------------
# Reusable HTML helpers
# ---------------------------------------------------------------------------
def kpi_tile(label: str, value: str | int | float, color: str) -> str:
    """Return HTML for a single KPI tile."""
    return (
        f'<div class="kpi-tile">'
        f'  <div class="kpi-value" style="color:{color};">{value}</div>'
        f'  <div class="kpi-label">{label}</div>'
        f'</div>'
    )


def section_title(text: str) -> None:
    """Render a styled section heading."""
    st.markdown(f'<div class="section-title">{text}</div>', unsafe_allow_html=True)


def type_badge(code: str) -> str:
    return f'<span class="type-badge">{code}</span>'


def error_message(res) -> str:
    """Pull the message out of an API error envelope."""
    try:
        return res.json().get("message") or res.text
    except ValueError:
        return res.text
