import sys
from pathlib import Path

APP_DIR = Path(__file__).resolve().parent.parent
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

import streamlit as st

from utils.api_client import ApiClient, attachment_filename, cached_catalog
from utils.theme import (
    apply_theme,
    auth_guard,
    error_message,
    get_colors,
    kpi_tile,
    render_sidebar_profile,
    section_title,
    type_badge,
)

st.set_page_config(page_title="Patient Records", page_icon="🗂️", layout="wide")
apply_theme()
auth_guard()
COLORS = get_colors()

client = ApiClient(token=st.session_state.token)
render_sidebar_profile(client)

if "downloads" not in st.session_state:
    st.session_state.downloads = {}

st.markdown(
    f"""
    <div style="margin-bottom:4px;">
        <span style="font-size:1.6rem;font-weight:800;color:{COLORS['text']};">🗂️ Patient Records</span>
    </div>
    <p style="color:{COLORS['text_muted']};margin-top:0;">
        Filter saved patients and regenerate any stored report.
    </p>
    """,
    unsafe_allow_html=True,
)

# ── Filters ───────────────────────────────────────────────────────────────
_, catalog = cached_catalog(st.session_state.token)
type_options = ["all"] + [entry["code"] for entry in catalog]

with st.form("filters"):
    f1, f2, f3 = st.columns(3)
    name = f1.text_input("Name")
    reg_no = f2.text_input("Registration no.")
    test_type = f3.selectbox("Test type", type_options, format_func=lambda code: "All tests" if code == "all" else code)
    d1, d2 = st.columns(2)
    date_from = d1.date_input("Registered from", value=None)
    date_to = d2.date_input("Registered to", value=None)
    st.form_submit_button("Apply filters", type="primary")

res = client.admin_patients(
    name=name,
    reg_no=reg_no,
    test_type=test_type,
    date_from=date_from.isoformat() if date_from else None,
    date_to=date_to.isoformat() if date_to else None,
)
if not res.ok:
    st.error(error_message(res))
    st.stop()

data = res.json()["data"]
patients = data["patients"]
report_total = sum(len(p["test_results"]) for p in patients)

k1, k2 = st.columns(2)
k1.markdown(kpi_tile("Patients", data["total"], COLORS["primary"]), unsafe_allow_html=True)
k2.markdown(kpi_tile("Reports", report_total, COLORS["info"]), unsafe_allow_html=True)

section_title("Results")
if not patients:
    st.info("No patients match these filters.")

for patient in patients:
    header = f"{patient['name']} · {patient['registration_number']} · {patient['age']} yrs / {patient['sex']}"
    with st.expander(header):
        st.caption(
            f"Lab no. {patient['serial_number']} · Phone {patient.get('phone') or 'N/A'} · "
            f"Referred by {patient['referred_by']} · Registered {patient['created_at'][:10]}"
        )
        if not patient["test_results"]:
            st.write("No reports saved for this patient.")
        for result in patient["test_results"]:
            left, middle, right = st.columns([1, 2, 2])
            left.markdown(type_badge(result["test_type"]), unsafe_allow_html=True)
            middle.write(result["reported_on"][:16].replace("T", " "))
            cached = st.session_state.downloads.get(result["id"])
            if cached:
                filename, content = cached
                right.download_button(
                    "⬇️ Download PDF",
                    data=content,
                    file_name=filename,
                    mime="application/pdf",
                    key=f"download_{result['id']}",
                )
            elif right.button("Prepare PDF", key=f"prepare_{result['id']}"):
                pdf = client.download_report(result["id"])
                if pdf.ok:
                    st.session_state.downloads[result["id"]] = (attachment_filename(pdf), pdf.content)
                    st.rerun()
                else:
                    st.error(error_message(pdf))
