import sys
from pathlib import Path

APP_DIR = Path(__file__).resolve().parent.parent
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

import streamlit as st

from utils.api_client import ApiClient, attachment_filename, cached_catalog, cached_patient_total
from utils.theme import (
    apply_theme,
    auth_guard,
    error_message,
    get_colors,
    render_sidebar_profile,
    section_title,
)

st.set_page_config(page_title="New Report", page_icon="📝", layout="wide")
apply_theme()
auth_guard()
COLORS = get_colors()

client = ApiClient(token=st.session_state.token)
render_sidebar_profile(client)

if "custom_rows" not in st.session_state:
    st.session_state.custom_rows = 0
if "generated_pdf" not in st.session_state:
    st.session_state.generated_pdf = None

st.markdown(
    f"""
    <div style="margin-bottom:4px;">
        <span style="font-size:1.6rem;font-weight:800;color:{COLORS['text']};">📝 New Lab Report</span>
    </div>
    <p style="color:{COLORS['text_muted']};margin-top:0;">
        Fill in the patient details and the observed values. Blank fields are left off the report.
    </p>
    """,
    unsafe_allow_html=True,
)

ok, catalog = cached_catalog(st.session_state.token)
if not ok or not catalog:
    st.error("Could not load the test catalog from the API.")
    st.stop()

# ── Patient ───────────────────────────────────────────────────────────────
section_title("Patient")
mode = st.radio("Patient", ["New patient", "Existing patient"], horizontal=True, label_visibility="collapsed")

existing = None
if mode == "Existing patient":
    term = st.text_input("Search by name or registration number", placeholder="e.g. Verma or REG17")
    if term.strip():
        res = client.search_patients(term)
        matches = res.json()["data"] if res.ok else []
        if matches:
            existing = st.selectbox(
                "Matching patients",
                matches,
                format_func=lambda p: f"{p['name']} · {p['registration_number']} · {p['age']} yrs",
            )
        else:
            st.info("No patients match that search.")

c1, c2, c3 = st.columns([3, 1, 1])
patient_name = c1.text_input("Patient name", value=existing["name"] if existing else "", disabled=bool(existing))
age = c2.number_input("Age (years)", min_value=1, max_value=130, value=int(existing["age"]) if existing else 30, disabled=bool(existing))
sex_options = ["M", "F"]
sex = c3.selectbox(
    "Sex",
    sex_options,
    index=sex_options.index(existing["sex"]) if existing and existing["sex"] in sex_options else 0,
    disabled=bool(existing),
)
c4, c5 = st.columns(2)
phone = c4.text_input("Phone", value=(existing or {}).get("phone") or "", disabled=bool(existing))
referred_by = c5.text_input("Referred by", value=(existing or {}).get("referred_by") or "", placeholder="Self", disabled=bool(existing))

# ── Test values ───────────────────────────────────────────────────────────
by_code = {entry["code"]: entry for entry in catalog}
test_type = st.selectbox(
    "Test type",
    list(by_code),
    format_func=lambda code: f"{by_code[code]['name']} ({code})",
)
entry = by_code[test_type]

values: dict[str, str] = {}
for group in entry["groups"]:
    section_title(group["label"])
    cols = st.columns(3)
    for index, spec in enumerate(group["specs"]):
        label = spec["display_name"]
        if spec.get("unit"):
            label = f"{label} ({spec['unit']})"
        values[spec["id"]] = cols[index % 3].text_input(
            label,
            key=f"{test_type}_{spec['id']}",
            help=f"Reference: {spec['reference_range']}",
        )

section_title("Custom tests")
custom_tests = []
for row in range(st.session_state.custom_rows):
    n, v, r = st.columns([2, 1, 1])
    custom_tests.append(
        {
            "name": n.text_input("Test name", key=f"custom_name_{row}"),
            "value": v.text_input("Value", key=f"custom_value_{row}"),
            "reference_range": r.text_input("Reference", key=f"custom_ref_{row}"),
        }
    )
add_col, remove_col, _ = st.columns([1, 1, 4])
if add_col.button("➕ Add custom test"):
    st.session_state.custom_rows += 1
    st.rerun()
if remove_col.button("➖ Remove last", disabled=st.session_state.custom_rows == 0):
    st.session_state.custom_rows -= 1
    st.rerun()


def build_submission(registration_number: str | None = None, serial_number: int | None = None) -> dict:
    return {
        "test_type": test_type,
        "patient_name": patient_name,
        "age": int(age),
        "sex": sex,
        "phone": phone or None,
        "referred_by": referred_by or None,
        "registration_number": registration_number or (existing or {}).get("registration_number"),
        "serial_number": serial_number or (existing or {}).get("serial_number"),
        "values": values,
        "custom_tests": custom_tests,
        "existing_patient_id": existing["id"] if existing else None,
    }


# ── Actions ───────────────────────────────────────────────────────────────
st.markdown("<div style='height:12px'></div>", unsafe_allow_html=True)
save_col, preview_col = st.columns(2)
save_clicked = save_col.button("Save and generate PDF", type="primary", use_container_width=True)
preview_clicked = preview_col.button("Generate PDF without saving", use_container_width=True)

if save_clicked or preview_clicked:
    st.session_state.generated_pdf = None
    if not patient_name.strip():
        st.error("Patient name is required.")
        st.stop()

    registration_number = None
    serial_number = None
    if save_clicked:
        with st.spinner("Saving patient data..."):
            res = client.save_report(build_submission())
        if not res.ok:
            st.error(f"Save failed: {error_message(res)}")
            st.stop()
        saved = res.json()["data"]
        registration_number = saved["patient"]["registration_number"]
        serial_number = saved["patient"]["serial_number"]
        label = "New patient registered" if saved["is_new_patient"] else "Result added to existing patient"
        st.success(f"{label}: **{registration_number}** (lab no. {saved['patient']['serial_number']})")
        cached_patient_total.clear()

    with st.spinner("Rendering report..."):
        res = client.generate_pdf(build_submission(registration_number, serial_number))
    if res.ok:
        st.session_state.generated_pdf = (attachment_filename(res), res.content)
    else:
        st.error(f"PDF generation failed: {error_message(res)}")

if st.session_state.generated_pdf:
    filename, content = st.session_state.generated_pdf
    st.download_button(
        f"⬇️ Download {filename}",
        data=content,
        file_name=filename,
        mime="application/pdf",
        use_container_width=True,
    )
