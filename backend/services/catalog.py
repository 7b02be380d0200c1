import logging

from backend.config import settings
from backend.exceptions import UnknownTestTypeError
from backend.schemas.catalog import TestFieldSpec, TestGroup, TestType

logger = logging.getLogger(__name__)

DEFAULT_TEST_TYPE = "CBC"


def _spec(field_id: str, display_name: str, unit: str | None, reference_range: str) -> TestFieldSpec:
    return TestFieldSpec(id=field_id, display_name=display_name, unit=unit, reference_range=reference_range)


def _group(label: str, *specs: TestFieldSpec) -> TestGroup:
    return TestGroup(label=label, specs=specs)


def _test_type(code: str, name: str, department: str, title: str, *groups: TestGroup) -> TestType:
    return TestType(code=code, name=name, department=department, title=title, groups=groups)


TEST_TYPES: list[TestType] = [
    _test_type(
        "CBC",
        "Complete Blood Count",
        "HAEMATOLOGY",
        "COMPLETE BLOOD COUNT (CBC)",
        _group(
            "Hematology",
            _spec("hemoglobin", "HEMOGLOBIN", "g/dl", "11-16"),
            _spec("totalLeukocyteCount", "TOTAL LEUKOCYTE COUNT", "cumm", "4000 - 11000"),
            _spec("totalRbcCount", "TOTAL RBC COUNT", "million/cumm", "4.5 - 5.5"),
            _spec("hematocrit", "HEMATOCRIT VALUE, HCT", "%", "40 - 50"),
        ),
        _group(
            "Differential Leucocyte Count",
            _spec("neutrophils", "NEUTROPHILS", "%", "40 - 80"),
            _spec("lymphocytes", "LYMPHOCYTES", "%", "20 - 40"),
            _spec("eosinophils", "EOSINOPHILS", "%", "1 - 6"),
            _spec("monocytes", "MONOCYTES", "%", "2 - 10"),
            _spec("basophils", "BASOPHILS", "%", "< 2"),
        ),
        _group(
            "Red Cell Indices",
            _spec("mcv", "MEAN CORPUSCULAR VOLUME, MCV", "fL", "83 - 101"),
            _spec("mch", "MEAN CORPUSCULAR HEMOGLOBIN, MCH", "pg", "27 - 32"),
            _spec("mchc", "MEAN CORPUSCULAR HEMOGLOBIN CONCENTRATION, MCHC", "g/dl", "31.5 - 34.5"),
            _spec("rdw", "RED CELL DISTRIBUTION WIDTH, RDW", "%", "11.6 - 14"),
        ),
        _group(
            "Platelets",
            _spec("plateletCount", "PLATELET COUNT", "lakhs/cumm", "1.5 - 4.1"),
            _spec("mpv", "MEAN PLATELET VOLUME, MPV", "fL", "7.5 - 11.5"),
        ),
    ),
    _test_type(
        "LFT",
        "Liver Function Test",
        "BIOCHEMISTRY",
        "LIVER FUNCTION TEST (LFT)",
        _group(
            "Bilirubin",
            _spec("serumBilirubinTotal", "SERUM BILIRUBIN (TOTAL)", "mg/dl", "0.2 - 1.2"),
            _spec("serumBilirubinDirect", "SERUM BILIRUBIN (DIRECT)", "mg/dl", "0 - 0.3"),
            _spec("serumBilirubinIndirect", "SERUM BILIRUBIN (INDIRECT)", "mg/dl", "0.2 - 1"),
        ),
        _group(
            "Liver Enzymes",
            _spec("sgptAlt", "SGPT (ALT)", "U/L", "5 - 40 U/L"),
            _spec("sgotAst", "SGOT (AST)", "U/L", "5 - 40 U/L"),
            _spec("serumAlkalinePhosphatase", "SERUM ALKALINE PHOSPHATASE", "U/L", "44 - 147 U/L"),
            _spec("ggt", "GAMMA GLUTAMYL TRANSFERASE, GGT", "U/L", "8 - 61 U/L"),
        ),
        _group(
            "Proteins",
            _spec("serumProtein", "SERUM PROTEIN", "g/dl", "6.4 - 8.3"),
            _spec("serumAlbumin", "SERUM ALBUMIN", "g/dl", "3.5 - 5.2"),
            _spec("globulin", "GLOBULIN", "g/dl", "1.8 - 3.6"),
            _spec("agRatio", "A/G RATIO", None, "1.1 - 2.1"),
        ),
    ),
    _test_type(
        "BloodSugar",
        "Blood Sugar",
        "BIOCHEMISTRY",
        "BLOOD SUGAR",
        _group(
            "Blood Glucose",
            _spec("fastingBloodSugar", "BLOOD SUGAR (FASTING)", "mg/dl", "70 - 110"),
            _spec("postprandialBloodSugar", "BLOOD SUGAR (POST PRANDIAL)", "mg/dl", "80 - 140"),
            _spec("randomBloodSugar", "BLOOD SUGAR (RANDOM)", "mg/dl", "70 - 140"),
        ),
        _group(
            "Urine Sugar",
            _spec("fastingUrineSugar", "URINE SUGAR (FASTING)", None, "Negative"),
            _spec("postprandialUrineSugar", "URINE SUGAR (POST PRANDIAL)", None, "Negative"),
        ),
    ),
    _test_type(
        "Renal",
        "Renal Function Test",
        "BIOCHEMISTRY",
        "RENAL FUNCTION TEST (RFT)",
        _group(
            "Kidney Function",
            _spec("bloodUrea", "BLOOD UREA", "mg/dl", "15 - 40"),
            _spec("bun", "BLOOD UREA NITROGEN, BUN", "mg/dl", "7 - 20"),
            _spec("serumCreatinine", "SERUM CREATININE", "mg/dl", "0.6 - 1.2"),
            _spec("uricAcid", "SERUM URIC ACID", "mg/dl", "3.5 - 7.2"),
        ),
        _group(
            "Electrolytes",
            _spec("sodium", "SODIUM", "mmol/L", "135 - 145"),
            _spec("potassium", "POTASSIUM", "mmol/L", "3.5 - 5.1"),
            _spec("chloride", "CHLORIDE", "mmol/L", "98 - 107"),
        ),
    ),
    _test_type(
        "Lipid",
        "Lipid Profile",
        "BIOCHEMISTRY",
        "LIPID PROFILE",
        _group(
            "Lipid Profile",
            _spec("totalCholesterol", "TOTAL CHOLESTEROL", "mg/dl", "< 200"),
            _spec("triglycerides", "TRIGLYCERIDES", "mg/dl", "< 150"),
            _spec("hdlCholesterol", "HDL CHOLESTEROL", "mg/dl", "40 - 60"),
            _spec("ldlCholesterol", "LDL CHOLESTEROL", "mg/dl", "< 100"),
            _spec("vldlCholesterol", "VLDL CHOLESTEROL", "mg/dl", "5 - 40"),
        ),
        _group(
            "Ratios",
            _spec("cholHdlRatio", "TOTAL CHOLESTEROL/HDL RATIO", None, "3.5 - 5"),
            _spec("ldlHdlRatio", "LDL/HDL RATIO", None, "1.5 - 3.5"),
        ),
    ),
    _test_type(
        "TFT",
        "Thyroid Function Test",
        "IMMUNOASSAY",
        "THYROID FUNCTION TEST (TFT)",
        _group(
            "Thyroid Hormones",
            _spec("t3", "TRIIODOTHYRONINE, T3", "ng/ml", "0.8 - 2"),
            _spec("t4", "THYROXINE, T4", "ug/dl", "5.1 - 14.1"),
            _spec("tsh", "THYROID STIMULATING HORMONE, TSH", "uIU/ml", "0.27 - 4.2"),
        ),
        _group(
            "Free Hormones",
            _spec("ft3", "FREE T3", "pg/ml", "2 - 4.4"),
            _spec("ft4", "FREE T4", "ng/dl", "0.93 - 1.7"),
        ),
    ),
    _test_type(
        "Urine",
        "Urine Routine",
        "CLINICAL PATHOLOGY",
        "URINE ROUTINE EXAMINATION",
        _group(
            "Physical Examination",
            _spec("urineColour", "COLOUR", None, "Pale Yellow"),
            _spec("urineAppearance", "APPEARANCE", None, "Clear"),
            _spec("urineSpecificGravity", "SPECIFIC GRAVITY", None, "1.005 - 1.030"),
            _spec("urinePh", "REACTION, PH", None, "4.6 - 8"),
        ),
        _group(
            "Chemical Examination",
            _spec("urineProtein", "PROTEIN", None, "Negative"),
            _spec("urineGlucose", "GLUCOSE", None, "Negative"),
            _spec("urineKetones", "KETONE BODIES", None, "Negative"),
            _spec("urineBilirubin", "BILIRUBIN", None, "Negative"),
        ),
        _group(
            "Microscopic Examination",
            _spec("pusCells", "PUS CELLS", "/hpf", "0 - 5"),
            _spec("urineRbc", "RED BLOOD CELLS", "/hpf", "0 - 2"),
            _spec("epithelialCells", "EPITHELIAL CELLS", "/hpf", "0 - 5"),
            _spec("casts", "CASTS", None, "Absent"),
            _spec("crystals", "CRYSTALS", None, "Absent"),
        ),
    ),
    _test_type(
        "HbA1c",
        "Glycated Haemoglobin",
        "BIOCHEMISTRY",
        "GLYCATED HAEMOGLOBIN (HbA1c)",
        _group(
            "Glycated Haemoglobin",
            _spec("hba1c", "GLYCATED HAEMOGLOBIN, HBA1C", "%", "4 - 5.6"),
            _spec("estimatedAverageGlucose", "ESTIMATED AVERAGE GLUCOSE", "mg/dl", "68 - 114"),
        ),
    ),
    _test_type(
        "Electrolytes",
        "Serum Electrolytes",
        "BIOCHEMISTRY",
        "SERUM ELECTROLYTES",
        _group(
            "Serum Electrolytes",
            _spec("sodium", "SODIUM", "mmol/L", "135 - 145"),
            _spec("potassium", "POTASSIUM", "mmol/L", "3.5 - 5.1"),
            _spec("chloride", "CHLORIDE", "mmol/L", "98 - 107"),
            _spec("bicarbonate", "BICARBONATE", "mmol/L", "22 - 29"),
            _spec("ionizedCalcium", "IONIZED CALCIUM", "mmol/L", "1.12 - 1.32"),
        ),
        _group(
            "Minerals",
            _spec("serumCalcium", "SERUM CALCIUM", "mg/dl", "8.6 - 10.3"),
            _spec("serumPhosphorus", "SERUM PHOSPHORUS", "mg/dl", "2.5 - 4.5"),
            _spec("serumMagnesium", "SERUM MAGNESIUM", "mg/dl", "1.7 - 2.2"),
        ),
    ),
    _test_type(
        "Widal",
        "Widal Test",
        "SEROLOGY",
        "WIDAL TEST",
        _group(
            "Salmonella Agglutinins",
            _spec("typhiO", "SALMONELLA TYPHI O", "titre", "< 1:80"),
            _spec("typhiH", "SALMONELLA TYPHI H", "titre", "< 1:80"),
            _spec("paratyphiAH", "SALMONELLA PARATYPHI A H", "titre", "< 1:80"),
            _spec("paratyphiBH", "SALMONELLA PARATYPHI B H", "titre", "< 1:80"),
        ),
    ),
    _test_type(
        "ESR",
        "Erythrocyte Sedimentation Rate",
        "HAEMATOLOGY",
        "ERYTHROCYTE SEDIMENTATION RATE (ESR)",
        _group(
            "Sedimentation Rate",
            _spec("esr", "ERYTHROCYTE SEDIMENTATION RATE, ESR", "mm/1st hr", "0 - 20"),
        ),
    ),
    _test_type(
        "CRP",
        "C-Reactive Protein",
        "SEROLOGY",
        "C-REACTIVE PROTEIN (CRP)",
        _group(
            "Inflammatory Markers",
            _spec("crp", "C-REACTIVE PROTEIN, CRP", "mg/L", "< 6"),
            _spec("hsCrp", "HIGH SENSITIVITY CRP", "mg/L", "< 1"),
            _spec("raFactor", "RHEUMATOID FACTOR, RA", "IU/mL", "<14 IU/mL"),
            _spec("asoTitre", "ANTI STREPTOLYSIN O, ASO", "IU/mL", "< 200"),
        ),
    ),
    _test_type(
        "Serology",
        "Infectious Disease Screening",
        "SEROLOGY",
        "INFECTIOUS DISEASE SCREENING",
        _group(
            "Viral Markers",
            _spec("hiv", "HIV I & II ANTIBODIES", None, "Non Reactive"),
            _spec("hbsag", "HEPATITIS B SURFACE ANTIGEN, HBSAG", None, "Non Reactive"),
            _spec("hcv", "HCV ANTIBODIES", None, "Non Reactive"),
        ),
        _group(
            "Other Screening",
            _spec("vdrl", "VDRL", None, "Non Reactive"),
            _spec("dengueNs1", "DENGUE NS1 ANTIGEN", None, "Negative"),
            _spec("malariaAntigen", "MALARIA ANTIGEN", None, "Negative"),
        ),
    ),
    _test_type(
        "Coagulation",
        "Coagulation Profile",
        "HAEMATOLOGY",
        "COAGULATION PROFILE",
        _group(
            "Coagulation",
            _spec("bleedingTime", "BLEEDING TIME", "min", "1 - 5"),
            _spec("clottingTime", "CLOTTING TIME", "min", "4 - 9"),
            _spec("prothrombinTime", "PROTHROMBIN TIME, PT", "sec", "11 - 13.5"),
            _spec("inr", "INR", None, "0.8 - 1.1"),
            _spec("aptt", "ACTIVATED PARTIAL THROMBOPLASTIN TIME, APTT", "sec", "30 - 40"),
        ),
    ),
    _test_type(
        "IronStudies",
        "Iron Studies",
        "BIOCHEMISTRY",
        "IRON STUDIES",
        _group(
            "Iron Profile",
            _spec("serumIron", "SERUM IRON", "ug/dl", "60 - 170"),
            _spec("tibc", "TOTAL IRON BINDING CAPACITY, TIBC", "ug/dl", "250 - 450"),
            _spec("transferrinSaturation", "TRANSFERRIN SATURATION", "%", "20 - 50"),
            _spec("serumFerritin", "SERUM FERRITIN", "ng/ml", "20 - 250"),
        ),
    ),
    _test_type(
        "Vitamins",
        "Vitamin Profile",
        "BIOCHEMISTRY",
        "VITAMIN PROFILE",
        _group(
            "Vitamins",
            _spec("vitaminD", "25-HYDROXY VITAMIN D", "ng/ml", "30 - 100"),
            _spec("vitaminB12", "VITAMIN B12", "pg/ml", "211 - 911"),
            _spec("folicAcid", "FOLIC ACID", "ng/ml", "3.1 - 17.5"),
        ),
    ),
    _test_type(
        "Cardiac",
        "Cardiac Markers",
        "BIOCHEMISTRY",
        "CARDIAC MARKERS",
        _group(
            "Cardiac Enzymes",
            _spec("troponinI", "TROPONIN I", "ng/ml", "< 0.04"),
            _spec("ckMb", "CREATINE KINASE MB, CK-MB", "U/L", "0 - 25"),
            _spec("ldh", "LACTATE DEHYDROGENASE, LDH", "U/L", "140 - 280"),
            _spec("cpk", "CREATINE PHOSPHOKINASE, CPK", "U/L", "39 - 308"),
        ),
    ),
    _test_type(
        "Stool",
        "Stool Routine",
        "CLINICAL PATHOLOGY",
        "STOOL ROUTINE EXAMINATION",
        _group(
            "Physical Examination",
            _spec("stoolColour", "COLOUR", None, "Brown"),
            _spec("stoolConsistency", "CONSISTENCY", None, "Formed"),
            _spec("stoolMucus", "MUCUS", None, "Absent"),
            _spec("stoolBlood", "VISIBLE BLOOD", None, "Absent"),
        ),
        _group(
            "Microscopic Examination",
            _spec("ova", "OVA", None, "Not Seen"),
            _spec("cysts", "CYSTS", None, "Not Seen"),
            _spec("stoolPusCells", "PUS CELLS", "/hpf", "0 - 5"),
            _spec("occultBlood", "OCCULT BLOOD", None, "Negative"),
        ),
    ),
]

CATALOG: dict[str, TestType] = {test_type.code: test_type for test_type in TEST_TYPES}


def list_test_types() -> list[TestType]:
    return list(TEST_TYPES)


def get_test_type(code: str | None) -> TestType:
    """Resolve a test-type code, falling back to CBC unless strict mode is on."""
    test_type = CATALOG.get(code or "")
    if test_type is not None:
        return test_type
    if settings.strict_test_types:
        raise UnknownTestTypeError(f"Unknown test type: {code}")
    logger.warning("Unknown test type %r, falling back to %s", code, DEFAULT_TEST_TYPE)
    return CATALOG[DEFAULT_TEST_TYPE]


def groups_for(test_type: str | None) -> tuple[TestGroup, ...]:
    return get_test_type(test_type).groups


def field_ids(test_type: str | None) -> list[str]:
    return [spec.id for group in groups_for(test_type) for spec in group.specs]
