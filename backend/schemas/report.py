from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class Flag(str, Enum):
    NORMAL = "normal"
    LOW = "low"
    HIGH = "high"


class GroupHeading(BaseModel):
    kind: Literal["heading"] = "heading"
    label: str


class DataRow(BaseModel):
    kind: Literal["data"] = "data"
    display_name: str
    value: str
    unit: str | None = None
    reference_range: str
    flag: Flag = Flag.NORMAL
    is_custom: bool = False


ReportRow = GroupHeading | DataRow


class CustomTest(BaseModel):
    """User-authored test outside the catalog."""
    name: str = ""
    value: str = ""
    reference_range: str = ""

    def is_complete(self) -> bool:
        return bool(self.name.strip() and self.value.strip() and self.reference_range.strip())


class PatientIdentity(BaseModel):
    name: str = Field(min_length=1, description="Patient full name")
    age: int = Field(gt=0, description="Age in years")
    sex: Literal["M", "F"] = "M"
    phone: str | None = None
    referred_by: str | None = None


class ReportMetadata(BaseModel):
    """Header values that are not patient identity."""
    test_type: str
    registration_number: str | None = None
    serial_number: int | None = None
    reported_on: datetime | None = None


class ReportSubmission(BaseModel):
    """Form payload shared by PDF generation and persistence."""
    test_type: str = "CBC"
    patient_name: str = Field(min_length=1)
    age: int = Field(gt=0)
    sex: Literal["M", "F"] = "M"
    phone: str | None = None
    referred_by: str | None = None
    registration_number: str | None = None
    serial_number: int | None = None
    values: dict[str, str] = Field(default_factory=dict)
    custom_tests: list[CustomTest] = Field(default_factory=list)
    existing_patient_id: str | None = None

    @field_validator("patient_name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Patient name is required")
        return value

    def identity(self) -> PatientIdentity:
        return PatientIdentity(
            name=self.patient_name,
            age=self.age,
            sex=self.sex,
            phone=self.phone,
            referred_by=self.referred_by,
        )

    def test_data(self) -> dict:
        """Opaque blob persisted verbatim with the test result."""
        return {
            "values": dict(self.values),
            "custom_tests": [entry.model_dump() for entry in self.custom_tests],
        }
