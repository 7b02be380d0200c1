from pydantic import BaseModel, ConfigDict, Field


class TestFieldSpec(BaseModel):
    """A single measurable field of a test panel."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Form field id the submitted value is keyed by")
    display_name: str = Field(description="Name printed in the report")
    unit: str | None = Field(default=None, description="Unit of measurement")
    reference_range: str = Field(description="Free-text reference range or sentinel")


class TestGroup(BaseModel):
    """Section of a test panel; group order is display order."""
    model_config = ConfigDict(frozen=True)

    label: str
    specs: tuple[TestFieldSpec, ...]


class TestType(BaseModel):
    """Catalog entry for one test panel."""
    model_config = ConfigDict(frozen=True)

    code: str
    name: str
    department: str
    title: str
    groups: tuple[TestGroup, ...]
