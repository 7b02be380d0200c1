from datetime import datetime
from uuid import uuid4

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.database import Base


class PatientRecord(Base):
    __tablename__ = "patients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    sex: Mapped[str] = mapped_column(String(1), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    registration_number: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    serial_number: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    referred_by: Mapped[str] = mapped_column(String(255), nullable=False, default="Self")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True, nullable=False)

    test_results = relationship(
        "TestResultRecord",
        back_populates="patient",
        cascade="all, delete-orphan",
        order_by="TestResultRecord.reported_on.desc()",
    )


class TestResultRecord(Base):
    __tablename__ = "test_results"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    patient_id: Mapped[str] = mapped_column(String(36), ForeignKey("patients.id", ondelete="CASCADE"), index=True)
    test_type: Mapped[str] = mapped_column(String(50), index=True, nullable=False)
    test_data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    reported_on: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True, nullable=False)

    patient = relationship("PatientRecord", back_populates="test_results")
