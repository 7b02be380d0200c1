from backend.models.patient import PatientRecord, TestResultRecord
from backend.models.user import AdminSession, AdminUser

__all__ = [
    "AdminUser",
    "AdminSession",
    "PatientRecord",
    "TestResultRecord",
]
