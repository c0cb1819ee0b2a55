from app.models.screening import Patient, Profile, Screening, SubjectType, UserRole

__all__ = ["Patient", "Profile", "Screening", "SubjectType", "UserRole"]
