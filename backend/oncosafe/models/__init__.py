"""SQLAlchemy models."""

from oncosafe.models.audit_log import AuditLog
from oncosafe.models.feedback import Feedback
from oncosafe.models.identity import IdentityAccount, IdentitySession, IdentityUser
from oncosafe.models.patient import Patient, PatientProfile
from oncosafe.models.reference import (
    ClinicalTrial,
    CpicGuideline,
    Drug,
    DrugInteraction,
    Gene,
    GeneDrugInteraction,
    OncologyProtocol,
)
from oncosafe.models.sync_log import SyncLog
from oncosafe.models.user import User

__all__ = [
    "AuditLog",
    "ClinicalTrial",
    "CpicGuideline",
    "Drug",
    "DrugInteraction",
    "Feedback",
    "Gene",
    "GeneDrugInteraction",
    "IdentityAccount",
    "IdentitySession",
    "IdentityUser",
    "OncologyProtocol",
    "Patient",
    "PatientProfile",
    "SyncLog",
    "User",
]
