"""Pydantic schemas."""

from oncosafe.schemas.feedback import (
    FeedbackCreate,
    FeedbackListResponse,
    FeedbackResponse,
    FeedbackStatusUpdate,
    FeedbackSubmitResponse,
)
from oncosafe.schemas.patient import (
    PATIENT_SCHEMA_VERSION,
    Allergy,
    Condition,
    Demographics,
    GeneticResult,
    Medication,
    PatientDocument,
)
from oncosafe.schemas.reference import (
    CpicGuidelineUpsert,
    DrugInteractionCreate,
    DrugUpsert,
    GeneDrugInteractionCreate,
    GeneUpsert,
)
from oncosafe.schemas.sync import SyncLogStart, SyncLogUpdate
from oncosafe.schemas.user import UserCreate, UserDeleteResponse, UserResponse, UserUpdate

__all__ = [
    "PATIENT_SCHEMA_VERSION",
    "Allergy",
    "Condition",
    "Demographics",
    "GeneticResult",
    "Medication",
    "PatientDocument",
    # Reference data
    "CpicGuidelineUpsert",
    "DrugInteractionCreate",
    "DrugUpsert",
    "GeneDrugInteractionCreate",
    "GeneUpsert",
    # Users
    "UserCreate",
    "UserDeleteResponse",
    "UserResponse",
    "UserUpdate",
    # Feedback
    "FeedbackCreate",
    "FeedbackListResponse",
    "FeedbackResponse",
    "FeedbackStatusUpdate",
    "FeedbackSubmitResponse",
    # Sync log
    "SyncLogStart",
    "SyncLogUpdate",
]
