"""Projections derived from stored documents."""

from oncosafe.projections.patient_profile import PATIENT_PROFILE_PROJECTION, project_patient_profile
from oncosafe.projections.registry import FieldExtractor, ProjectionConfig

__all__ = [
    "FieldExtractor",
    "PATIENT_PROFILE_PROJECTION",
    "ProjectionConfig",
    "project_patient_profile",
]
