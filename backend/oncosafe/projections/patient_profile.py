"""Patient profile projection.

Pure functions that flatten a normalised patient document (see
``oncosafe.schemas.patient``) into the ``patient_profiles`` columns.
"""

from typing import Any

from oncosafe.projections.registry import FieldExtractor, ProjectionConfig


def _unique(values: list[str]) -> list[str]:
    """Drop empties and duplicates, keeping first-seen order."""
    seen: dict[str, None] = {}
    for value in values:
        if value and value not in seen:
            seen[value] = None
    return list(seen)


def _entries(document: dict, key: str) -> list[dict]:
    return [item for item in document.get(key) or [] if isinstance(item, dict)]


def extract_current_medications(document: dict) -> list[str]:
    """RxNorm codes of current medications, falling back to the name."""
    return _unique([m.get("rxcui") or m.get("name") for m in _entries(document, "medications")])


def extract_allergies(document: dict) -> list[str]:
    return _unique([a.get("name") for a in _entries(document, "allergies")])


def extract_comorbidities(document: dict) -> list[str]:
    """Condition codes, falling back to the condition name."""
    return _unique([c.get("code") or c.get("name") for c in _entries(document, "conditions")])


def extract_genetic_profile(document: dict) -> dict[str, Any] | None:
    """Genetic results keyed by gene symbol; the last result for a gene wins."""
    profile: dict[str, Any] = {}
    for result in _entries(document, "genetics"):
        gene = result.get("gene")
        if not gene:
            continue
        profile[gene] = {k: v for k, v in result.items() if k != "gene"}
    return profile or None


PATIENT_PROFILE_PROJECTION = ProjectionConfig(
    name="PatientProfile",
    table_name="patient_profiles",
    extractors=[
        FieldExtractor("current_medications", extract_current_medications),
        FieldExtractor("allergies", extract_allergies),
        FieldExtractor("comorbidities", extract_comorbidities),
        FieldExtractor("genetic_profile", extract_genetic_profile),
    ],
)


def project_patient_profile(patient_id: str, document: dict) -> dict[str, Any]:
    """Build the ``patient_profiles`` row for a patient document."""
    row = PATIENT_PROFILE_PROJECTION.extract(document)
    row["patient_id"] = patient_id
    return row
