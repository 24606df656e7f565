"""Tests for the patient profile projection."""

from oncosafe.projections import PATIENT_PROFILE_PROJECTION, project_patient_profile
from oncosafe.projections.patient_profile import (
    extract_allergies,
    extract_comorbidities,
    extract_current_medications,
    extract_genetic_profile,
)
from oncosafe.schemas.patient import PatientDocument


def _payload(document: dict) -> dict:
    return PatientDocument.model_validate(document).to_payload()


def test_medications_prefer_rxcui_and_deduplicate():
    document = _payload(
        {"medications": [{"name": "tamoxifen", "rxcui": "10324"}, "ondansetron", {"rxcui": "10324"}]}
    )
    assert extract_current_medications(document) == ["10324", "ondansetron"]


def test_allergies_and_comorbidities():
    document = _payload(
        {
            "allergies": ["penicillin", "penicillin", "sulfa"],
            "conditions": [{"name": "breast cancer", "code": "C50.911"}, "hypertension"],
        }
    )
    assert extract_allergies(document) == ["penicillin", "sulfa"]
    assert extract_comorbidities(document) == ["C50.911", "hypertension"]


def test_genetic_profile_keyed_by_gene():
    document = _payload({"genetics": [{"gene": "CYP2D6", "phenotype": "poor metabolizer", "variant": "*4/*4"}]})
    assert extract_genetic_profile(document) == {"CYP2D6": {"phenotype": "poor metabolizer", "variant": "*4/*4"}}


def test_empty_document():
    row = project_patient_profile("p1", {})
    assert row == {
        "patient_id": "p1",
        "current_medications": [],
        "allergies": [],
        "comorbidities": [],
        "genetic_profile": None,
    }


def test_projection_covers_profile_columns():
    columns = {e.target_column for e in PATIENT_PROFILE_PROJECTION.extractors}
    assert columns == {"current_medications", "allergies", "comorbidities", "genetic_profile"}
    assert PATIENT_PROFILE_PROJECTION.table_name == "patient_profiles"


def test_extractors_ignore_malformed_entries():
    assert extract_current_medications({"medications": ["not-a-dict", None]}) == []
    assert extract_genetic_profile({"genetics": [{"phenotype": "no gene"}]}) is None
