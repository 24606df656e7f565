"""Mode-independent storage interface.

Application code depends on ``StorageService`` only. Which implementation
backs it (relational or in-memory) is decided once at bootstrap by
``oncosafe.storage.factory.create_storage``.

Return conventions shared by every implementation:

- Records are plain dicts; ids are strings.
- Read-style lookups return ``[]`` or ``None`` when nothing is found *or*
  when the backend is unavailable.
- Feedback and sync-log operations return ``None`` when persistence is
  unavailable; callers must not read that as "not found".
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from oncosafe.schemas.patient import PatientDocument
from oncosafe.storage.resolver import StorageMode

logger = logging.getLogger(__name__)


@dataclass
class DeleteResult:
    """Outcome of a user deletion. Not-found is reported, not raised."""

    success: bool
    user: dict[str, Any] | None = None
    error: str | None = None

    @classmethod
    def not_found(cls) -> DeleteResult:
        return cls(success=False, error="not found")


def is_valid_uuid(value: Any) -> bool:
    if isinstance(value, uuid.UUID):
        return True
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def normalize_patient(patient: Mapping[str, Any] | PatientDocument) -> tuple[str, dict[str, Any]]:
    """Validate a patient document and pin its id to a valid UUID.

    A missing or non-UUID ``id`` is replaced with a fresh UUID, and the
    payload's ``id`` is rewritten so the row id and the embedded id never
    disagree.

    Returns:
        Tuple of (patient_id, payload).

    Raises:
        pydantic.ValidationError: If the document is malformed.
    """
    document = patient if isinstance(patient, PatientDocument) else PatientDocument.model_validate(patient)
    payload = document.to_payload()

    patient_id = payload.get("id")
    if not is_valid_uuid(patient_id):
        replacement = str(uuid.uuid4())
        if patient_id is not None:
            logger.warning("Patient id %r is not a UUID; using %s", patient_id, replacement)
        patient_id = replacement
    else:
        patient_id = str(uuid.UUID(str(patient_id)))

    payload["id"] = patient_id
    return patient_id, payload


class StorageService(ABC):
    """Persistence operations used by the application."""

    mode: StorageMode

    # === Users ===

    @abstractmethod
    async def create_user(self, user: Mapping[str, Any]) -> dict[str, Any]:
        """Register a user.

        A ``password`` key, if present, is hashed into ``password_hash``.

        Raises:
            StorageWriteError: If the user could not be stored (including a
                duplicate email).
        """

    @abstractmethod
    async def get_user_by_email(self, email: str) -> dict[str, Any] | None:
        """Exact, case-sensitive email lookup with the role override applied."""

    @abstractmethod
    async def get_user_by_id(self, user_id: str) -> dict[str, Any] | None: ...

    @abstractmethod
    async def get_all_users(self) -> list[dict[str, Any]]:
        """All users, newest first."""

    @abstractmethod
    async def update_user(self, user_id: str, changes: Mapping[str, Any]) -> dict[str, Any] | None:
        """Apply profile or role changes. Returns ``None`` for an unknown user.

        Raises:
            StorageWriteError: If the backend rejected the update.
        """

    @abstractmethod
    async def soft_delete_user(self, user_id: str, actor_id: str | None = None) -> DeleteResult:
        """Deactivate a user, keeping the row and its email reserved."""

    @abstractmethod
    async def hard_delete_user(self, user_id: str, actor_id: str | None = None) -> DeleteResult:
        """Purge a user and everything it owns so the email can register again.

        Raises:
            StorageWriteError: If the user row or identity record could not
                be removed.
        """

    # === Patients ===

    @abstractmethod
    async def list_patients_by_user(self, user_id: str) -> list[dict[str, Any]]:
        """Patients owned by a user, most recently updated first."""

    @abstractmethod
    async def upsert_patient(
        self, user_id: str, patient: Mapping[str, Any] | PatientDocument
    ) -> dict[str, Any]:
        """Create or update a patient; see ``normalize_patient`` for id rules.

        Raises:
            pydantic.ValidationError: If the document is malformed.
            StorageWriteError: If the write failed.
        """

    @abstractmethod
    async def delete_patient(self, user_id: str, patient_id: str) -> bool:
        """True if a patient was removed."""

    # === Drug reference ===

    @abstractmethod
    async def search_drugs(self, term: str, limit: int = 50) -> list[dict[str, Any]]: ...

    @abstractmethod
    async def get_drug_by_rxcui(self, rxcui: str) -> dict[str, Any] | None: ...

    @abstractmethod
    async def upsert_drug(self, drug: Mapping[str, Any]) -> dict[str, Any]: ...

    # === Interactions ===

    @abstractmethod
    async def get_drug_interactions(self, rxcui: str) -> list[dict[str, Any]]:
        """Interactions where the drug appears on either side."""

    @abstractmethod
    async def check_multiple_interactions(self, rxcuis: Sequence[str]) -> list[dict[str, Any]]:
        """Pairwise interactions among the given drugs."""

    @abstractmethod
    async def insert_drug_interaction(self, interaction: Mapping[str, Any]) -> dict[str, Any]: ...

    # === Pharmacogenomics ===

    @abstractmethod
    async def upsert_gene(self, gene: Mapping[str, Any]) -> dict[str, Any]: ...

    @abstractmethod
    async def insert_gene_drug_interaction(self, interaction: Mapping[str, Any]) -> dict[str, Any]: ...

    @abstractmethod
    async def get_gene_drug_interactions(
        self, gene_symbol: str, drug_rxcui: str | None = None
    ) -> list[dict[str, Any]]: ...

    @abstractmethod
    async def upsert_cpic_guideline(self, guideline: Mapping[str, Any]) -> dict[str, Any]: ...

    @abstractmethod
    async def get_cpic_guidelines(self) -> list[dict[str, Any]]: ...

    # === Protocols and trials ===

    @abstractmethod
    async def get_oncology_protocols(self, cancer_type: str | None = None) -> list[dict[str, Any]]: ...

    @abstractmethod
    async def get_clinical_trials(
        self, condition: str, drugs: Sequence[str] | None = None
    ) -> list[dict[str, Any]]: ...

    # === Feedback ===

    @abstractmethod
    async def insert_feedback(self, feedback: Mapping[str, Any]) -> dict[str, Any] | None: ...

    @abstractmethod
    async def list_feedback(
        self,
        page: int = 1,
        limit: int = 20,
        status: str | None = None,
        priority: str | None = None,
        type: str | None = None,
    ) -> dict[str, Any] | None:
        """One page of feedback as ``{"items", "total", "page", "limit"}``."""

    @abstractmethod
    async def list_all_feedback(self) -> list[dict[str, Any]]: ...

    @abstractmethod
    async def update_feedback_status(
        self,
        feedback_id: str,
        status: str,
        assignee: str | None = None,
        sprint_target: str | None = None,
    ) -> dict[str, Any] | None:
        """Change triage fields only; the submitted content is untouched."""

    # === Sync log ===

    @abstractmethod
    async def log_sync_activity(self, entry: Mapping[str, Any]) -> dict[str, Any] | None:
        """Write the start-of-run entry."""

    @abstractmethod
    async def update_sync_status(self, log_id: str, changes: Mapping[str, Any]) -> dict[str, Any] | None:
        """Record completion status, counts and errors for a run."""
