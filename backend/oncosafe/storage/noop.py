"""In-memory store used when no database is configured.

Users and patients live in process-local dicts so local development behaves
like production for the flows that matter (registration, patient editing).
Reference data, feedback and sync logs have no backing store here: lookups
come back empty, reference writes echo their input, and feedback/sync
operations return ``None``.

The maps are not guarded against concurrent mutation; this store is meant
for a single local process.
"""

from __future__ import annotations

import copy
import logging
import uuid
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from oncosafe.schemas.patient import PatientDocument
from oncosafe.security import hash_password
from oncosafe.storage.base import DeleteResult, StorageService, is_valid_uuid, normalize_patient
from oncosafe.storage.errors import StorageWriteError
from oncosafe.storage.policies import NoRoleOverride, RoleOverridePolicy
from oncosafe.storage.resolver import StorageMode

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class NoOpStore(StorageService):
    """Storage service backed by plain dictionaries."""

    mode = StorageMode.NOOP

    def __init__(self, role_override: RoleOverridePolicy | None = None):
        self._role_override = role_override or NoRoleOverride()
        self._users: dict[str, dict[str, Any]] = {}
        # user_id -> patient_id -> record
        self._patients: dict[str, dict[str, dict[str, Any]]] = {}

    def _present(self, user: dict[str, Any] | None) -> dict[str, Any] | None:
        if user is None:
            return None
        return self._role_override.apply(copy.deepcopy(user))

    def _email_taken(self, email: Any, exclude_id: str | None = None) -> bool:
        return any(
            existing["email"] == email
            for existing_id, existing in self._users.items()
            if existing_id != exclude_id
        )

    # === Users ===

    async def create_user(self, user: Mapping[str, Any]) -> dict[str, Any]:
        record = dict(user)
        email = record.get("email")
        if self._email_taken(email):
            raise StorageWriteError(f"User with email {email} already exists")

        requested_id = record.get("id")
        record["id"] = str(uuid.UUID(str(requested_id))) if is_valid_uuid(requested_id) else str(uuid.uuid4())
        if record["id"] in self._users:
            raise StorageWriteError(f"User with id {record['id']} already exists")

        password = record.pop("password", None)
        if password:
            record["password_hash"] = hash_password(password)

        now = _now()
        record.setdefault("role", "user")
        record.setdefault("is_active", True)
        record.setdefault("deleted_at", None)
        record["created_at"] = now
        record["updated_at"] = now

        self._users[record["id"]] = copy.deepcopy(record)
        return copy.deepcopy(record)

    async def get_user_by_email(self, email: str) -> dict[str, Any] | None:
        for user in self._users.values():
            if user.get("email") == email:
                return self._present(user)
        return None

    async def get_user_by_id(self, user_id: str) -> dict[str, Any] | None:
        return self._present(self._users.get(user_id))

    async def get_all_users(self) -> list[dict[str, Any]]:
        users = sorted(self._users.values(), key=lambda u: u["created_at"], reverse=True)
        return [self._present(u) for u in users]

    async def update_user(self, user_id: str, changes: Mapping[str, Any]) -> dict[str, Any] | None:
        user = self._users.get(user_id)
        if user is None:
            return None
        updates = {k: v for k, v in changes.items() if k not in ("id", "created_at")}
        if "email" in updates and self._email_taken(updates["email"], exclude_id=user_id):
            raise StorageWriteError(f"User with email {updates['email']} already exists")
        password = updates.pop("password", None)
        if password:
            updates["password_hash"] = hash_password(password)
        user.update(copy.deepcopy(updates))
        user["updated_at"] = _now()
        return self._present(user)

    async def soft_delete_user(self, user_id: str, actor_id: str | None = None) -> DeleteResult:
        user = self._users.get(user_id)
        if user is None:
            return DeleteResult.not_found()
        now = _now()
        user["is_active"] = False
        user["deleted_at"] = now
        user["updated_at"] = now
        return DeleteResult(success=True, user=self._present(user))

    async def hard_delete_user(self, user_id: str, actor_id: str | None = None) -> DeleteResult:
        user = self._users.pop(user_id, None)
        if user is None:
            return DeleteResult.not_found()
        removed = self._patients.pop(user_id, {})
        logger.info("Hard-deleted in-memory user %s and %d patients", user_id, len(removed))
        return DeleteResult(success=True, user=self._present(user))

    # === Patients ===

    async def list_patients_by_user(self, user_id: str) -> list[dict[str, Any]]:
        records = sorted(
            self._patients.get(user_id, {}).values(),
            key=lambda p: p["updated_at"],
            reverse=True,
        )
        return copy.deepcopy(records)

    async def upsert_patient(
        self, user_id: str, patient: Mapping[str, Any] | PatientDocument
    ) -> dict[str, Any]:
        patient_id, payload = normalize_patient(patient)
        owned = self._patients.setdefault(user_id, {})

        now = _now()
        existing = owned.get(patient_id)
        record = {
            "id": patient_id,
            "user_id": user_id,
            "data": payload,
            "created_at": existing["created_at"] if existing else now,
            "updated_at": now,
        }
        owned[patient_id] = record
        return copy.deepcopy(record)

    async def delete_patient(self, user_id: str, patient_id: str) -> bool:
        return self._patients.get(user_id, {}).pop(patient_id, None) is not None

    # === Drug reference ===

    async def search_drugs(self, term: str, limit: int = 50) -> list[dict[str, Any]]:
        return []

    async def get_drug_by_rxcui(self, rxcui: str) -> dict[str, Any] | None:
        return None

    async def upsert_drug(self, drug: Mapping[str, Any]) -> dict[str, Any]:
        return dict(drug)

    # === Interactions ===

    async def get_drug_interactions(self, rxcui: str) -> list[dict[str, Any]]:
        return []

    async def check_multiple_interactions(self, rxcuis: Sequence[str]) -> list[dict[str, Any]]:
        return []

    async def insert_drug_interaction(self, interaction: Mapping[str, Any]) -> dict[str, Any]:
        return dict(interaction)

    # === Pharmacogenomics ===

    async def upsert_gene(self, gene: Mapping[str, Any]) -> dict[str, Any]:
        return dict(gene)

    async def insert_gene_drug_interaction(self, interaction: Mapping[str, Any]) -> dict[str, Any]:
        return dict(interaction)

    async def get_gene_drug_interactions(
        self, gene_symbol: str, drug_rxcui: str | None = None
    ) -> list[dict[str, Any]]:
        return []

    async def upsert_cpic_guideline(self, guideline: Mapping[str, Any]) -> dict[str, Any]:
        return dict(guideline)

    async def get_cpic_guidelines(self) -> list[dict[str, Any]]:
        return []

    # === Protocols and trials ===

    async def get_oncology_protocols(self, cancer_type: str | None = None) -> list[dict[str, Any]]:
        return []

    async def get_clinical_trials(
        self, condition: str, drugs: Sequence[str] | None = None
    ) -> list[dict[str, Any]]:
        return []

    # === Feedback ===

    async def insert_feedback(self, feedback: Mapping[str, Any]) -> dict[str, Any] | None:
        return None

    async def list_feedback(
        self,
        page: int = 1,
        limit: int = 20,
        status: str | None = None,
        priority: str | None = None,
        type: str | None = None,
    ) -> dict[str, Any] | None:
        return None

    async def list_all_feedback(self) -> list[dict[str, Any]]:
        return []

    async def update_feedback_status(
        self,
        feedback_id: str,
        status: str,
        assignee: str | None = None,
        sprint_target: str | None = None,
    ) -> dict[str, Any] | None:
        return None

    # === Sync log ===

    async def log_sync_activity(self, entry: Mapping[str, Any]) -> dict[str, Any] | None:
        return None

    async def update_sync_status(self, log_id: str, changes: Mapping[str, Any]) -> dict[str, Any] | None:
        return None
