"""Versioned patient document schema.

The patient payload is semi-structured clinical data. Known sections
(demographics, medications, allergies, conditions, genetics) are typed;
anything else rides along as extra keys so newer front-end fields are not
lost. Malformed known sections fail validation before anything is written.
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

PATIENT_SCHEMA_VERSION = 1


class Demographics(BaseModel):
    model_config = ConfigDict(extra="allow")

    first_name: str | None = Field(default=None, validation_alias=AliasChoices("first_name", "firstName"))
    last_name: str | None = Field(default=None, validation_alias=AliasChoices("last_name", "lastName"))
    mrn: str | None = None
    date_of_birth: str | None = Field(default=None, validation_alias=AliasChoices("date_of_birth", "dateOfBirth", "dob"))
    sex: str | None = None


class Medication(BaseModel):
    """A current medication. Needs at least a name or an RxNorm code."""

    model_config = ConfigDict(extra="allow")

    name: str | None = None
    rxcui: str | None = None
    dose: str | None = None
    frequency: str | None = None
    route: str | None = None

    @model_validator(mode="after")
    def _require_identifier(self) -> "Medication":
        if not self.name and not self.rxcui:
            raise ValueError("medication needs a name or rxcui")
        return self


class Allergy(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = Field(validation_alias=AliasChoices("name", "allergen", "substance"))
    reaction: str | None = None
    severity: str | None = None


class Condition(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str | None = None
    code: str | None = Field(default=None, validation_alias=AliasChoices("code", "icd10", "icd10_code"))

    @model_validator(mode="after")
    def _require_identifier(self) -> "Condition":
        if not self.name and not self.code:
            raise ValueError("condition needs a name or code")
        return self


class GeneticResult(BaseModel):
    """A pharmacogenomic test result (e.g. CYP2D6 *4/*4, poor metabolizer)."""

    model_config = ConfigDict(extra="allow")

    gene: str = Field(validation_alias=AliasChoices("gene", "gene_symbol", "symbol"))
    variant: str | None = Field(default=None, validation_alias=AliasChoices("variant", "genotype", "diplotype"))
    phenotype: str | None = None


class PatientDocument(BaseModel):
    """Patient payload stored in ``patients.data``.

    Bare strings in ``medications``, ``allergies`` and ``conditions`` are
    read as names. ``genetics`` may also be given as a mapping of gene
    symbol to result.
    """

    model_config = ConfigDict(extra="allow")

    schema_version: int = PATIENT_SCHEMA_VERSION
    id: str | None = None
    demographics: Demographics | None = None
    medications: list[Medication] = Field(default_factory=list)
    allergies: list[Allergy] = Field(default_factory=list)
    conditions: list[Condition] = Field(default_factory=list)
    genetics: list[GeneticResult] = Field(default_factory=list)

    @field_validator("schema_version")
    @classmethod
    def _known_version(cls, value: int) -> int:
        if value < 1 or value > PATIENT_SCHEMA_VERSION:
            raise ValueError(f"unsupported patient schema_version {value}")
        return value

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return str(value)

    @field_validator("medications", "allergies", "conditions", mode="before")
    @classmethod
    def _wrap_bare_names(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [{"name": item} if isinstance(item, str) else item for item in value]
        return value

    @field_validator("genetics", mode="before")
    @classmethod
    def _genetics_from_mapping(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, dict):
            results = []
            for gene, result in value.items():
                if isinstance(result, dict):
                    results.append({"gene": gene, **result})
                else:
                    results.append({"gene": gene, "phenotype": result})
            return results
        return value

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict for storage."""
        return self.model_dump(mode="json", exclude_none=True)
