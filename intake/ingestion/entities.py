"""Entity type registry and submission validation.

Each entity type names its table, its natural key (if any) and the pydantic
model its submissions are validated against. Input is accepted in either
wire form (camelCase) or snake_case.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from intake.domain.models import Record

from .exceptions import RecordValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class SubmissionModel(BaseModel):
    """Base for submission models: trims strings, accepts camelCase or snake_case."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    @field_validator("email", check_fields=False)
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Check the address shape (something@something.tld, no whitespace)."""
        if not EMAIL_PATTERN.match(v):
            raise ValueError("must be a valid email address")
        return v


def _as_text(v: Any) -> Any:
    """Coerce booleans and numbers to the text form the tables store."""
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, (int, float)):
        return str(v)
    return v


class SubscriptionInput(SubmissionModel):
    email: str = Field(..., min_length=1)


class DealLeadInput(SubmissionModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    phone: Optional[str] = None
    investment_amount: str = Field(..., min_length=1)
    experience_level: str = Field(..., min_length=1)


class ContactInput(SubmissionModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    phone: Optional[str] = None
    investment_amount: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    interest: Optional[str] = None


class AchievementInput(SubmissionModel):
    user_id: str = Field(..., min_length=1)
    badge_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)


class LearningProgressInput(SubmissionModel):
    user_id: str = Field(..., min_length=1)
    module_id: str = Field(..., min_length=1)
    completed: str = "false"
    score: Optional[str] = None
    time_spent: Optional[str] = None

    @field_validator("completed", "score", "time_spent", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        return _as_text(v)

    @field_validator("completed", mode="before")
    @classmethod
    def default_completed(cls, v: Any) -> Any:
        # Falsy submissions ("", None) mean "not completed"
        return v or "false"

    @field_validator("score", "time_spent")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class QuizResultInput(SubmissionModel):
    user_id: str = Field(..., min_length=1)
    quiz_id: str = Field(..., min_length=1)
    score: str = Field(..., min_length=1)
    total_questions: str = Field(..., min_length=1)
    answers: str

    @field_validator("score", "total_questions", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        return _as_text(v)

    @field_validator("answers", mode="before")
    @classmethod
    def serialize_answers(cls, v: Any) -> Any:
        """Answers are stored as JSON text."""
        if v is None or isinstance(v, str):
            return v
        return json.dumps(v)


class InflationCalculationInput(SubmissionModel):
    initial_amount: float = Field(..., gt=0)
    years: int = Field(..., ge=0)
    inflation_rate: float
    final_amount: float


@dataclass(frozen=True)
class EntityDefinition:
    """Static description of one entity type."""

    name: str
    table: str
    input_model: Type[SubmissionModel]
    key_fields: Tuple[str, ...] = ()
    touch_field: Optional[str] = None

    def validate(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        """Validate a submission and return the column values to store.

        Raises:
            RecordValidationError: With one entry per offending field
        """
        try:
            model = self.input_model.model_validate(dict(values))
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field_path = ".".join(str(loc) for loc in error["loc"])
                errors.append(f"{field_path}: {error['msg']}")
            raise RecordValidationError(f"Invalid {self.name} submission", errors=errors) from e
        return model.model_dump()

    def key_from(self, natural_key: Any) -> Dict[str, Any]:
        """Normalise a natural key given as a mapping, a tuple or a bare value.

        Raises:
            RecordValidationError: If the entity has no key or the shape is wrong
        """
        if not self.key_fields:
            raise RecordValidationError(f"{self.name} records have no natural key")

        if isinstance(natural_key, Mapping):
            key = {}
            for field in self.key_fields:
                camel = to_camel(field)
                if field in natural_key:
                    key[field] = natural_key[field]
                elif camel in natural_key:
                    key[field] = natural_key[camel]
            return key

        if isinstance(natural_key, (tuple, list)):
            if len(natural_key) != len(self.key_fields):
                raise RecordValidationError(
                    f"{self.name} key needs {len(self.key_fields)} parts "
                    f"({', '.join(self.key_fields)}), got {len(natural_key)}"
                )
            return dict(zip(self.key_fields, natural_key))

        if len(self.key_fields) == 1:
            return {self.key_fields[0]: natural_key}

        raise RecordValidationError(
            f"{self.name} key must provide {', '.join(self.key_fields)}"
        )

    def merge(self, key: Mapping[str, Any], payload: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """Combine key and payload; key fields override either spelling in the payload."""
        shadowed = set(key) | {to_camel(field) for field in key}
        values = {k: v for k, v in (payload or {}).items() if k not in shadowed}
        values.update(key)
        return values

    def to_record(self, row: Mapping[str, Any]) -> Record:
        return Record.from_row(self.name, row)


ENTITY_TYPES: Dict[str, EntityDefinition] = {
    definition.name: definition
    for definition in (
        EntityDefinition("subscription", "newsletter_subscriptions", SubscriptionInput, ("email",)),
        EntityDefinition("deal_lead", "deal_sourcing_waitlist", DealLeadInput, ("email",)),
        EntityDefinition("achievement", "achievements", AchievementInput, ("user_id", "badge_id")),
        EntityDefinition(
            "learning_progress",
            "learning_progress",
            LearningProgressInput,
            ("user_id", "module_id"),
            touch_field="updated_at",
        ),
        EntityDefinition("contact", "contact_submissions", ContactInput),
        EntityDefinition("inflation_calculation", "inflation_calculations", InflationCalculationInput),
        EntityDefinition("quiz_result", "quiz_results", QuizResultInput),
    )
}


def get_entity(entity_type: str) -> EntityDefinition:
    """Look up an entity type.

    Raises:
        RecordValidationError: If the entity type is unknown
    """
    try:
        return ENTITY_TYPES[entity_type]
    except KeyError:
        raise RecordValidationError(
            f"Unknown entity type: {entity_type}",
            errors=[f"expected one of: {', '.join(sorted(ENTITY_TYPES))}"],
        ) from None


def entity_names() -> List[str]:
    return sorted(ENTITY_TYPES)
