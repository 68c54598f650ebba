"""Form definition and navigation value types."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from app.services.form_engine.exceptions import InvalidFormError


class QuestionType(str, Enum):
    TEXT = "text"
    EMAIL = "email"
    PHONE = "phone"
    TEXTAREA = "textarea"
    SELECT = "select"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    DATE = "date"
    NUMBER = "number"
    URL = "url"
    RATING = "rating"
    FILE = "file"


class RuleAction(str, Enum):
    SHOW = "show"
    HIDE = "hide"
    JUMP = "jump"


# Only single-select answers take part in conditional jumps
SINGLE_SELECT_TYPES = frozenset({QuestionType.SELECT, QuestionType.RADIO})
MULTI_SELECT_TYPES = frozenset({QuestionType.CHECKBOX})
# Types that need at least two options before the form can be published
CHOICE_TYPES = frozenset({QuestionType.SELECT, QuestionType.RADIO, QuestionType.CHECKBOX})


class _DefinitionModel(BaseModel):
    """Immutable definition part; accepts the builder's camelCase keys too."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class ConditionalRule(_DefinitionModel):
    option: str
    target_block_id: str = Field(..., min_length=1)
    action: RuleAction = RuleAction.JUMP


class Block(_DefinitionModel):
    id: str = Field(..., min_length=1)
    title: str = ""


class Question(_DefinitionModel):
    id: str = Field(..., min_length=1)
    block_id: str
    type: QuestionType
    label: str = ""
    help_text: str | None = None
    required: bool = False
    options: tuple[str, ...] = ()
    conditional_logic: tuple[ConditionalRule, ...] = ()

    @field_validator("options", "conditional_logic", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return () if value is None else value

    def rule_for(self, value: Any) -> ConditionalRule | None:
        """First rule bound to exactly this answer value."""
        for rule in self.conditional_logic:
            if rule.option == value:
                return rule
        return None


class Media(_DefinitionModel):
    type: Literal["image", "video", "embed", ""] = ""
    url: str = ""
    primary_text: str | None = None
    secondary_text: str | None = None
    description: str | None = None
    link: str | None = None


class FormDefinition(_DefinitionModel):
    id: str
    title: str
    description: str | None = None
    blocks: tuple[Block, ...] = ()
    questions: tuple[Question, ...] = ()
    media: Media | None = None

    def block_index(self, block_id: str) -> int | None:
        for i, block in enumerate(self.blocks):
            if block.id == block_id:
                return i
        return None

    def question(self, question_id: str) -> Question | None:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None


@dataclass(frozen=True)
class NavigationState:
    """Respondent position. question_index is only set for per-question paging."""

    block_index: int = 0
    question_index: int | None = None


@dataclass(frozen=True)
class FlowComplete:
    """Returned by advance() when the respondent has moved past the last block."""

    from_block_index: int


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def structural_errors(form: FormDefinition) -> list[str]:
    """Problems that make a definition impossible to navigate."""
    errors: list[str] = []
    if not form.blocks:
        errors.append("Form has no blocks")
    if not form.questions:
        errors.append("Form has no questions")

    block_ids: set[str] = set()
    for block in form.blocks:
        if block.id in block_ids:
            errors.append(f"Duplicate block id '{block.id}'")
        block_ids.add(block.id)

    question_ids: set[str] = set()
    for question in form.questions:
        if question.id in question_ids:
            errors.append(f"Duplicate question id '{question.id}'")
        question_ids.add(question.id)

        if question.block_id not in block_ids:
            errors.append(f"Question '{question.id}' references unknown block '{question.block_id}'")
            continue

        for rule in question.conditional_logic:
            if rule.target_block_id not in block_ids:
                errors.append(
                    f"Question '{question.id}': rule for '{rule.option}' targets unknown block '{rule.target_block_id}'"
                )
            elif rule.target_block_id == question.block_id:
                errors.append(f"Question '{question.id}': rule for '{rule.option}' targets its own block")
    return errors


def publish_errors(form: FormDefinition) -> list[str]:
    """Authoring checks that only apply when a form goes live."""
    errors: list[str] = []
    for question in form.questions:
        if question.type in CHOICE_TYPES and len(question.options) < 2:
            errors.append(f"Question '{question.id}': {question.type.value} requires at least 2 options")
    return errors


def load_form(data: FormDefinition | dict[str, Any]) -> FormDefinition:
    """Parse and validate a definition, raising InvalidFormError on any problem."""
    if isinstance(data, FormDefinition):
        form = data
    else:
        try:
            form = FormDefinition.model_validate(data)
        except ValidationError as exc:
            problems = [
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
            ]
            raise InvalidFormError(problems) from exc

    errors = structural_errors(form)
    if errors:
        raise InvalidFormError(errors)
    return form
