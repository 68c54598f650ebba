"""Form engine - block navigation, conditional jumps and submission finalization."""

from app.services.form_engine.exceptions import (
    FormEngineError,
    InvalidFormError,
    NavigationError,
    PreconditionFailedError,
)
from app.services.form_engine.finalizer import (
    ContactInfo,
    FinalizedSubmission,
    calculate_lead_score,
    extract_contact_info,
    finalize,
)
from app.services.form_engine.models import (
    Block,
    ConditionalRule,
    FlowComplete,
    FormDefinition,
    Media,
    NavigationState,
    Question,
    QuestionType,
    RuleAction,
    load_form,
    publish_errors,
    structural_errors,
)
from app.services.form_engine.navigation import (
    advance,
    apply_answer,
    can_advance,
    is_answered,
    questions_for_state,
    retreat,
    unanswered_required,
)

__all__ = [
    "Block",
    "ConditionalRule",
    "ContactInfo",
    "FinalizedSubmission",
    "FlowComplete",
    "FormDefinition",
    "FormEngineError",
    "InvalidFormError",
    "Media",
    "NavigationError",
    "NavigationState",
    "PreconditionFailedError",
    "Question",
    "QuestionType",
    "RuleAction",
    "advance",
    "apply_answer",
    "calculate_lead_score",
    "can_advance",
    "extract_contact_info",
    "finalize",
    "is_answered",
    "load_form",
    "publish_errors",
    "questions_for_state",
    "retreat",
    "structural_errors",
    "unanswered_required",
]
