"""Block navigation and conditional branching.

All functions are pure: they take the form definition, a NavigationState
and the answers collected so far, and return new values. Persisting the
result between respondent requests is the caller's job.

Two behaviours are intentional:

- Jump resolution honours only the FIRST select/radio question in the block
  (in form order) whose answer has a matching rule. Later rule-bearing
  questions in the same block are ignored.
- retreat() always steps to the previous block in sequence. It does not undo
  a jump: after jumping A -> C, going back lands on the block before C.
"""

from dataclasses import replace
from typing import Any

from app.services.form_engine.exceptions import NavigationError, PreconditionFailedError
from app.services.form_engine.models import (
    MULTI_SELECT_TYPES,
    SINGLE_SELECT_TYPES,
    FlowComplete,
    FormDefinition,
    NavigationState,
    Question,
    QuestionType,
)

Answers = dict[str, Any]


def is_answered(question: Question, value: Any) -> bool:
    """Whether a stored answer counts as non-empty for this question."""
    if question.type in MULTI_SELECT_TYPES:
        return isinstance(value, list) and len(value) > 0
    return value is not None and value != ""


def questions_for_state(form: FormDefinition, state: NavigationState) -> list[Question]:
    if not 0 <= state.block_index < len(form.blocks):
        raise NavigationError(state.block_index, len(form.blocks))
    block_id = form.blocks[state.block_index].id
    return [q for q in form.questions if q.block_id == block_id]


def unanswered_required(questions: list[Question], answers: Answers) -> list[str]:
    return [q.id for q in questions if q.required and not is_answered(q, answers.get(q.id))]


def can_advance(questions: list[Question], answers: Answers) -> bool:
    return not unanswered_required(questions, answers)


def _resolve_jump(form: FormDefinition, questions: list[Question], answers: Answers) -> int | None:
    for question in questions:
        if question.type not in SINGLE_SELECT_TYPES:
            continue
        value = answers.get(question.id)
        if not is_answered(question, value):
            continue
        rule = question.rule_for(value)
        if rule is None:
            continue
        # First match decides, even if its target cannot be resolved
        return form.block_index(rule.target_block_id)
    return None


def advance(
    form: FormDefinition,
    state: NavigationState,
    answers: Answers,
) -> NavigationState | FlowComplete:
    """Move past the current block.

    Raises PreconditionFailedError if a required question in the current
    block is unanswered. Returns FlowComplete once the next block would be
    past the end of the form.
    """
    questions = questions_for_state(form, state)
    missing = unanswered_required(questions, answers)
    if missing:
        raise PreconditionFailedError(missing)

    target = _resolve_jump(form, questions, answers)
    next_index = state.block_index + 1 if target is None else target

    if next_index >= len(form.blocks):
        return FlowComplete(from_block_index=state.block_index)

    question_index = None if state.question_index is None else 0
    return NavigationState(block_index=next_index, question_index=question_index)


def retreat(state: NavigationState) -> NavigationState:
    if state.block_index <= 0:
        return state
    question_index = None if state.question_index is None else 0
    return replace(state, block_index=state.block_index - 1, question_index=question_index)


def _coerce_type(question_type: QuestionType | str | None) -> QuestionType | None:
    if question_type is None or isinstance(question_type, QuestionType):
        return question_type
    try:
        return QuestionType(question_type)
    except ValueError:
        return None


def apply_answer(
    answers: Answers,
    question_id: str,
    value: Any,
    question_type: QuestionType | str | None,
) -> Answers:
    """Return a new answer mapping with value recorded for question_id.

    Checkbox answers toggle value in the stored list; every other type
    overwrites. question_id is not checked against the form.
    """
    updated = dict(answers)
    if _coerce_type(question_type) in MULTI_SELECT_TYPES:
        current = updated.get(question_id)
        selected = list(current) if isinstance(current, list) else []
        if value in selected:
            selected.remove(value)
        else:
            selected.append(value)
        updated[question_id] = selected
    else:
        updated[question_id] = value
    return updated
