"""Tests for the form navigation engine - validation, branching, answers."""

import pytest

from app.services.form_engine import (
    FlowComplete,
    InvalidFormError,
    NavigationError,
    NavigationState,
    PreconditionFailedError,
    QuestionType,
    advance,
    apply_answer,
    can_advance,
    is_answered,
    load_form,
    publish_errors,
    questions_for_state,
    retreat,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _linear_form(block_count=3):
    blocks = [{"id": f"b{i}", "title": f"Block {i}"} for i in range(block_count)]
    questions = [
        {"id": f"q{i}", "block_id": f"b{i}", "type": "text", "label": f"Q{i}", "required": False}
        for i in range(block_count)
    ]
    return load_form({"id": "linear", "title": "Linear", "blocks": blocks, "questions": questions})


def _branching_form(questions):
    return load_form(
        {
            "id": "branching",
            "title": "Branching",
            "blocks": [
                {"id": "A", "title": "A"},
                {"id": "B", "title": "B"},
                {"id": "C", "title": "C"},
                {"id": "D", "title": "D"},
            ],
            "questions": questions,
        }
    )


def _radio(qid, block_id, rules, options=("Yes", "No"), qtype="radio"):
    return {
        "id": qid,
        "block_id": block_id,
        "type": qtype,
        "label": qid,
        "required": False,
        "options": list(options),
        "conditional_logic": [
            {"option": option, "target_block_id": target, "action": "jump"} for option, target in rules
        ],
    }


# ---------------------------------------------------------------------------
# load_form validation
# ---------------------------------------------------------------------------


class TestLoadForm:
    def test_valid_form(self, property_form_data):
        form = load_form(property_form_data)
        assert [b.id for b in form.blocks] == ["A", "B", "C"]
        assert form.question("interest").type is QuestionType.RADIO
        assert form.block_index("C") == 2

    def test_accepts_builder_camel_case_keys(self):
        form = load_form(
            {
                "id": "f",
                "title": "Camel",
                "blocks": [{"id": "A", "title": "A"}, {"id": "B", "title": "B"}],
                "questions": [
                    {
                        "id": "q",
                        "blockId": "A",
                        "type": "select",
                        "helpText": "pick",
                        "required": True,
                        "options": ["x", "y"],
                        "conditionalLogic": [{"option": "y", "targetBlockId": "B", "action": "jump"}],
                    }
                ],
            }
        )
        question = form.question("q")
        assert question.block_id == "A"
        assert question.help_text == "pick"
        assert question.conditional_logic[0].target_block_id == "B"

    def test_null_options_and_logic_become_empty(self):
        form = load_form(
            {
                "id": "f",
                "title": "T",
                "blocks": [{"id": "A"}],
                "questions": [
                    {"id": "q", "block_id": "A", "type": "text", "options": None, "conditional_logic": None}
                ],
            }
        )
        assert form.question("q").options == ()
        assert form.question("q").conditional_logic == ()

    def test_no_blocks_rejected(self):
        with pytest.raises(InvalidFormError) as exc_info:
            load_form({"id": "f", "title": "T", "blocks": [], "questions": []})
        assert "Form has no blocks" in exc_info.value.problems
        assert "Form has no questions" in exc_info.value.problems

    def test_dangling_block_reference_rejected(self):
        with pytest.raises(InvalidFormError) as exc_info:
            load_form(
                {
                    "id": "f",
                    "title": "T",
                    "blocks": [{"id": "A"}],
                    "questions": [{"id": "q", "block_id": "missing", "type": "text"}],
                }
            )
        assert "unknown block 'missing'" in str(exc_info.value)

    def test_rule_targeting_unknown_block_rejected(self):
        with pytest.raises(InvalidFormError) as exc_info:
            _branching_form([_radio("q", "A", [("Yes", "Z")])])
        assert "targets unknown block 'Z'" in str(exc_info.value)

    def test_self_jump_rejected(self):
        with pytest.raises(InvalidFormError) as exc_info:
            _branching_form([_radio("q", "B", [("Yes", "B")])])
        assert "targets its own block" in str(exc_info.value)

    def test_duplicate_ids_rejected(self):
        with pytest.raises(InvalidFormError) as exc_info:
            load_form(
                {
                    "id": "f",
                    "title": "T",
                    "blocks": [{"id": "A"}, {"id": "A"}],
                    "questions": [
                        {"id": "q", "block_id": "A", "type": "text"},
                        {"id": "q", "block_id": "A", "type": "text"},
                    ],
                }
            )
        problems = exc_info.value.problems
        assert "Duplicate block id 'A'" in problems
        assert "Duplicate question id 'q'" in problems

    def test_unknown_question_type_rejected(self):
        with pytest.raises(InvalidFormError) as exc_info:
            load_form(
                {
                    "id": "f",
                    "title": "T",
                    "blocks": [{"id": "A"}],
                    "questions": [{"id": "q", "block_id": "A", "type": "slider"}],
                }
            )
        assert any("type" in p for p in exc_info.value.problems)

    def test_choice_question_needs_two_options_to_publish(self):
        form = load_form(
            {
                "id": "f",
                "title": "T",
                "blocks": [{"id": "A"}],
                "questions": [
                    {"id": "q1", "block_id": "A", "type": "select", "options": ["Only"]},
                    {"id": "q2", "block_id": "A", "type": "checkbox", "options": []},
                    {"id": "q3", "block_id": "A", "type": "radio", "options": ["a", "b"]},
                    {"id": "q4", "block_id": "A", "type": "text"},
                ],
            }
        )
        errors = publish_errors(form)
        assert len(errors) == 2
        assert "q1" in errors[0]
        assert "q2" in errors[1]


# ---------------------------------------------------------------------------
# questions_for_state / can_advance
# ---------------------------------------------------------------------------


class TestQuestionsForState:
    def test_returns_block_questions_in_form_order(self):
        form = _branching_form(
            [
                {"id": "q1", "block_id": "B", "type": "text"},
                {"id": "q2", "block_id": "A", "type": "text"},
                {"id": "q3", "block_id": "B", "type": "email"},
            ]
        )
        questions = questions_for_state(form, NavigationState(block_index=1))
        assert [q.id for q in questions] == ["q1", "q3"]

    def test_empty_block(self):
        form = _branching_form([{"id": "q1", "block_id": "A", "type": "text"}])
        assert questions_for_state(form, NavigationState(block_index=3)) == []

    @pytest.mark.parametrize("index", [-1, 4])
    def test_out_of_range_index_raises(self, index):
        form = _branching_form([{"id": "q1", "block_id": "A", "type": "text"}])
        with pytest.raises(NavigationError):
            questions_for_state(form, NavigationState(block_index=index))


class TestCanAdvance:
    def _questions(self):
        form = _branching_form(
            [
                {"id": "name", "block_id": "A", "type": "text", "required": True},
                {"id": "tags", "block_id": "A", "type": "checkbox", "required": True, "options": ["x", "y"]},
                {"id": "notes", "block_id": "A", "type": "textarea", "required": False},
            ]
        )
        return questions_for_state(form, NavigationState(block_index=0))

    def test_missing_required_blocks(self):
        assert can_advance(self._questions(), {}) is False

    def test_empty_string_blocks(self):
        assert can_advance(self._questions(), {"name": "", "tags": ["x"]}) is False

    def test_empty_checkbox_list_blocks(self):
        assert can_advance(self._questions(), {"name": "Jane", "tags": []}) is False

    def test_all_required_answered(self):
        assert can_advance(self._questions(), {"name": "Jane", "tags": ["x"]}) is True

    def test_optional_question_never_blocks(self):
        answers = {"name": "Jane", "tags": ["y"], "notes": ""}
        assert can_advance(self._questions(), answers) is True

    def test_zero_is_an_answer(self):
        form = _branching_form([{"id": "n", "block_id": "A", "type": "number", "required": True}])
        question = form.question("n")
        assert is_answered(question, 0) is True
        assert is_answered(question, None) is False

    def test_no_questions(self):
        assert can_advance([], {}) is True


# ---------------------------------------------------------------------------
# advance
# ---------------------------------------------------------------------------


class TestAdvanceLinear:
    def test_each_block_leads_to_the_next(self):
        form = _linear_form(4)
        state = NavigationState(block_index=0)
        visited = [state.block_index]
        while True:
            result = advance(form, state, {})
            if isinstance(result, FlowComplete):
                break
            state = result
            visited.append(state.block_index)
        assert visited == [0, 1, 2, 3]
        assert result == FlowComplete(from_block_index=3)

    def test_single_block_completes_immediately(self):
        form = _linear_form(1)
        assert isinstance(advance(form, NavigationState(), {}), FlowComplete)

    def test_question_pagination_resets_to_first_question(self):
        form = _linear_form(3)
        result = advance(form, NavigationState(block_index=0, question_index=2), {})
        assert result == NavigationState(block_index=1, question_index=0)

    def test_block_pagination_keeps_question_index_unset(self):
        form = _linear_form(3)
        result = advance(form, NavigationState(block_index=0), {})
        assert result.question_index is None

    def test_required_unanswered_raises(self):
        form = _branching_form([{"id": "email", "block_id": "A", "type": "email", "required": True}])
        with pytest.raises(PreconditionFailedError) as exc_info:
            advance(form, NavigationState(), {"email": ""})
        assert exc_info.value.missing_question_ids == ["email"]


class TestAdvanceConditional:
    def test_matching_answer_jumps(self, property_form_data):
        form = load_form(property_form_data)
        answers = apply_answer({}, "interest", "Rent", "radio")
        result = advance(form, NavigationState(block_index=0), answers)
        assert result == NavigationState(block_index=2)

    def test_non_matching_answer_goes_linear(self, property_form_data):
        form = load_form(property_form_data)
        answers = apply_answer({}, "interest", "Buy", "radio")
        result = advance(form, NavigationState(block_index=0), answers)
        assert result == NavigationState(block_index=1)

    def test_rule_question_position_in_block_does_not_matter(self):
        form = _branching_form(
            [
                {"id": "first", "block_id": "A", "type": "text"},
                {"id": "second", "block_id": "A", "type": "email"},
                _radio("choice", "A", [("Yes", "D")]),
            ]
        )
        result = advance(form, NavigationState(), {"first": "x", "choice": "Yes"})
        assert result == NavigationState(block_index=3)

    def test_first_matching_question_wins(self):
        form = _branching_form(
            [
                _radio("q1", "A", [("Yes", "C")]),
                _radio("q2", "A", [("Yes", "D")]),
            ]
        )
        result = advance(form, NavigationState(), {"q1": "Yes", "q2": "Yes"})
        assert result == NavigationState(block_index=2)

    def test_earlier_question_without_matching_rule_is_skipped(self):
        form = _branching_form(
            [
                _radio("q1", "A", [("Yes", "C")]),
                _radio("q2", "A", [("No", "D")]),
            ]
        )
        result = advance(form, NavigationState(), {"q1": "No", "q2": "No"})
        assert result == NavigationState(block_index=3)

    def test_unanswered_rule_question_is_skipped(self):
        form = _branching_form(
            [
                _radio("q1", "A", [("Yes", "C")]),
                _radio("q2", "A", [("Yes", "D")], qtype="select"),
            ]
        )
        result = advance(form, NavigationState(), {"q1": "", "q2": "Yes"})
        assert result == NavigationState(block_index=3)

    def test_select_questions_jump(self):
        form = _branching_form([_radio("q", "A", [("No", "D")], qtype="select")])
        assert advance(form, NavigationState(), {"q": "No"}) == NavigationState(block_index=3)

    def test_checkbox_answers_never_jump(self):
        form = _branching_form([_radio("q", "A", [("Yes", "D")], qtype="checkbox")])
        answers = apply_answer({}, "q", "Yes", "checkbox")
        assert advance(form, NavigationState(), answers) == NavigationState(block_index=1)

    def test_rule_matches_exact_value_only(self):
        form = _branching_form([_radio("q", "A", [("Yes", "D")])])
        assert advance(form, NavigationState(), {"q": "yes"}) == NavigationState(block_index=1)

    def test_backward_jump(self):
        form = _branching_form([_radio("q", "C", [("Yes", "A")])])
        assert advance(form, NavigationState(block_index=2), {"q": "Yes"}) == NavigationState(block_index=0)

    def test_rule_action_does_not_change_navigation(self):
        question = _radio("q", "A", [("Yes", "C")])
        question["conditional_logic"][0]["action"] = "show"
        form = _branching_form([question])
        assert advance(form, NavigationState(), {"q": "Yes"}) == NavigationState(block_index=2)

    def test_jump_from_last_block_backwards_does_not_complete(self):
        form = _branching_form([_radio("q", "D", [("Yes", "B")])])
        assert advance(form, NavigationState(block_index=3), {"q": "Yes"}) == NavigationState(block_index=1)
        assert isinstance(advance(form, NavigationState(block_index=3), {"q": "No"}), FlowComplete)


# ---------------------------------------------------------------------------
# retreat
# ---------------------------------------------------------------------------


class TestRetreat:
    def test_steps_back_one_block(self):
        assert retreat(NavigationState(block_index=2)) == NavigationState(block_index=1)

    def test_first_block_is_a_no_op(self):
        state = NavigationState(block_index=0)
        assert retreat(state) == state

    def test_does_not_undo_a_jump(self, property_form_data):
        form = load_form(property_form_data)
        landed = advance(form, NavigationState(block_index=0), {"interest": "Rent"})
        assert landed.block_index == 2
        # Goes to B (the block before C), not back to A
        assert retreat(landed) == NavigationState(block_index=1)

    def test_resets_question_index(self):
        assert retreat(NavigationState(block_index=1, question_index=3)) == NavigationState(
            block_index=0, question_index=0
        )


# ---------------------------------------------------------------------------
# apply_answer
# ---------------------------------------------------------------------------


class TestApplyAnswer:
    def test_scalar_replaces(self):
        answers = apply_answer({"q": "old"}, "q", "new", "text")
        assert answers == {"q": "new"}

    def test_does_not_mutate_input(self):
        original = {"q": ["a"]}
        apply_answer(original, "q", "b", "checkbox")
        assert original == {"q": ["a"]}

    def test_checkbox_toggles_in_order(self):
        answers = apply_answer({}, "q", "a", QuestionType.CHECKBOX)
        answers = apply_answer(answers, "q", "b", "checkbox")
        assert answers["q"] == ["a", "b"]
        answers = apply_answer(answers, "q", "a", "checkbox")
        assert answers["q"] == ["b"]

    def test_checkbox_double_toggle_restores_original(self):
        original = {"q": ["x", "y"]}
        once = apply_answer(original, "q", "z", "checkbox")
        twice = apply_answer(once, "q", "z", "checkbox")
        assert twice == original

    def test_unknown_question_stored_as_scalar(self):
        answers = apply_answer({}, "not-in-form", "value", None)
        assert answers == {"not-in-form": "value"}

    def test_unknown_type_string_treated_as_scalar(self):
        assert apply_answer({}, "q", "v", "mystery") == {"q": "v"}
