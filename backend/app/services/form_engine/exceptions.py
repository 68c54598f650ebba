"""Form engine exceptions."""


class FormEngineError(Exception):
    """Base exception for form navigation and finalization."""


class InvalidFormError(FormEngineError):
    """Raised when a form definition cannot be navigated."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = problems
        super().__init__("Invalid form: " + "; ".join(problems))


class NavigationError(FormEngineError):
    """Raised when a navigation state does not point at a block of the form."""

    def __init__(self, block_index: int, block_count: int) -> None:
        self.block_index = block_index
        self.block_count = block_count
        super().__init__(f"Block index {block_index} is outside 0..{block_count - 1}")


class PreconditionFailedError(FormEngineError):
    """Raised when advancing past a block whose required questions are unanswered."""

    def __init__(self, missing_question_ids: list[str]) -> None:
        self.missing_question_ids = missing_question_ids
        super().__init__("Required questions unanswered: " + ", ".join(missing_question_ids))
