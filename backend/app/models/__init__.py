from app.models.form import Form
from app.models.form_event import FormEvent
from app.models.form_session import FormSession
from app.models.lead import Lead
from app.models.submission import Submission

__all__ = [
    "Form",
    "FormEvent",
    "FormSession",
    "Lead",
    "Submission",
]
