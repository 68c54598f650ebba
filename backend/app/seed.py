"""Seed the database with a sample published lead-capture form."""

from app.core.database import SessionLocal
from app.models import Form
from app.services.form_engine import load_form, publish_errors

SEED_FORMS = [
    {
        "title": "Property Enquiry",
        "description": "Tell us what you are looking for and we'll call you back",
        "blocks": [
            {"id": "intent", "title": "What brings you here?"},
            {"id": "buying", "title": "Buying details"},
            {"id": "renting", "title": "Renting details"},
            {"id": "contact", "title": "How can we reach you?"},
        ],
        "questions": [
            {
                "id": "interest",
                "block_id": "intent",
                "type": "radio",
                "label": "Are you looking to buy or rent?",
                "required": True,
                "options": ["Buy", "Rent"],
                "conditional_logic": [
                    {"option": "Rent", "target_block_id": "renting", "action": "jump"},
                ],
            },
            {
                "id": "budget",
                "block_id": "buying",
                "type": "select",
                "label": "Budget",
                "required": True,
                "options": ["Under 200k", "200k-500k", "Over 500k"],
                "conditional_logic": [
                    {"option": "Under 200k", "target_block_id": "contact", "action": "jump"},
                ],
            },
            {
                "id": "mortgage",
                "block_id": "buying",
                "type": "radio",
                "label": "Do you have mortgage approval?",
                "required": False,
                "options": ["Yes", "No", "In progress"],
            },
            {
                "id": "move_in",
                "block_id": "renting",
                "type": "date",
                "label": "Preferred move-in date",
                "required": True,
            },
            {
                "id": "features",
                "block_id": "renting",
                "type": "checkbox",
                "label": "Must-have features",
                "required": False,
                "options": ["Parking", "Garden", "Pets allowed", "Furnished"],
            },
            {"id": "full_name", "block_id": "contact", "type": "text", "label": "Full name", "required": True},
            {"id": "email", "block_id": "contact", "type": "email", "label": "Email", "required": True},
            {"id": "phone", "block_id": "contact", "type": "phone", "label": "Phone", "required": False},
            {
                "id": "notes",
                "block_id": "contact",
                "type": "textarea",
                "label": "Anything else we should know?",
                "required": False,
            },
        ],
        "media": None,
    },
]


def seed_forms() -> list[Form]:
    """Insert seed forms as published. Returns created forms."""
    db = SessionLocal()
    created: list[Form] = []
    try:
        for data in SEED_FORMS:
            definition = load_form({"id": "seed", **data})
            errors = publish_errors(definition)
            if errors:
                raise ValueError(f"Seed form '{data['title']}' cannot be published: {'; '.join(errors)}")

            form = Form(
                title=data["title"],
                description=data["description"],
                blocks=data["blocks"],
                questions=data["questions"],
                media=data["media"],
                status="active",
            )
            db.add(form)
            created.append(form)

        db.commit()
        for f in created:
            db.refresh(f)
        return created
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    forms = seed_forms()
    for f in forms:
        print(f"Created: {f.title} (id={f.id}, status={f.status})")
    print(f"\nSeeded {len(forms)} forms.")
