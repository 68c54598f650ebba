from fastapi import APIRouter

from app.api.v1.endpoints import forms, leads, sessions

api_v1_router = APIRouter()

api_v1_router.include_router(forms.router, prefix="/forms", tags=["forms"])
api_v1_router.include_router(sessions.router, prefix="/sessions", tags=["sessions"])
api_v1_router.include_router(leads.router, prefix="/leads", tags=["leads"])
api_v1_router.include_router(leads.webhook_router, prefix="/webhooks", tags=["webhooks"])
