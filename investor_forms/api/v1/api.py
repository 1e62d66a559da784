"""
V1 API router aggregation.

All versioned endpoint routers are mounted here under a common prefix.
The top-level ``main.py`` mounts this router at ``/api/v1``.
"""

from fastapi import APIRouter

from investor_forms.api.v1.endpoints import forms, vocabulary

api_router = APIRouter()

api_router.include_router(forms.router, prefix="/forms", tags=["Forms"])
api_router.include_router(vocabulary.router, prefix="/vocabulary", tags=["Vocabulary"])
