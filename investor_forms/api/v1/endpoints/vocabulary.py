"""
Option lists for the selectors.

- GET /vocabulary: tag vocabularies and single-choice options
"""

from fastapi import APIRouter

from investor_forms.schemas.forms import VocabularyResponse

router = APIRouter()


@router.get(
    "",
    response_model=VocabularyResponse,
    summary="List selectable options",
)
async def get_vocabulary() -> VocabularyResponse:
    return VocabularyResponse.build()
