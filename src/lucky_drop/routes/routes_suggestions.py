"""Gift idea endpoint for senders."""

from fastapi import APIRouter
from fastapi import Depends
from fastapi import status

from lucky_drop.auth.token_verifier import AuthenticatedUser
from lucky_drop.dependencies import get_current_user
from lucky_drop.dependencies import get_suggestion_service
from lucky_drop.schemas.schemas import SuggestionRequest
from lucky_drop.suggestions.gift_ideas import GiftSuggestionService
from lucky_drop.suggestions.models import GiftSuggestionResult

ROUTER_SUGGESTIONS = APIRouter(tags=["Suggestions"])


@ROUTER_SUGGESTIONS.post(
    "/suggestions",
    response_model=GiftSuggestionResult,
    responses={
        status.HTTP_200_OK: {
            "description": "Suggestions generated (the list may be empty)",
            "content": {
                "application/json": {
                    "example": {
                        "gifts": [
                            {
                                "name": "Ceramic Pour-Over Coffee Set",
                                "image": "https://images.example.com/pour-over.jpg",
                                "platform": "Etsy",
                                "url": "https://www.etsy.com/listing/123/pour-over-set",
                                "price": "$42",
                                "description": "A slow-brew ritual for someone who loves coffee.",
                            }
                        ],
                        "query": "coffee lover gift",
                        "totalResults": 10,
                    }
                }
            },
        },
        status.HTTP_404_NOT_FOUND: {
            "description": "The search found no products",
            "content": {
                "application/json": {"example": {"detail": "No gift products found", "error_type": "NoResultsError"}}
            },
        },
        status.HTTP_502_BAD_GATEWAY: {
            "description": "Search or language model failure",
            "content": {
                "application/json": {
                    "example": {"detail": "Search API error: 429 Too Many Requests", "error_type": "SearchAPIError"}
                }
            },
        },
    },
)
async def suggest_gifts(
    body: SuggestionRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: GiftSuggestionService = Depends(get_suggestion_service),
) -> GiftSuggestionResult:
    """
    Suggest purchasable gifts for a free-text description.

    Send previously shown names in ``excludeNames`` to get fresh ideas.
    """
    return await service.suggest(body.prompt, exclude_names=body.exclude_names, max_results=body.max_results)
