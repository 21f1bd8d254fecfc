"""
Recipient endpoints: the reveal flow of a shared drop.

No authentication: holding the link is the capability. Every action rebuilds
the flow from the stored drop plus the stage the client reports, applies one
transition, and returns the new state.
"""

from typing import Optional

from fastapi import APIRouter
from fastapi import Body
from fastapi import Depends
from fastapi import status

from lucky_drop.dependencies import get_drop_store
from lucky_drop.dependencies import get_existing_drop
from lucky_drop.dependencies import get_thank_you_service
from lucky_drop.drops.db.repository_base import DropRepository
from lucky_drop.drops.enums import Stage
from lucky_drop.drops.models import GiftDrop
from lucky_drop.drops.orchestrator.opener_flow import REVEAL_DELAY_SECONDS
from lucky_drop.drops.orchestrator.opener_flow import GiftOpener
from lucky_drop.schemas.schemas import OpenerActionRequest
from lucky_drop.schemas.schemas import OpenerStateResponse
from lucky_drop.schemas.schemas import PublicDropView
from lucky_drop.schemas.schemas import RecipientDetailsRequest
from lucky_drop.schemas.schemas import SelectGiftRequest
from lucky_drop.suggestions.thank_you import ThankYouService

ROUTER_OPENER = APIRouter(tags=["Reveal"])

OPENER_RESPONSES = {
    status.HTTP_409_CONFLICT: {
        "description": "Action not allowed in the current stage",
        "content": {
            "application/json": {
                "example": {
                    "detail": "Cannot 'claim' while the drop is in stage 'selecting'",
                    "error_type": "InvalidTransitionError",
                }
            }
        },
    },
    status.HTTP_404_NOT_FOUND: {
        "description": "Drop not found",
        "content": {"application/json": {"example": {"detail": "Gift drop 'Xk2p9QaLm3' not found"}}},
    },
}


def _claimed_stage(body: Optional[OpenerActionRequest], default: Stage) -> Stage:
    if body is not None and body.stage is not None:
        return body.stage
    return default


def _state(opener: GiftOpener) -> OpenerStateResponse:
    return OpenerStateResponse(
        stage=opener.stage,
        drop=PublicDropView.build(opener.drop),
        selected_gift=opener.drop.selected_gift,
        reveal_delay_seconds=REVEAL_DELAY_SECONDS,
        thank_you=opener.thank_you,
    )


@ROUTER_OPENER.get("/drops/{drop_id}/open", response_model=OpenerStateResponse, responses=OPENER_RESPONSES)
def view_drop(
    drop: GiftDrop = Depends(get_existing_drop),
    store: DropRepository = Depends(get_drop_store),
) -> OpenerStateResponse:
    """Public view of the drop and the stage a returning recipient resumes at."""
    return _state(GiftOpener(store, drop))


##########################
@ROUTER_OPENER.post("/drops/{drop_id}/open", response_model=OpenerStateResponse, responses=OPENER_RESPONSES)
def open_drop(
    body: Optional[OpenerActionRequest] = Body(default=None),
    drop: GiftDrop = Depends(get_existing_drop),
    store: DropRepository = Depends(get_drop_store),
) -> OpenerStateResponse:
    """Open the drop. The first call records the open time; later calls change nothing."""
    opener = GiftOpener(store, drop, _claimed_stage(body, Stage.INITIAL))
    opener.open()
    return _state(opener)


##########################
@ROUTER_OPENER.post(
    "/drops/{drop_id}/media-complete", response_model=OpenerStateResponse, responses=OPENER_RESPONSES
)
def finish_media(
    body: Optional[OpenerActionRequest] = Body(default=None),
    drop: GiftDrop = Depends(get_existing_drop),
    store: DropRepository = Depends(get_drop_store),
) -> OpenerStateResponse:
    """Gifter media was watched; move on to gift selection."""
    opener = GiftOpener(store, drop, _claimed_stage(body, Stage.MEDIA))
    opener.media_complete()
    return _state(opener)


##########################
@ROUTER_OPENER.post("/drops/{drop_id}/select", response_model=OpenerStateResponse, responses=OPENER_RESPONSES)
def select_gift(
    body: SelectGiftRequest,
    drop: GiftDrop = Depends(get_existing_drop),
    store: DropRepository = Depends(get_drop_store),
) -> OpenerStateResponse:
    """Manual drops: commit the recipient's choice and start the reveal."""
    opener = GiftOpener(store, drop, _claimed_stage(body, Stage.SELECTING))
    opener.pick(body.gift_id)
    return _state(opener)


##########################
@ROUTER_OPENER.post("/drops/{drop_id}/reveal", response_model=OpenerStateResponse, responses=OPENER_RESPONSES)
def reveal_random_gift(
    body: Optional[OpenerActionRequest] = Body(default=None),
    drop: GiftDrop = Depends(get_existing_drop),
    store: DropRepository = Depends(get_drop_store),
) -> OpenerStateResponse:
    """Random drops: draw a gift on the server (or reuse the committed one) and start the reveal."""
    opener = GiftOpener(store, drop, _claimed_stage(body, Stage.SELECTING))
    opener.reveal_random()
    return _state(opener)


##########################
@ROUTER_OPENER.post(
    "/drops/{drop_id}/reveal-complete", response_model=OpenerStateResponse, responses=OPENER_RESPONSES
)
def finish_reveal(
    body: Optional[OpenerActionRequest] = Body(default=None),
    drop: GiftDrop = Depends(get_existing_drop),
    store: DropRepository = Depends(get_drop_store),
) -> OpenerStateResponse:
    """The reveal animation (``revealDelaySeconds``) finished; show the gift."""
    opener = GiftOpener(store, drop, _claimed_stage(body, Stage.REVEALING))
    opener.complete_reveal()
    return _state(opener)


##########################
@ROUTER_OPENER.post("/drops/{drop_id}/claim", response_model=OpenerStateResponse, responses=OPENER_RESPONSES)
def claim_gift(
    body: Optional[OpenerActionRequest] = Body(default=None),
    drop: GiftDrop = Depends(get_existing_drop),
    store: DropRepository = Depends(get_drop_store),
) -> OpenerStateResponse:
    """Claim the revealed gift; the recipient is asked for shipping details next."""
    opener = GiftOpener(store, drop, _claimed_stage(body, Stage.REVEALED))
    opener.claim()
    return _state(opener)


##########################
@ROUTER_OPENER.post(
    "/drops/{drop_id}/details",
    response_model=OpenerStateResponse,
    responses={
        **OPENER_RESPONSES,
        status.HTTP_422_UNPROCESSABLE_CONTENT: {
            "description": "Name or address invalid",
            "content": {
                "application/json": {
                    "example": {
                        "detail": "Address must be at least 10 characters",
                        "error_type": "InvalidRecipientDetailsError",
                    }
                }
            },
        },
    },
)
def submit_details(
    body: RecipientDetailsRequest,
    drop: GiftDrop = Depends(get_existing_drop),
    store: DropRepository = Depends(get_drop_store),
) -> OpenerStateResponse:
    """Save the recipient's name and shipping address."""
    opener = GiftOpener(store, drop, _claimed_stage(body, Stage.DETAILS))
    opener.submit_details(body.name, body.address)
    return _state(opener)


##########################
@ROUTER_OPENER.post(
    "/drops/{drop_id}/thank-you", response_model=OpenerStateResponse, responses=OPENER_RESPONSES
)
async def draft_thank_you(
    body: Optional[OpenerActionRequest] = Body(default=None),
    drop: GiftDrop = Depends(get_existing_drop),
    store: DropRepository = Depends(get_drop_store),
    thank_you_service: ThankYouService = Depends(get_thank_you_service),
) -> OpenerStateResponse:
    """Draft a thank-you note for the received gift. Nothing is stored on the drop."""
    opener = GiftOpener(store, drop, _claimed_stage(body, Stage.THANKING))
    await opener.thank_you_note(thank_you_service)
    return _state(opener)


##########################
@ROUTER_OPENER.post("/drops/{drop_id}/dismiss", response_model=OpenerStateResponse, responses=OPENER_RESPONSES)
def dismiss(
    body: Optional[OpenerActionRequest] = Body(default=None),
    drop: GiftDrop = Depends(get_existing_drop),
    store: DropRepository = Depends(get_drop_store),
) -> OpenerStateResponse:
    """Close the flow."""
    opener = GiftOpener(store, drop, _claimed_stage(body, Stage.THANKING))
    opener.dismiss()
    return _state(opener)
