"""Public share endpoints: link and QR code of a drop."""

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Request
from fastapi import Response
from fastapi import status

from lucky_drop.dependencies import get_existing_drop
from lucky_drop.dependencies import get_settings
from lucky_drop.drops.models import GiftDrop
from lucky_drop.drops.share import build_share_url
from lucky_drop.drops.share import qr_code_png
from lucky_drop.schemas.schemas import ShareLinksResponse
from lucky_drop.settings import Settings

ROUTER_SHARE = APIRouter(tags=["Share"])


@ROUTER_SHARE.get(
    "/drops/{drop_id}/share",
    response_model=ShareLinksResponse,
    responses={
        status.HTTP_200_OK: {
            "description": "Share link and QR code location",
            "content": {
                "application/json": {
                    "example": {
                        "shareUrl": "https://luckydrop.app/drop/Xk2p9QaLm3",
                        "qrCodeUrl": "https://api.luckydrop.app/api/drops/Xk2p9QaLm3/qr.png",
                    }
                }
            },
        },
    },
)
def get_share_links(
    request: Request,
    drop: GiftDrop = Depends(get_existing_drop),
    settings: Settings = Depends(get_settings),
) -> ShareLinksResponse:
    return ShareLinksResponse(
        share_url=build_share_url(settings.public_base_url, drop.id),
        qr_code_url=str(request.url_for("get_share_qr_code", drop_id=drop.id)),
    )


##########################
@ROUTER_SHARE.get(
    "/drops/{drop_id}/qr.png",
    response_class=Response,
    responses={status.HTTP_200_OK: {"content": {"image/png": {}}, "description": "QR code of the share link"}},
)
def get_share_qr_code(
    drop: GiftDrop = Depends(get_existing_drop),
    settings: Settings = Depends(get_settings),
) -> Response:
    """PNG QR code encoding the drop's share link."""
    png = qr_code_png(build_share_url(settings.public_base_url, drop.id))
    return Response(content=png, media_type="image/png", headers={"Cache-Control": "public, max-age=86400"})
