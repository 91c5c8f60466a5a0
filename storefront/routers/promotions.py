# storefront/routers/promotions.py
import uuid

from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    Query,
    UploadFile,
    status,
)
from sqlmodel import Session

from storefront.core.auth import require_admin
from storefront.database import get_session
from storefront.repositories.promotion_repo import BannerRepository, OfferBarRepository
from storefront.schemas.common import ApiResponse, ok
from storefront.schemas.promotion import (
    BannerCreate,
    BannerRead,
    BannerType,
    BannerUpdate,
    OfferBarRead,
    OfferBarWrite,
)
from storefront.services.promotion_service import BannerService, OfferBarService

banners_router = APIRouter(prefix="/banners", tags=["Banners"])
offer_bars_router = APIRouter(prefix="/offer-bars", tags=["Offer bars"])

banner_service = BannerService(BannerRepository())
offer_bar_service = OfferBarService(OfferBarRepository())


# -------- Banners --------


@banners_router.get("", response_model=ApiResponse[list[BannerRead]])
def list_banners(
    session: Session = Depends(get_session),
    banner_type: BannerType | None = Query(default=None, alias="type"),
    active_only: bool = False,
):
    """
    Banners ordered by sort_order, newest first within the same order.
    """
    return ok(banner_service.list_banners(session, banner_type, active_only))


@banners_router.get("/{banner_id}", response_model=ApiResponse[BannerRead])
def get_banner(
    banner_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    return ok(banner_service.get_banner(session, banner_id))


@banners_router.post(
    "",
    response_model=ApiResponse[BannerRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_banner(
    payload: BannerCreate,
    session: Session = Depends(get_session),
):
    return ok(banner_service.create_banner(session, payload), "Banner created")


@banners_router.put(
    "/{banner_id}",
    response_model=ApiResponse[BannerRead],
    dependencies=[Depends(require_admin)],
)
def update_banner(
    banner_id: uuid.UUID,
    payload: BannerUpdate,
    session: Session = Depends(get_session),
):
    return ok(banner_service.update_banner(session, banner_id, payload), "Banner updated")


@banners_router.delete(
    "/{banner_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(require_admin)],
)
def delete_banner(
    banner_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    banner_service.delete_banner(session, banner_id)
    return ok(message="Banner deleted")


@banners_router.post(
    "/{banner_id}/image",
    response_model=ApiResponse[BannerRead],
    dependencies=[Depends(require_admin)],
    summary="Upload or replace the image of a banner",
)
def upload_banner_image(
    banner_id: uuid.UUID,
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
):
    """
    - Accepts JPEG, PNG, WEBP up to 5MB.
    - Replaces any previous image.
    """
    if not file.content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing content-type for uploaded file",
        )
    return ok(
        banner_service.set_image(session, banner_id, file.content_type, file.file.read()),
        "Image uploaded",
    )


# -------- Offer bars --------


@offer_bars_router.get("", response_model=ApiResponse[list[OfferBarRead]])
def list_offer_bars(
    session: Session = Depends(get_session),
    active_only: bool = False,
):
    """
    With `active_only`, only active bars whose date window contains now.
    """
    return ok(offer_bar_service.list_offer_bars(session, active_only=active_only))


@offer_bars_router.get("/{offer_bar_id}", response_model=ApiResponse[OfferBarRead])
def get_offer_bar(
    offer_bar_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    return ok(offer_bar_service.get_offer_bar(session, offer_bar_id))


@offer_bars_router.post(
    "",
    response_model=ApiResponse[OfferBarRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_offer_bar(
    payload: OfferBarWrite,
    session: Session = Depends(get_session),
):
    return ok(offer_bar_service.create_offer_bar(session, payload), "Offer bar created")


@offer_bars_router.put(
    "/{offer_bar_id}",
    response_model=ApiResponse[OfferBarRead],
    dependencies=[Depends(require_admin)],
)
def update_offer_bar(
    offer_bar_id: uuid.UUID,
    payload: OfferBarWrite,
    session: Session = Depends(get_session),
):
    return ok(
        offer_bar_service.update_offer_bar(session, offer_bar_id, payload),
        "Offer bar updated",
    )


@offer_bars_router.delete(
    "/{offer_bar_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(require_admin)],
)
def delete_offer_bar(
    offer_bar_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    offer_bar_service.delete_offer_bar(session, offer_bar_id)
    return ok(message="Offer bar deleted")
