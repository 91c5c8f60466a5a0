import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlmodel import Session

from storefront.core.storage_utils import (
    delete_public_url,
    generate_filename,
    upload_to_storage,
    validate_image,
)
from storefront.models.promotion import Banner, OfferBar
from storefront.repositories.promotion_repo import BannerRepository, OfferBarRepository
from storefront.schemas.promotion import BannerCreate, BannerUpdate, OfferBarWrite

# Explicit nulls for these keep the stored value
REQUIRED_BANNER_FIELDS = {
    "title",
    "button_text",
    "type",
    "position",
    "sort_order",
    "is_active",
}


class BannerService:
    """
    Storefront banners (hero / promo) and their images.
    """

    def __init__(self, repo: BannerRepository):
        self.repo = repo

    def list_banners(
        self,
        session: Session,
        banner_type: str | None = None,
        active_only: bool = False,
    ) -> list[Banner]:
        return self.repo.list(session, banner_type=banner_type, only_active=active_only)

    def get_banner(self, session: Session, banner_id: uuid.UUID) -> Banner:
        banner = self.repo.get_by_id(session, banner_id)
        if banner is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Banner not found",
            )
        return banner

    def create_banner(self, session: Session, payload: BannerCreate) -> Banner:
        return self.repo.save(session, Banner(**payload.model_dump()))

    def update_banner(
        self,
        session: Session,
        banner_id: uuid.UUID,
        payload: BannerUpdate,
    ) -> Banner:
        banner = self.get_banner(session, banner_id)
        for field, value in payload.model_dump(exclude_unset=True).items():
            if field in REQUIRED_BANNER_FIELDS and value is None:
                continue
            if field in ("title", "button_text") and not value.strip():
                continue
            setattr(banner, field, value)
        return self.repo.save(session, banner)

    def delete_banner(self, session: Session, banner_id: uuid.UUID) -> None:
        banner = self.get_banner(session, banner_id)
        if banner.image_url:
            delete_public_url(banner.image_url)
        self.repo.delete(session, banner)

    def set_image(
        self,
        session: Session,
        banner_id: uuid.UUID,
        content_type: str | None,
        file_bytes: bytes,
    ) -> Banner:
        """
        Upload or replace the banner image.

        Path pattern:
            banners/<banner_id>/<uuid>.<ext>
        """
        banner = self.get_banner(session, banner_id)
        ext = validate_image(content_type, file_bytes)

        previous = banner.image_url
        banner.image_url = upload_to_storage(
            f"banners/{banner.id}/{generate_filename(ext)}", file_bytes, content_type
        )
        banner = self.repo.save(session, banner)
        if previous:
            delete_public_url(previous)
        return banner


class OfferBarService:
    """
    Announcement strips with an optional visibility window.
    """

    def __init__(self, repo: OfferBarRepository):
        self.repo = repo

    def list_offer_bars(
        self,
        session: Session,
        active_only: bool = False,
        now: datetime | None = None,
    ) -> list[OfferBar]:
        if not active_only:
            return self.repo.list(session)
        # Window bounds are stored as naive UTC
        current = now or datetime.now(timezone.utc).replace(tzinfo=None)
        return self.repo.list(session, current_at=current)

    def get_offer_bar(self, session: Session, offer_bar_id: uuid.UUID) -> OfferBar:
        offer_bar = self.repo.get_by_id(session, offer_bar_id)
        if offer_bar is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Offer bar not found",
            )
        return offer_bar

    def create_offer_bar(self, session: Session, payload: OfferBarWrite) -> OfferBar:
        return self.repo.save(session, OfferBar(**payload.model_dump()))

    def update_offer_bar(
        self,
        session: Session,
        offer_bar_id: uuid.UUID,
        payload: OfferBarWrite,
    ) -> OfferBar:
        offer_bar = self.get_offer_bar(session, offer_bar_id)
        for field, value in payload.model_dump().items():
            setattr(offer_bar, field, value)
        return self.repo.save(session, offer_bar)

    def delete_offer_bar(self, session: Session, offer_bar_id: uuid.UUID) -> None:
        self.repo.delete(session, self.get_offer_bar(session, offer_bar_id))
