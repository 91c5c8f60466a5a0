import uuid
from datetime import datetime

from sqlmodel import Session, or_, select

from storefront.models.promotion import Banner, OfferBar


class BannerRepository:

    def get_by_id(self, session: Session, banner_id: uuid.UUID) -> Banner | None:
        return session.get(Banner, banner_id)

    def list(
        self,
        session: Session,
        banner_type: str | None = None,
        only_active: bool = False,
    ) -> list[Banner]:
        stmt = select(Banner)
        if banner_type:
            stmt = stmt.where(Banner.type == banner_type)
        if only_active:
            stmt = stmt.where(Banner.is_active == True)  # noqa: E712
        stmt = stmt.order_by(Banner.sort_order, Banner.created_at.desc())
        return list(session.exec(stmt).all())

    def save(self, session: Session, banner: Banner) -> Banner:
        session.add(banner)
        session.commit()
        session.refresh(banner)
        return banner

    def delete(self, session: Session, banner: Banner) -> None:
        session.delete(banner)
        session.commit()


class OfferBarRepository:

    def get_by_id(self, session: Session, offer_bar_id: uuid.UUID) -> OfferBar | None:
        return session.get(OfferBar, offer_bar_id)

    def list(
        self,
        session: Session,
        current_at: datetime | None = None,
    ) -> list[OfferBar]:
        """
        All offer bars, or only active ones visible at `current_at`.
        """
        stmt = select(OfferBar)
        if current_at is not None:
            stmt = stmt.where(
                OfferBar.is_active == True,  # noqa: E712
                or_(OfferBar.start_date == None, OfferBar.start_date <= current_at),  # noqa: E711
                or_(OfferBar.end_date == None, OfferBar.end_date >= current_at),  # noqa: E711
            )
        stmt = stmt.order_by(OfferBar.sort_order, OfferBar.created_at.desc())
        return list(session.exec(stmt).all())

    def save(self, session: Session, offer_bar: OfferBar) -> OfferBar:
        session.add(offer_bar)
        session.commit()
        session.refresh(offer_bar)
        return offer_bar

    def delete(self, session: Session, offer_bar: OfferBar) -> None:
        session.delete(offer_bar)
        session.commit()
