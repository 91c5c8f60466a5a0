import logging
import smtplib
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlmodel import Session

from storefront.core import email_client
from storefront.core.config import get_settings
from storefront.core.errors import validation_error
from storefront.core.storage_utils import (
    MAX_IMAGE_BYTES,
    generate_filename,
    upload_to_storage,
)
from storefront.models.complaint import Complaint
from storefront.models.user import User
from storefront.repositories.complaint_repo import ComplaintRepository
from storefront.repositories.order_repo import OrderRepository
from storefront.schemas.complaint import ComplaintStatusUpdate

logger = logging.getLogger(__name__)

MAX_COMPLAINT_IMAGES = 5

COMPLAINT_IMAGE_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
}

# Statuses that close a ticket
CLOSED_STATUSES = {"resolved", "rejected"}


def _check_images(images: list[tuple[str | None, bytes]]) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    if len(images) > MAX_COMPLAINT_IMAGES:
        errors["images"] = [f"You may upload at most {MAX_COMPLAINT_IMAGES} images."]
    for i, (content_type, file_bytes) in enumerate(images):
        if content_type not in COMPLAINT_IMAGE_TYPES:
            errors.setdefault(f"images.{i}", []).append("The image must be a JPEG or PNG file.")
        if len(file_bytes) > MAX_IMAGE_BYTES:
            errors.setdefault(f"images.{i}", []).append("The image may not be larger than 5MB.")
    return errors


class ComplaintService:
    """
    Customer complaint tickets about a product of one of their orders.
    """

    def __init__(self, repo: ComplaintRepository, order_repo: OrderRepository):
        self.repo = repo
        self.order_repo = order_repo

    def raise_ticket(
        self,
        session: Session,
        user: User,
        *,
        order_id: uuid.UUID,
        product_id: uuid.UUID,
        issue_type: str,
        description: str,
        images: list[tuple[str | None, bytes]],
    ) -> Complaint:
        """
        File a ticket for (order, product).

        The order must belong to `user` and contain the product; otherwise
        404 (the caller does not learn whether the order exists).

        Images are uploaded one by one. An image whose upload fails is
        logged and left out; the ticket is still created.
        """
        errors = _check_images(images)
        if errors:
            raise validation_error(errors)

        order = self.order_repo.get_for_user(session, user.id, order_id)
        if order is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found",
            )
        item = self.order_repo.find_item(session, order.id, product_id)
        if item is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found in this order",
            )

        urls: list[str] = []
        for content_type, file_bytes in images:
            ext = COMPLAINT_IMAGE_TYPES[content_type]
            path = f"complaints/{user.id}/{order.id}/{generate_filename(ext)}"
            try:
                urls.append(upload_to_storage(path, file_bytes, content_type))
            except Exception:
                logger.exception("Complaint image upload failed for order %s", order.order_number)

        complaint = Complaint(
            user_id=user.id,
            order_id=order.id,
            product_id=product_id,
            product_name=item.product_name,
            issue_type=issue_type,
            description=description,
            images=urls,
            status="pending",
        )
        complaint = self.repo.save(session, complaint)
        logger.info(
            "Complaint %s raised by user %s on order %s",
            complaint.id,
            user.id,
            order.order_number,
        )

        self._notify_admin(complaint, order.order_number, user)
        return complaint

    def _notify_admin(self, complaint: Complaint, order_number: str, user: User) -> None:
        """
        Best-effort e-mail to ADMIN_EMAIL. Never raises.
        """
        settings = get_settings()
        if not settings.ADMIN_EMAIL or not email_client.is_configured():
            return

        subject = f"New complaint for order {order_number}"
        text_body = (
            f"Customer: {user.name} <{user.email}>\n"
            f"Order: {order_number}\n"
            f"Product: {complaint.product_name}\n"
            f"Issue: {complaint.issue_type}\n\n"
            f"{complaint.description}\n\n"
            f"Images: {len(complaint.images)}\n"
        )
        try:
            email_client.send_email(settings.ADMIN_EMAIL, subject, text_body)
        except (smtplib.SMTPException, OSError) as e:
            logger.warning("Complaint notification e-mail failed: %s", e)

    # ----- Admin -----

    def list_complaints(
        self,
        session: Session,
        status_filter: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Complaint]:
        return self.repo.list(session, status=status_filter, skip=skip, limit=limit)

    def update_status(
        self,
        session: Session,
        complaint_id: uuid.UUID,
        payload: ComplaintStatusUpdate,
    ) -> Complaint:
        complaint = self.repo.get_by_id(session, complaint_id)
        if complaint is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Complaint not found",
            )

        complaint.status = payload.status
        if payload.admin_response is not None:
            complaint.admin_response = payload.admin_response
        complaint.resolved_at = (
            datetime.now(timezone.utc) if payload.status in CLOSED_STATUSES else None
        )
        return self.repo.save(session, complaint)
