import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict
from sqlmodel import SQLModel

ComplaintStatus = Literal["pending", "in_review", "resolved", "rejected"]


class ComplaintRead(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID
    order_id: uuid.UUID
    product_id: uuid.UUID | None
    product_name: str
    issue_type: str
    description: str
    images: list[str]
    status: ComplaintStatus
    admin_response: str | None
    resolved_at: datetime | None
    created_at: datetime


class ComplaintStatusUpdate(SQLModel):
    """
    Admin payload: move a ticket along and optionally reply.
    """

    model_config = ConfigDict(extra="forbid")

    status: ComplaintStatus
    admin_response: str | None = None
