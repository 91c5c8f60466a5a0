import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class Complaint(SQLModel, table=True):
    """
    Support ticket raised by a customer about one product of one order.
    """

    __tablename__ = "complaints"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    order_id: uuid.UUID = Field(foreign_key="orders.id", index=True)
    product_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="products.id",
        ondelete="SET NULL",
    )

    product_name: str
    issue_type: str = Field(max_length=100)
    description: str

    images: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    # pending | in_review | resolved | rejected
    status: str = Field(default="pending", index=True)
    admin_response: str | None = None
    resolved_at: datetime | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
