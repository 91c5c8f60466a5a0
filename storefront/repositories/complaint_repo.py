import uuid

from sqlmodel import Session, select

from storefront.models.complaint import Complaint


class ComplaintRepository:

    def get_by_id(self, session: Session, complaint_id: uuid.UUID) -> Complaint | None:
        return session.get(Complaint, complaint_id)

    def list(
        self,
        session: Session,
        status: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Complaint]:
        stmt = select(Complaint)
        if status:
            stmt = stmt.where(Complaint.status == status)
        stmt = stmt.order_by(Complaint.created_at.desc()).offset(skip).limit(limit)
        return list(session.exec(stmt).all())

    def save(self, session: Session, complaint: Complaint) -> Complaint:
        session.add(complaint)
        session.commit()
        session.refresh(complaint)
        return complaint
