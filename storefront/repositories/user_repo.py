import uuid

from sqlmodel import Session, select

from storefront.models.user import User


class UserRepository:
    """
    Data access layer for User.

    Pure DB operations; no FastAPI, no HTTP, no business logic.
    """

    def get_by_id(self, session: Session, user_id: uuid.UUID) -> User | None:
        return session.get(User, user_id)

    def get_by_email(self, session: Session, email: str) -> User | None:
        stmt = select(User).where(User.email == email)
        return session.exec(stmt).first()

    def list(self, session: Session, skip: int = 0, limit: int = 50) -> list[User]:
        stmt = select(User).order_by(User.created_at.desc()).offset(skip).limit(limit)
        return list(session.exec(stmt).all())

    def save(self, session: Session, user: User) -> User:
        """Insert or update a User and return the persisted row."""
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    def upsert_profile(
        self,
        session: Session,
        *,
        user_id: uuid.UUID,
        email: str,
        name: str,
    ) -> User:
        """
        Mirror a Supabase Auth identity into the users table.

        An existing row keeps its role; email and name are refreshed.
        """
        user = self.get_by_id(session, user_id)
        if user is None:
            user = User(id=user_id, email=email, name=name, role="user")
        else:
            user.email = email
            user.name = name
        return self.save(session, user)
