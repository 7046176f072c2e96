"""Admin user management service."""

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from rms.core.exceptions import NotFoundError, ValidationError
from rms.models.user import User
from rms.schemas.auth import AdminUserUpdate, UserFilter, UserResponse


class UserService:
    """User administration for admins."""

    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> User:
        user = self.db.execute(select(User).where(User.id == user_id)).scalar_one_or_none()
        if not user:
            raise NotFoundError("User", str(user_id))
        return user

    def list_users(
        self,
        filters: UserFilter | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[UserResponse], int]:
        query = select(User)

        if filters:
            if filters.role:
                query = query.where(User.role == filters.role)
            if filters.is_active is not None:
                query = query.where(User.is_active == filters.is_active)
            if filters.search:
                search_term = f"%{filters.search}%"
                query = query.where(
                    or_(
                        User.first_name.ilike(search_term),
                        User.last_name.ilike(search_term),
                        User.email.ilike(search_term),
                    )
                )

        total = self.db.execute(
            select(func.count()).select_from(query.subquery())
        ).scalar() or 0

        query = query.order_by(User.last_name, User.first_name, User.id)
        query = query.offset((page - 1) * page_size).limit(page_size)
        users = self.db.execute(query).scalars().all()
        return [UserResponse.model_validate(u) for u in users], total

    def update_user(self, user_id: int, request: AdminUserUpdate, acting_user_id: int) -> tuple[UserResponse, dict]:
        """Update user as admin.

        Deactivation and role changes revoke the user's sessions.
        """
        user = self.get_user(user_id)
        update_data = request.model_dump(exclude_unset=True)

        if user.id == acting_user_id and (
            update_data.get("is_active") is False
            or ("role" in update_data and update_data["role"] != user.role)
        ):
            raise ValidationError("Admins cannot deactivate or demote themselves")

        before = {field: getattr(user, field) for field in update_data}
        revoke = (
            ("is_active" in update_data and not update_data["is_active"])
            or ("role" in update_data and update_data["role"] != user.role)
        )
        for field, value in update_data.items():
            setattr(user, field, value)
        if revoke:
            user.revoke_sessions()

        self.db.flush()
        self.db.refresh(user)
        return UserResponse.model_validate(user), before

    def deactivate_user(self, user_id: int, acting_user_id: int) -> User:
        if user_id == acting_user_id:
            raise ValidationError("Admins cannot deactivate themselves")
        user = self.get_user(user_id)
        user.is_active = False
        user.revoke_sessions()
        self.db.flush()
        return user
