"""
User repository for the credential store
"""
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from catalog_etl.core.exceptions import ConflictError, DatabaseError
from catalog_etl.core.logging import log
from catalog_etl.models import User


class UserRepository:
    """Repository for user accounts"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_email(self, email: str) -> Optional[User]:
        statement = select(User).where(User.email == email)
        result = await self.session.execute(statement)
        return result.scalars().first()

    async def create(self, *, email: str, password_hash: str, role: str = "admin", supplier_id: Optional[str] = None) -> User:
        """Create a user; a duplicate email is a conflict"""
        user = User(email=email, password_hash=password_hash, role=role, supplier_id=supplier_id)
        try:
            self.session.add(user)
            await self.session.commit()
            await self.session.refresh(user)
        except IntegrityError as e:
            await self.session.rollback()
            log.warning("Duplicate user registration", email=email, error=str(e))
            raise ConflictError("User already exists")
        except SQLAlchemyError as e:
            await self.session.rollback()
            log.error("Error creating user", email=email, error=str(e))
            raise DatabaseError("Error creating user")

        log.info("Created user", user_id=user.user_id, role=user.role)
        return user
