from sqlalchemy import Column, String, Enum
from sqlalchemy.dialects.postgresql import UUID, JSONB
from .base import Base
from .folder import _values
from academic_vault.schemas.profile import Role


class Profile(Base):
    __tablename__ = "profiles"

    # Matches auth.users.id in Supabase
    id = Column(UUID(as_uuid=False), primary_key=True)
    display_name = Column(String(255), nullable=True)
    role = Column(Enum(Role, name="role", values_callable=_values), nullable=False, default=Role.STUDENT)
    settings = Column(JSONB, nullable=True)
