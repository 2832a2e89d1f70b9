from sqlalchemy import Column, String, ForeignKey, Enum
from sqlalchemy.dialects.postgresql import UUID, ARRAY
import uuid
from .base import Base, TimestampMixin
from academic_vault.schemas.file import Visibility


def _values(enum_cls):
    return [member.value for member in enum_cls]


class Folder(Base, TimestampMixin):
    __tablename__ = "folders"

    id = Column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    owner_id = Column(UUID(as_uuid=False), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    parent_id = Column(UUID(as_uuid=False), ForeignKey("folders.id", ondelete="CASCADE"), nullable=True, index=True)
    visibility = Column(
        Enum(Visibility, name="visibility", values_callable=_values),
        nullable=False,
        default=Visibility.PRIVATE,
    )
    path = Column(ARRAY(UUID(as_uuid=False)), nullable=False, default=list)
