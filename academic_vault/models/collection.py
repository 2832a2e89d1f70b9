from sqlalchemy import Column, String, Enum
from sqlalchemy.dialects.postgresql import UUID, ARRAY
import uuid
from .base import Base, TimestampMixin
from .folder import _values
from academic_vault.schemas.file import Visibility


class Collection(Base, TimestampMixin):
    __tablename__ = "collections"

    id = Column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    owner_id = Column(UUID(as_uuid=False), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    visibility = Column(
        Enum(Visibility, name="visibility", values_callable=_values, create_type=False),
        nullable=False,
        default=Visibility.PRIVATE,
    )
    # Non-owning references; deleting a collection never touches these files
    file_ids = Column(ARRAY(UUID(as_uuid=False)), nullable=False, default=list)
