from sqlalchemy import Column, String, ForeignKey, Integer, BigInteger, Enum
from sqlalchemy.dialects.postgresql import UUID, ARRAY, JSONB
import uuid
from .base import Base, TimestampMixin
from .folder import _values
from academic_vault.schemas.file import FileType, FileStatus, Visibility


class File(Base, TimestampMixin):
    __tablename__ = "files"

    id = Column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    owner_id = Column(UUID(as_uuid=False), nullable=False, index=True)
    folder_id = Column(UUID(as_uuid=False), ForeignKey("folders.id", ondelete="CASCADE"), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    type = Column(Enum(FileType, name="file_type", values_callable=_values), nullable=False)
    size = Column(BigInteger, nullable=False)
    status = Column(
        Enum(FileStatus, name="file_status", values_callable=_values),
        nullable=False,
        default=FileStatus.IDLE,
    )
    progress = Column(Integer, nullable=False, default=0)
    visibility = Column(
        Enum(Visibility, name="visibility", values_callable=_values, create_type=False),
        nullable=False,
        default=Visibility.PRIVATE,
    )
    collection_ids = Column(ARRAY(UUID(as_uuid=False)), nullable=False, default=list)
    tags = Column(ARRAY(String), nullable=False, default=list)
    meta = Column(JSONB, nullable=True)
    ai_content = Column(JSONB, nullable=True)
