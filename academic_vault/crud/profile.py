from .base import CRUDBase
from academic_vault.models.profile import Profile
from academic_vault.schemas.profile import UserProfile, SettingsUpdate


class CRUDProfile(CRUDBase[Profile, UserProfile, SettingsUpdate]):
    """CRUD operations for Profile model"""

profile_crud = CRUDProfile(Profile)
