from fastapi import APIRouter, Depends
from academic_vault.schemas.auth import TokenData
from academic_vault.schemas.profile import SettingsUpdate, UserProfile
from academic_vault.services.data_gateway import VaultDataGateway
from academic_vault.core.auth import get_current_user, get_profile_for_user
from academic_vault.core.deps import get_gateway
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=UserProfile)
async def get_profile(
    current_user: TokenData = Depends(get_current_user),
    gateway: VaultDataGateway = Depends(get_gateway),
):
    return await get_profile_for_user(gateway, current_user)


@router.patch("/settings", response_model=UserProfile)
async def update_user_settings(
    settings_in: SettingsUpdate,
    current_user: TokenData = Depends(get_current_user),
    gateway: VaultDataGateway = Depends(get_gateway),
):
    """Merge the given UI settings into the stored profile"""
    profile = await get_profile_for_user(gateway, current_user)
    merged = {**profile.settings, **settings_in.model_dump(exclude_none=True)}
    updated = await gateway.update_profile(profile.model_copy(update={"settings": merged}))
    logger.info(f"✅ Updated settings for user {current_user.user_id}")
    return updated
