from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
import asyncio
import logging

from academic_vault.services.supabase_service import supabase_service
from academic_vault.services.data_gateway import VaultDataGateway
from academic_vault.schemas.auth import Identity, TokenData
from academic_vault.schemas.profile import Role, UserProfile
from academic_vault.core.config import settings
from academic_vault.core.deps import get_gateway

logger = logging.getLogger(__name__)

security = HTTPBearer()


def decode_access_token(token: str) -> TokenData:
    """Verify a provider-issued JWT locally; raises JWTError when invalid"""
    payload = jwt.decode(
        token,
        settings.jwt_secret_key,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
    )
    user_id = payload.get("sub")
    if not user_id:
        raise JWTError("Token has no subject")
    user_metadata = payload.get("user_metadata") or {}
    return TokenData(
        user_id=user_id,
        email=payload.get("email"),
        email_verified=bool(user_metadata.get("email_verified", False)),
        display_name=user_metadata.get("display_name"),
    )


async def verify_token(credentials: HTTPAuthorizationCredentials = Depends(security)) -> TokenData:
    """Verify JWT token and return user data"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    token = credentials.credentials

    # Local verification first (no network call)
    try:
        return decode_access_token(token)
    except JWTError as decode_error:
        logger.warning(f"⚠️ JWT verification failed, asking Supabase: {decode_error}")

    try:
        user_result = await asyncio.wait_for(supabase_service.get_user(token), timeout=3.0)
    except asyncio.TimeoutError:
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail="Authentication service timeout"
        )
    except RuntimeError as e:
        logger.error(f"❌ Auth error: {e}")
        raise credentials_exception

    if not user_result["success"] or not user_result.get("user"):
        raise credentials_exception

    user = user_result["user"]
    metadata = getattr(user, "user_metadata", None) or {}
    return TokenData(
        user_id=user.id,
        email=user.email,
        email_verified=getattr(user, "email_confirmed_at", None) is not None,
        display_name=metadata.get("display_name"),
    )


async def get_current_user(token_data: TokenData = Depends(verify_token)) -> TokenData:
    """Get current authenticated user"""
    return token_data


async def get_profile_for_user(gateway: VaultDataGateway, token_data: TokenData) -> UserProfile:
    """Load the user's profile, creating a Student profile on first sight"""
    profile = await gateway.get_profile(token_data.user_id)
    if profile is None:
        display_name = token_data.display_name or (token_data.email or "").split("@")[0] or None
        profile = await gateway.create_profile(
            UserProfile(id=token_data.user_id, display_name=display_name, role=Role.STUDENT)
        )
        logger.info(f"✅ Created profile for user {token_data.user_id}")
    return profile


async def get_current_identity(
    current_user: TokenData = Depends(get_current_user),
    gateway: VaultDataGateway = Depends(get_gateway),
) -> Identity:
    """Authenticated user together with the role recorded on their profile"""
    profile = await get_profile_for_user(gateway, current_user)
    return Identity(
        user_id=current_user.user_id,
        email=current_user.email,
        email_verified=current_user.email_verified,
        role=profile.role,
    )
