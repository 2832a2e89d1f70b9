from fastapi import APIRouter, HTTPException, Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from academic_vault.schemas.auth import (
    UserSignUp,
    UserSignIn,
    AuthResponse,
    Identity,
    TokenData,
    SignOutResponse,
    MeResponse,
)
from academic_vault.services.supabase_service import supabase_service
from academic_vault.services.data_gateway import VaultDataGateway
from academic_vault.core.auth import get_current_user, get_current_identity, get_profile_for_user
from academic_vault.core.deps import get_gateway
from academic_vault.core.session_registry import VaultSessionRegistry, get_session_registry
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def convert_supabase_session(session, user) -> Optional[Dict[str, Any]]:
    """Convert Supabase session and user objects to our format"""
    if not session or not user:
        return None

    return {
        "access_token": getattr(session, 'access_token', ''),
        "refresh_token": getattr(session, 'refresh_token', ''),
        "expires_in": getattr(session, 'expires_in', 3600),
        "token_type": getattr(session, 'token_type', 'bearer'),
        "user": {
            "id": getattr(user, 'id', ''),
            "email": getattr(user, 'email', ''),
            "email_confirmed_at": getattr(user, 'email_confirmed_at', None),
            "last_sign_in_at": getattr(user, 'last_sign_in_at', None),
            "created_at": getattr(user, 'created_at', None),
            "updated_at": getattr(user, 'updated_at', None),
            "user_metadata": getattr(user, 'user_metadata', {})
        }
    }


router = APIRouter()


@router.post(
    "/signup",
    response_model=AuthResponse,
    summary="Sign up new user",
    description="Create a new account; uploads stay locked until the email address is verified",
)
async def sign_up(user_data: UserSignUp):
    result = await supabase_service.sign_up(
        email=user_data.email,
        password=user_data.password,
        display_name=user_data.display_name,
    )

    if not result["success"]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=result.get("error", "Sign up failed")
        )

    return AuthResponse(
        success=True,
        message="User created successfully. Please check your email for verification.",
        session=convert_supabase_session(result.get("session"), result.get("user"))
    )


@router.post(
    "/signin",
    response_model=AuthResponse,
    summary="Sign in user",
    description="Authenticate user with email and password",
)
async def sign_in(user_credentials: UserSignIn):
    result = await supabase_service.sign_in(
        email=user_credentials.email,
        password=user_credentials.password
    )

    if not result["success"]:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=result.get("error", "Invalid credentials")
        )

    return AuthResponse(
        success=True,
        message="Signed in successfully",
        session=convert_supabase_session(result.get("session"), result.get("user"))
    )


@router.post(
    "/signout",
    response_model=SignOutResponse,
    summary="Sign out user",
    description="Sign out the current user and drop their vault view state",
)
async def sign_out(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    current_user: TokenData = Depends(get_current_user),
    registry: VaultSessionRegistry = Depends(get_session_registry),
):
    result = await supabase_service.sign_out(credentials.credentials)
    dropped = registry.remove_user(current_user.user_id)
    logger.info(f"👋 User {current_user.user_id} signed out ({dropped} vault session(s) dropped)")
    return SignOutResponse(
        success=True,
        message=result.get("message", "Signed out successfully")
    )


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Get current user info",
    description="Identity and profile of the authenticated user",
)
async def get_current_user_info(
    current_user: TokenData = Depends(get_current_user),
    identity: Identity = Depends(get_current_identity),
    gateway: VaultDataGateway = Depends(get_gateway),
):
    profile = await get_profile_for_user(gateway, current_user)
    return MeResponse(identity=identity, profile=profile)
