from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple
import time

from fastapi import Depends, Request

from academic_vault.core.auth import get_current_identity
from academic_vault.core.config import settings
from academic_vault.core.deps import get_gateway
from academic_vault.schemas.auth import Identity
from academic_vault.schemas.file import Visibility
from academic_vault.services.data_gateway import VaultDataGateway
from academic_vault.services.vault_controller import VaultStateController


@dataclass
class VaultSession:
    controller: VaultStateController
    started_at: datetime
    last_used_monotonic: float


class VaultSessionRegistry:
    """In-memory registry of per-user vault view state.

    Each user gets one controller per scope (private vault, shared vault), so
    navigation and selection survive between requests. Per-process memory
    only: with several workers each keeps its own sessions. Sessions idle for
    longer than max_idle_seconds are dropped whenever a controller is handed out.
    """

    def __init__(self, max_idle_seconds: Optional[float] = None) -> None:
        self._sessions: Dict[Tuple[str, Visibility], VaultSession] = {}
        if max_idle_seconds is None:
            max_idle_seconds = settings.session_idle_minutes * 60
        self.max_idle_seconds = max_idle_seconds

    def get_controller(self, identity: Identity, gateway: VaultDataGateway, scope: Visibility = Visibility.PRIVATE) -> VaultStateController:
        self.prune_idle(self.max_idle_seconds)
        key = (identity.user_id, scope)
        session = self._sessions.get(key)
        if session is None:
            session = VaultSession(
                controller=VaultStateController(gateway, identity, scope=scope),
                started_at=datetime.now(timezone.utc),
                last_used_monotonic=time.monotonic(),
            )
            self._sessions[key] = session
        # Role or verification status may have changed since the last request
        session.controller.identity = identity
        session.last_used_monotonic = time.monotonic()
        return session.controller

    def has_session(self, user_id: str, scope: Visibility = Visibility.PRIVATE) -> bool:
        return (user_id, scope) in self._sessions

    def remove_user(self, user_id: str) -> int:
        """Drop every session of a user (e.g., on sign-out)"""
        keys = [key for key in self._sessions if key[0] == user_id]
        for key in keys:
            del self._sessions[key]
        return len(keys)

    def prune_idle(self, max_idle_seconds: float) -> int:
        now = time.monotonic()
        keys = [key for key, s in self._sessions.items() if now - s.last_used_monotonic >= max_idle_seconds]
        for key in keys:
            del self._sessions[key]
        return len(keys)


def get_session_registry(request: Request) -> VaultSessionRegistry:
    return request.app.state.sessions


async def get_vault_controller(
    identity: Identity = Depends(get_current_identity),
    gateway: VaultDataGateway = Depends(get_gateway),
    registry: VaultSessionRegistry = Depends(get_session_registry),
) -> VaultStateController:
    return registry.get_controller(identity, gateway, Visibility.PRIVATE)


async def get_shared_controller(
    identity: Identity = Depends(get_current_identity),
    gateway: VaultDataGateway = Depends(get_gateway),
    registry: VaultSessionRegistry = Depends(get_session_registry),
) -> VaultStateController:
    return registry.get_controller(identity, gateway, Visibility.SHARED)
