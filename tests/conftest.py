"""
Shared pytest fixtures for Academic Vault tests.

Provides:
- In-memory data gateway and vault controllers (private and shared scope)
- Identity fixtures (verified student, guest, unverified)
- A scripted fake AI gateway
- Factories for file and folder records
- An API client built around the fakes
"""

import uuid
import pytest
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from fastapi.testclient import TestClient

from academic_vault.core.auth import get_current_user
from academic_vault.core.exceptions import AIGenerationError
from academic_vault.main import create_app
from academic_vault.schemas.auth import Identity, TokenData
from academic_vault.schemas.file import FileMeta, FileStatus, FileType, VaultFile, Visibility
from academic_vault.schemas.folder import Folder
from academic_vault.schemas.profile import Role
from academic_vault.services.ai_gateway import AIGateway
from academic_vault.services.data_gateway import InMemoryVaultGateway
from academic_vault.services.vault_controller import VaultStateController

OWNER_ID = "11111111-1111-1111-1111-111111111111"
OTHER_ID = "22222222-2222-2222-2222-222222222222"

BASE_TIME = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)


# ============================================================================
# Fakes
# ============================================================================

class FakeAIGateway(AIGateway):
    """Records prompts and answers from a script"""

    def __init__(self):
        self.prompts: List[str] = []
        self.schemas: List[Optional[dict]] = []
        self.chat_calls: List[dict] = []
        self.text_response = "Generated text"
        self.structured_response = {
            "flashcards": [
                {"question": "What is consolidation?", "answer": "Stabilizing new memories"},
                {"question": "Which sleep stage?", "answer": "Slow-wave sleep"},
            ]
        }
        self.chat_response = "Happy to help with that."
        self.fail_with: Optional[Exception] = None

    async def generate(self, prompt, output_schema=None):
        if self.fail_with:
            raise self.fail_with
        self.prompts.append(prompt)
        self.schemas.append(output_schema)
        return self.structured_response if output_schema else self.text_response

    async def chat(self, system_instruction, history, message):
        if self.fail_with:
            raise self.fail_with
        self.chat_calls.append({
            "system_instruction": system_instruction,
            "history": list(history),
            "message": message,
        })
        return self.chat_response

    def fail(self, detail: str = "model overloaded"):
        self.fail_with = AIGenerationError(detail)


# ============================================================================
# Identities
# ============================================================================

@pytest.fixture
def identity() -> Identity:
    return Identity(user_id=OWNER_ID, email="student@example.edu", email_verified=True, role=Role.STUDENT)


@pytest.fixture
def other_identity() -> Identity:
    return Identity(user_id=OTHER_ID, email="peer@example.edu", email_verified=True, role=Role.STUDENT)


@pytest.fixture
def guest_identity() -> Identity:
    return Identity(user_id=OTHER_ID, email="guest@example.edu", email_verified=True, role=Role.GUEST)


@pytest.fixture
def unverified_identity() -> Identity:
    return Identity(user_id=OTHER_ID, email="new@example.edu", email_verified=False, role=Role.STUDENT)


# ============================================================================
# Gateways and controllers
# ============================================================================

@pytest.fixture
def gateway() -> InMemoryVaultGateway:
    return InMemoryVaultGateway()


@pytest.fixture
def controller(gateway, identity) -> VaultStateController:
    return VaultStateController(gateway, identity)


@pytest.fixture
def shared_controller(gateway, other_identity) -> VaultStateController:
    return VaultStateController(gateway, other_identity, scope=Visibility.SHARED)


@pytest.fixture
def fake_ai() -> FakeAIGateway:
    return FakeAIGateway()


# ============================================================================
# Record factories
# ============================================================================

@pytest.fixture
def make_file():
    """Build a VaultFile; `age` in minutes pushes created_at into the past"""
    def _make(
        title: str = "notes.pdf",
        folder_id: Optional[str] = None,
        owner_id: str = OWNER_ID,
        age: int = 0,
        status: FileStatus = FileStatus.READY,
        visibility: Visibility = Visibility.PRIVATE,
        storage_path: Optional[str] = None,
        **overrides,
    ) -> VaultFile:
        created = BASE_TIME - timedelta(minutes=age)
        fields = dict(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            folder_id=folder_id,
            title=title,
            type=FileType.PDF,
            size=1024,
            status=status,
            progress=100 if status == FileStatus.READY else 0,
            visibility=visibility,
            created_at=created,
            updated_at=created,
            meta=FileMeta(storage_path=storage_path) if storage_path else None,
        )
        fields.update(overrides)
        return VaultFile(**fields)
    return _make


@pytest.fixture
def make_folder():
    def _make(
        title: str,
        parent: Optional[Folder] = None,
        owner_id: str = OWNER_ID,
        visibility: Visibility = Visibility.PRIVATE,
    ) -> Folder:
        return Folder(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            title=title,
            parent_id=parent.id if parent else None,
            visibility=parent.visibility if parent else visibility,
            path=parent.path + [parent.id] if parent else [],
            created_at=BASE_TIME,
            updated_at=BASE_TIME,
        )
    return _make


# ============================================================================
# API client
# ============================================================================

@pytest.fixture
def token_data() -> TokenData:
    return TokenData(user_id=OWNER_ID, email="student@example.edu", email_verified=True, display_name="Sam")


@pytest.fixture
def app(gateway, fake_ai, token_data):
    app = create_app(gateway=gateway, ai_gateway=fake_ai)
    app.dependency_overrides[get_current_user] = lambda: token_data
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
