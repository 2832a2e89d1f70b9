from fastapi import APIRouter, Depends
import logging

from academic_vault.core.auth import get_current_user
from academic_vault.core.deps import get_ai_gateway
from academic_vault.core.session_registry import get_vault_controller
from academic_vault.schemas.ai import AnalysisFeature, ChatRequest, QuickStudyRequest, QuickStudyResponse
from academic_vault.schemas.auth import TokenData
from academic_vault.schemas.file import VaultFile
from academic_vault.services.ai_gateway import AIGateway
from academic_vault.services.analysis_service import FileAnalysisService, quick_study
from academic_vault.services.vault_controller import VaultStateController

logger = logging.getLogger(__name__)

router = APIRouter()


def get_analysis_service(
    controller: VaultStateController = Depends(get_vault_controller),
    ai: AIGateway = Depends(get_ai_gateway),
) -> FileAnalysisService:
    return FileAnalysisService(controller, ai)


@router.post("/files/{file_id}/ai/{feature}", response_model=VaultFile)
async def generate_analysis(
    file_id: str,
    feature: AnalysisFeature,
    service: FileAnalysisService = Depends(get_analysis_service),
):
    """Generate one AI artifact for the file and cache it in ai_content"""
    return await service.generate(file_id, feature)


@router.post("/files/{file_id}/chat", response_model=VaultFile)
async def chat_about_file(
    file_id: str,
    chat_request: ChatRequest,
    service: FileAnalysisService = Depends(get_analysis_service),
):
    return await service.send_chat_message(file_id, chat_request.message)


@router.post("/quick-study", response_model=QuickStudyResponse)
async def run_quick_study(
    request: QuickStudyRequest,
    current_user: TokenData = Depends(get_current_user),
    ai: AIGateway = Depends(get_ai_gateway),
):
    logger.info(f"📚 Quick study ({request.tool.value}) for user {current_user.user_id}")
    result = await quick_study(ai, request.text, request.tool)
    return QuickStudyResponse(tool=request.tool, result=result)
