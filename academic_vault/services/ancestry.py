from typing import Iterable, List, Optional
import logging

from academic_vault.core.exceptions import AncestryUnavailableError, NotFoundError
from academic_vault.schemas.folder import Folder
from academic_vault.services.data_gateway import VaultDataGateway

logger = logging.getLogger(__name__)


def walk_ancestor_path(folders: Iterable[Folder], folder_id: str) -> List[Folder]:
    """
    Follow parent_id links from folder_id up to the root and return the chain
    root-first. An unknown folder_id yields an empty chain.
    """
    by_id = {f.id: f for f in folders}
    chain: List[Folder] = []
    seen = set()
    current = by_id.get(folder_id)
    while current is not None and current.id not in seen:
        seen.add(current.id)
        chain.append(current)
        current = by_id.get(current.parent_id) if current.parent_id else None
    chain.reverse()
    return chain


async def resolve_ancestor_path(
    gateway: VaultDataGateway,
    folder_id: Optional[str],
    owner_id: Optional[str] = None,
) -> List[Folder]:
    """
    Breadcrumb chain for folder_id: root excluded, folder_id itself included.

    Uses the gateway's single-query lookup and falls back to walking the
    owner's full folder set when that query is unavailable. Both raise
    NotFoundError for a folder that is missing or, when owner_id is given,
    belongs to someone else.
    """
    if folder_id is None:
        return []

    try:
        return await gateway.get_folder_path(folder_id, owner_id)
    except AncestryUnavailableError as e:
        logger.warning(f"⚠️ Ancestor query unavailable for folder {folder_id}, walking parents instead: {e}")

    folders = await gateway.list_all_folders(owner_id)
    chain = walk_ancestor_path(folders, folder_id)
    if not chain:
        raise NotFoundError("Folder")
    return chain
