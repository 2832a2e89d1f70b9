# CRUD operations package

from .file import file_crud
from .folder import folder_crud
from .collection import collection_crud
from .profile import profile_crud

__all__ = [
    'file_crud',
    'folder_crud',
    'collection_crud',
    'profile_crud'
]
