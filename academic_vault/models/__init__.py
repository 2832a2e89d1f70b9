# Database models package

from .base import Base
from .folder import Folder
from .file import File
from .collection import Collection
from .profile import Profile

__all__ = [
    'Base',
    'Folder',
    'File',
    'Collection',
    'Profile'
]
