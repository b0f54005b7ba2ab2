from .base import BaseStore
from .github import GitHubStore
from .local import LocalStore
from .memory import MemoryStore
from .s3 import S3Store

__all__ = ["BaseStore", "GitHubStore", "LocalStore", "MemoryStore", "S3Store"]
