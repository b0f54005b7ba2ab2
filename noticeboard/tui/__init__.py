from .app import NoticeboardTUI

__all__ = ["NoticeboardTUI"]
