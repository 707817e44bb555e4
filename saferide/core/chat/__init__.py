# saferide/core/chat/__init__.py
from saferide.core.chat.repository import ChatRepository

__all__ = ["ChatRepository"]
