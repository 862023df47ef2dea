"""Infrastructure models package exports."""
from .base import Base, metadata
from .chat_message import ChatMessageModel
from .post import PostModel, CommentModel

__all__ = [
    "Base",
    "metadata",
    "ChatMessageModel",
    "PostModel",
    "CommentModel",
]
