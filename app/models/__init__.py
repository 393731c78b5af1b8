from app.models.chat_message import ChatMessage
from app.models.context_data import ContextChatMessage, ContextUrl
from app.models.leo_question import LeoQuestion
from app.models.url import Url
from app.models.user import User
from app.models.user_context import UserContext

__all__ = [
    "ChatMessage",
    "ContextChatMessage",
    "ContextUrl",
    "LeoQuestion",
    "Url",
    "User",
    "UserContext",
]
