from app.services.chat_message_service import ChatMessageService
from app.services.context_data_service import ContextDataService
from app.services.leo_question_service import LeoQuestionService
from app.services.url_service import UrlService
from app.services.user_context_service import UserContextService
from app.services.user_service import UserService

__all__ = [
    "ChatMessageService",
    "ContextDataService",
    "LeoQuestionService",
    "UrlService",
    "UserContextService",
    "UserService",
]
