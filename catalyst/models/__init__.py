from catalyst.models.conversation import Conversation, Message
from catalyst.models.user import User

__all__ = ["Conversation", "Message", "User"]
