from realtime_chat.api.schemas.chat import ChatRole, ChatTurn, ConversationState, ConversationStateResponse

__all__ = ["ChatRole", "ChatTurn", "ConversationState", "ConversationStateResponse"]
