from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ChatRole = Literal["user", "assistant"]


class ChatTurn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    role: ChatRole = Field(..., description="Author of the turn; system instructions are never persisted")
    content: str = Field(..., description="Turn text")
    image_data_url: str | None = Field(
        default=None,
        alias="imageDataUrl",
        description="Inline data URL image, only ever set on user turns",
    )

    def to_wire(self) -> dict[str, str]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ConversationState(BaseModel):
    messages: list[ChatTurn] = Field(default_factory=list, description="Chronological chat history")

    def to_wire(self) -> dict[str, list[dict[str, str]]]:
        return {"messages": [turn.to_wire() for turn in self.messages]}


class ConversationStateResponse(BaseModel):
    messages: list[ChatTurn] = Field(..., description="Full persisted history for the session")
