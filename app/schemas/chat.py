from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from app.core.enums import ChatType, MessageType
from app.schemas.user import UserBrief


class ChatCreate(BaseModel):
    type: ChatType = ChatType.DIRECT
    name: str | None = Field(default=None, max_length=255)
    participant_ids: list[int] = Field(min_length=1)

    @model_validator(mode="after")
    def check_shape(self):
        if self.type == ChatType.DIRECT and len(self.participant_ids) != 1:
            raise ValueError("a direct chat has exactly one other participant")
        if self.type == ChatType.GROUP and not self.name:
            raise ValueError("a group chat needs a name")
        return self


class MessageCreate(BaseModel):
    content: str = Field(min_length=1)
    type: MessageType = MessageType.TEXT
    reply_to_id: int | None = None


class MessageUpdate(BaseModel):
    content: str = Field(min_length=1)


class MessageForward(BaseModel):
    target_chat_id: int
    content: str | None = Field(default=None, min_length=1)


class MessageRead(BaseModel):
    id: int
    chat_id: int
    sender_id: int
    content: str
    type: str
    reply_to_id: int | None = None
    is_edited: bool
    is_deleted: bool
    created_at: datetime
    edited_at: datetime | None = None

    class Config:
        from_attributes = True


class ChatRead(BaseModel):
    id: int
    name: str | None = None
    type: str
    created_at: datetime
    updated_at: datetime
    participants: list[UserBrief] = []
    last_message: MessageRead | None = None
    unread_count: int = 0
