from pydantic import BaseModel
from typing import Optional


class AssistantMessageRequest(BaseModel):
    text: str = ""
    # Raw base64 or a data URL ("data:image/jpeg;base64,...")
    image_base64: Optional[str] = None
    image_mime_type: str = "image/jpeg"


class Citation(BaseModel):
    url: str
    title: str = "Source"


class ChatMessage(BaseModel):
    role: str  # "user" | "model"
    text: str


class AssistantTurnResponse(BaseModel):
    reply: str
    kind: str  # "text" | "text_with_update"
    phase: str
    items_applied: int = 0
    sources: list[Citation] = []


class ConversationResponse(BaseModel):
    phase: str
    messages: list[ChatMessage]


class InsightsResponse(BaseModel):
    markdown: str
    generated: bool
