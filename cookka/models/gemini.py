from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ChatTurn(BaseModel):
    # "user" or "model"; anything else, including a missing role, is sent as "model"
    role: Any = None
    text: str


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(min_length=1)
    conversation_history: list[ChatTurn] = Field(
        default_factory=list, alias="conversationHistory"
    )


class OcrRequest(BaseModel):
    image: str = Field(min_length=1)


class ExpirationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    item_name: str = Field(min_length=1, alias="itemName")


class RecipeNameRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str | None = None
    description: str | None = None
    pinned_comment: str | None = Field(default=None, alias="pinnedComment")


class TextResponse(BaseModel):
    text: str


class ExpirationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    expiration_days: int = Field(gt=0, alias="expirationDays")


class RecipeNameResponse(BaseModel):
    name: str
    color: str | None = None


class ErrorResponse(BaseModel):
    error: str
    details: str | None = None


class RecipeStructureRequest(BaseModel):
    text: str = Field(min_length=1)


class RecipeStructureResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    color: str | None = None
    cleaned_text: str = Field(default="", alias="cleanedText")
    recipe: str = ""
    method: str = ""
