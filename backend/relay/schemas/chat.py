from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., min_length=1)
    # Empty falls back to the shared session; otherwise the agent runtime's id alphabet.
    session_id: str | None = Field(
        default=None,
        max_length=100,
        pattern=r"^[0-9a-zA-Z._:-]*$",
        alias="sessionId",
    )
    user_id: str | None = Field(default=None, alias="userId")


class ChatResponse(BaseModel):
    ok: bool = True
    text: str
