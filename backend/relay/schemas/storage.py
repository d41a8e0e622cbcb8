from pydantic import BaseModel, ConfigDict, Field


class PresignRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    filename: str = Field(..., min_length=1)
    content_type: str = Field(..., min_length=1, alias="contentType")
    user_id: str | None = Field(default=None, alias="userId")


class PresignResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    bucket: str
    key: str
    upload_url: str = Field(..., alias="uploadUrl")
    expires_in: int = Field(..., alias="expiresIn")
