from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    ok: bool = False
    error: str
    kind: str


class HealthResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    service: str
    env: str
    agent_configured: bool = Field(..., alias="agentConfigured")
    bucket_configured: bool = Field(..., alias="bucketConfigured")
