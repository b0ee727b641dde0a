"""Request/response records for the HTTP routes.

Request parsing:
    `generate-text` bodies are validated into `GenerateTextRequest` before the
    normalizer runs. Multipart routes receive their fields through FastAPI form
    parameters, so only the response side is modeled for them.
"""

from pydantic import BaseModel, ConfigDict


class GenerateTextRequest(BaseModel):
    """JSON body of `POST /generate-text`. Unknown fields are ignored."""

    model_config = ConfigDict(extra="ignore")

    prompt: str | None = None


class GenerateResponse(BaseModel):
    """Success body shared by all four routes."""

    output: str


class ErrorResponse(BaseModel):
    """Failure body shared by all four routes."""

    error: str


class HealthResponse(BaseModel):
    status: str
    model: str
