"""Models for Gemini generateContent responses."""

from pydantic import BaseModel, ConfigDict, Field


class GeminiPart(BaseModel):
    """Single content part of a candidate."""

    model_config = ConfigDict(extra="ignore")

    text: str | None = None


class GeminiContent(BaseModel):
    """Candidate content."""

    model_config = ConfigDict(extra="ignore")

    parts: list[GeminiPart] = Field(default_factory=list)


class GeminiCandidate(BaseModel):
    """Single generation candidate."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    content: GeminiContent | None = None
    finish_reason: str | None = Field(default=None, alias="finishReason")


class GenerateContentResponse(BaseModel):
    """Response envelope of the generateContent endpoint."""

    model_config = ConfigDict(extra="ignore")

    candidates: list[GeminiCandidate] = Field(default_factory=list)

    def first_text(self) -> str | None:
        """Return the text of the first part of the first candidate."""
        if not self.candidates:
            return None
        content = self.candidates[0].content
        if content is None or not content.parts:
            return None
        return content.parts[0].text

    def finish_reason(self) -> str | None:
        """Return the first candidate's finish reason."""
        if not self.candidates:
            return None
        return self.candidates[0].finish_reason


class GeminiErrorDetail(BaseModel):
    """Error object returned on non-success statuses."""

    model_config = ConfigDict(extra="ignore")

    code: int | None = None
    message: str | None = None
    status: str | None = None


class GeminiErrorResponse(BaseModel):
    """Error envelope returned on non-success statuses."""

    model_config = ConfigDict(extra="ignore")

    error: GeminiErrorDetail | None = None
