"""Request Schemas — Pydantic models for the REST surface.

Invariants:
    - Wire names are camelCase (eventId, authorPubkey, credibilityScore); Python
      attributes are snake_case via aliases
    - VerifyRequest.content: 1-10000 chars after stripping
    - ZapRequest fields are optional at parse time so the route can report every
      missing field at once (MissingFieldError → 400)
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class VerifyRequest(BaseModel):
    """Manual verification submission."""
    model_config = ConfigDict(populate_by_name=True)

    content: str = Field(min_length=1, max_length=10_000)
    event_id: str | None = Field(None, alias="eventId", max_length=128)

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("content cannot be empty or whitespace")
        return v


class ZapRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_id: str | None = Field(None, alias="eventId")
    author_pubkey: str | None = Field(None, alias="authorPubkey")
    credibility_score: int | None = Field(None, alias="credibilityScore", ge=0, le=100)

    def missing_fields(self) -> list[str]:
        return [
            alias for alias, value in (
                ("eventId", self.event_id),
                ("authorPubkey", self.author_pubkey),
                ("credibilityScore", self.credibility_score),
            )
            if value in (None, "")
        ]
