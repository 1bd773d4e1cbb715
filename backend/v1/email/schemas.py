"""
Request schemas for the transactional email endpoints.
"""

from pydantic import BaseModel, Field


class WelcomeEmailRequest(BaseModel):
    """Schema for queueing a welcome email."""

    email: str = Field(..., min_length=1, max_length=320, description="Recipient address")


class InviteEmailRequest(BaseModel):
    """Schema for queueing an organization invite email."""

    email: str = Field(..., min_length=1, max_length=320, description="Recipient address")
    accept_url: str = Field(..., min_length=1, description="Link that accepts the invite")
    org_name: str | None = Field(None, max_length=200, description="Inviting organization")
