"""Linked account and user context models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class LinkedAccount(BaseModel):
    """A mail account linked to a user."""

    account_id: str = Field(description="Account identifier, unique per user")
    type: str = Field(description="Provider type, e.g. 'google'")
    token: str | None = Field(default=None, description="OAuth refresh token")
    email: str | None = Field(default=None, description="Mailbox address, if known")


class UserContext(BaseModel):
    """Background knowledge injected into enrichment prompts."""

    contacts: list[str] = Field(
        default_factory=list, description="Known contacts formatted as 'Name <address>'"
    )
    knowledge: list[str] = Field(default_factory=list, description="General knowledge notes")

    def contacts_block(self) -> str:
        return ",".join(self.contacts)

    def knowledge_block(self) -> str:
        return "\n".join(self.knowledge)
