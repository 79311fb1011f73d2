"""Composite message IDs.

A cached message is keyed by ``{userPrefix}#{accountId}#{providerId}``. The
user segment is the full user ID unless a prefix length is configured.
"""

from __future__ import annotations

from pydantic import BaseModel

from mail_cache_engine.exceptions import MalformedIdError, MissingParameterError

SEPARATOR = "#"


class CompositeId(BaseModel):
    user_prefix: str
    account_id: str
    provider_id: str


class CompositeIdCodec:
    """Composes and decomposes the composite IDs of one user."""

    def __init__(self, user_id: str, prefix_length: int | None = None) -> None:
        if not user_id:
            raise MissingParameterError("Required parameter missing: user_id")
        self.user_id = user_id
        self.user_prefix = user_id if prefix_length is None else user_id[:prefix_length]

    def compose(self, account_id: str, provider_id: str) -> str:
        if not account_id:
            raise MissingParameterError("Required parameter missing: account_id")
        if not provider_id:
            raise MissingParameterError("Required parameter missing: provider_id")
        return SEPARATOR.join((self.user_prefix, account_id, provider_id))

    def decompose(self, id: str) -> CompositeId:
        """Split a composite ID into its three segments.

        Any ``#`` after the second separator stays in the provider ID.

        Raises:
            MissingParameterError: If id is empty.
            MalformedIdError: If id has fewer than three segments.
        """
        if not id:
            raise MissingParameterError("Required parameter missing: id")
        parts = id.split(SEPARATOR, 2)
        if len(parts) < 3:
            raise MalformedIdError(f"Malformed composite ID: {id!r}")
        return CompositeId(user_prefix=parts[0], account_id=parts[1], provider_id=parts[2])
