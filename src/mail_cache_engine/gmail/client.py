"""Gmail API client implementation.

This module provides the mail source for one linked Google account.

Notes:
    The Google API client is synchronous. This project wraps those calls using
    `asyncio.to_thread` so the rest of the codebase can remain async-friendly.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from mail_cache_engine.config import Settings
from mail_cache_engine.exceptions import AuthenticationError, GmailAPIError
from mail_cache_engine.gmail.parsing import message_to_fetched_message
from mail_cache_engine.mail_source import MailSourceFactory
from mail_cache_engine.models import FetchedMessage, LinkedAccount

logger = structlog.get_logger()


class GmailClient:
    """Gmail mail source for a single linked account.

    Credentials are built from the account's stored refresh token and the
    application's OAuth client. A prebuilt service object can be injected,
    which is how the unit tests drive this class.
    """

    def __init__(
        self,
        account: LinkedAccount,
        settings: Settings | None = None,
        service: Any | None = None,
    ) -> None:
        """Initialize Gmail client.

        Args:
            account: The linked account whose mailbox is accessed.
            settings: Application settings. If None, uses default settings.
            service: Prebuilt Gmail API service. If None, one is built on authenticate().
        """
        from mail_cache_engine.config import get_settings

        self.settings = settings or get_settings()
        self.account = account
        self._service: Any | None = service
        self._email: str | None = account.email
        logger.info("gmail_client_initialized", account_id=account.account_id)

    async def authenticate(self) -> None:
        """Build the Gmail service from the account's refresh token.

        Raises:
            AuthenticationError: If the account has no token or authentication fails.
        """

        if self._service is not None:
            return

        if not self.account.token:
            raise AuthenticationError(f"Account {self.account.account_id} has no refresh token")

        logger.info(
            "gmail_authentication_started",
            account_id=self.account.account_id,
            scope=self.settings.gmail_scope,
        )

        try:
            self._service = await asyncio.to_thread(self._build_service, self.account.token)
        except Exception as exc:  # noqa: BLE001
            logger.exception("gmail_authentication_failed", error=str(exc))
            raise AuthenticationError(str(exc)) from exc

        logger.info("gmail_authentication_completed", account_id=self.account.account_id)

    async def list_message_ids_by_label(self, label: str) -> list[str]:
        """List every message ID under a label, following pagination.

        Raises:
            GmailAPIError: If the API request fails.
        """

        await self._ensure_authenticated()
        logger.info("listing_messages", account_id=self.account.account_id, label=label)

        try:
            return await asyncio.to_thread(self._list_ids_sync, label)
        except Exception as exc:  # noqa: BLE001
            logger.exception("gmail_list_messages_failed", label=label, error=str(exc))
            raise GmailAPIError(str(exc)) from exc

    async def fetch_message(self, provider_id: str) -> FetchedMessage:
        """Fetch and parse a full message.

        Raises:
            GmailAPIError: If the API request fails.
        """

        await self._ensure_authenticated()
        logger.debug("getting_message", message_id=provider_id)

        try:
            raw = await asyncio.to_thread(self._get_message_sync, provider_id)
            email = await self._account_email()
        except GmailAPIError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.exception("gmail_get_message_failed", message_id=provider_id, error=str(exc))
            raise GmailAPIError(str(exc)) from exc

        return message_to_fetched_message(raw, email)

    async def move_to_trash(self, provider_id: str) -> None:
        await self._run("trash", self._trash_sync, provider_id)

    async def move_to_junk(self, provider_id: str) -> None:
        await self._run(
            "junk", self._modify_sync, provider_id, {"addLabelIds": ["SPAM"], "removeLabelIds": ["INBOX"]}
        )

    async def remove_from_inbox(self, provider_id: str) -> None:
        await self._run("archive", self._modify_sync, provider_id, {"removeLabelIds": ["INBOX"]})

    async def _run(self, action: str, fn: Any, *args: Any) -> None:
        await self._ensure_authenticated()
        logger.info("gmail_message_action", action=action, message_id=args[0])
        try:
            await asyncio.to_thread(fn, *args)
        except Exception as exc:  # noqa: BLE001
            logger.exception("gmail_message_action_failed", action=action, error=str(exc))
            raise GmailAPIError(str(exc)) from exc

    async def _account_email(self) -> str | None:
        if self._email is None:
            try:
                profile = await asyncio.to_thread(self._get_profile_sync)
            except Exception as exc:  # noqa: BLE001
                raise GmailAPIError(str(exc)) from exc
            self._email = profile.get("emailAddress")
        return self._email

    async def _ensure_authenticated(self) -> None:
        if self._service is None:
            await self.authenticate()

    def _build_service(self, refresh_token: str) -> Any:
        # Imported lazily to keep import-time cost low and tests fast.
        from google.auth.transport.requests import Request
        from google.oauth2.credentials import Credentials
        from googleapiclient.discovery import build

        creds = Credentials(
            token=None,
            refresh_token=refresh_token,
            client_id=self.settings.gmail_client_id,
            client_secret=self.settings.gmail_client_secret,
            token_uri=self.settings.gmail_token_uri,
            scopes=[self.settings.gmail_scope],
        )
        creds.refresh(Request())

        # cache_discovery=False prevents writing discovery docs to disk.
        return build("gmail", "v1", credentials=creds, cache_discovery=False)

    def _list_ids_sync(self, label: str) -> list[str]:
        assert self._service is not None
        ids: list[str] = []

        page_token: str | None = None
        while True:
            request = (
                self._service.users()
                .messages()
                .list(
                    userId="me",
                    labelIds=[label],
                    maxResults=self.settings.gmail_page_size,
                    pageToken=page_token,
                )
            )
            response = request.execute()
            ids.extend(m["id"] for m in response.get("messages", []) or [])
            page_token = response.get("nextPageToken")
            if page_token is None:
                break

        return ids

    def _get_message_sync(self, provider_id: str) -> dict[str, Any]:
        assert self._service is not None
        return self._service.users().messages().get(userId="me", id=provider_id, format="full").execute()

    def _get_profile_sync(self) -> dict[str, Any]:
        assert self._service is not None
        return self._service.users().getProfile(userId="me").execute()

    def _trash_sync(self, provider_id: str) -> None:
        assert self._service is not None
        self._service.users().messages().trash(userId="me", id=provider_id).execute()

    def _modify_sync(self, provider_id: str, body: dict[str, list[str]]) -> None:
        assert self._service is not None
        self._service.users().messages().modify(userId="me", id=provider_id, body=body).execute()


def gmail_source_factory(settings: Settings | None = None) -> MailSourceFactory:
    """Return a factory that builds an authenticated GmailClient per account."""

    async def factory(account: LinkedAccount) -> GmailClient:
        client = GmailClient(account, settings=settings)
        await client.authenticate()
        return client

    return factory
