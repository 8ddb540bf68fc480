"""
Google credentials — bearer tokens for the Chat and Pub/Sub REST APIs.

With a credentials path, a service-account key file is used (optionally
impersonating a user via domain-wide delegation). Without one, Application
Default Credentials are used. Token refresh is blocking, so it runs in
the default executor.
"""

from __future__ import annotations

import asyncio
import logging

import google.auth
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from courier.core.errors import ConfigError

logger = logging.getLogger(__name__)

CHAT_BOT_SCOPE = "https://www.googleapis.com/auth/chat.bot"
PUBSUB_SCOPE = "https://www.googleapis.com/auth/pubsub"
REACTIONS_SCOPE = "https://www.googleapis.com/auth/chat.messages.reactions.create"


class GoogleTokenSource:
    """
    Usage:
        tokens = GoogleTokenSource([CHAT_BOT_SCOPE, PUBSUB_SCOPE], "key.json")
        headers = {"Authorization": f"Bearer {await tokens.token()}"}
    """

    def __init__(
        self,
        scopes: list[str],
        credentials_path: str = "",
        subject: str = "",
    ) -> None:
        if subject and not credentials_path:
            raise ConfigError("Impersonating a user requires GOOGLE_APPLICATION_CREDENTIALS")
        self._scopes = scopes
        self._credentials_path = credentials_path
        self._subject = subject
        self._credentials = None
        self._project_id: str | None = None

    def _load(self):
        if self._credentials is None:
            if self._credentials_path:
                creds = service_account.Credentials.from_service_account_file(
                    self._credentials_path,
                    scopes=self._scopes,
                    subject=self._subject or None,
                )
                self._project_id = creds.project_id
            else:
                creds, self._project_id = google.auth.default(scopes=self._scopes)
            self._credentials = creds
        return self._credentials

    @property
    def project_id(self) -> str | None:
        self._load()
        return self._project_id

    async def token(self) -> str:
        creds = self._load()
        if not creds.valid:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, creds.refresh, Request())
            logger.debug("Google access token refreshed")
        return creds.token
