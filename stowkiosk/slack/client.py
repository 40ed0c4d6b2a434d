"""Slack SDK wrapper with retry logic for Stow Kiosk."""

import os
from typing import Any, Dict, List, Optional

import requests
from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError
from slack_sdk.http_retry.builtin_handlers import RateLimitErrorRetryHandler

from ..errors import UpstreamError
from ..utils.decorators import retry
from ..utils.logging_config import get_logger


logger = get_logger('stowkiosk.slack')


class SlackClient:
    """Slack client with automatic retry and rate limit handling."""

    DEFAULT_MAX_RETRIES = 3
    RESPONSE_TIMEOUT_SEC = 10

    def __init__(
        self,
        bot_token: Optional[str] = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_backoff_sec: Optional[List[float]] = None,
    ):
        """Initialize Slack client.

        Args:
            bot_token: Slack bot token (reads from env if not provided)
            max_retries: Retries on HTTP 429, and attempts for response_url posts
            retry_backoff_sec: Delays between response_url attempts
        """
        self.bot_token = bot_token or os.environ.get('SLACK_BOT_TOKEN')
        self.max_retries = max_retries
        self.retry_backoff_sec = retry_backoff_sec or [1, 2]

        self.client = None
        if self.bot_token:
            self.client = WebClient(token=self.bot_token)
            self.client.retry_handlers.append(
                RateLimitErrorRetryHandler(max_retry_count=max_retries)
            )

    def is_configured(self) -> bool:
        """Check if client is properly configured."""
        return self.client is not None

    def post_message(
        self,
        channel: str,
        blocks: List[Dict[str, Any]],
        text: str = ''
    ) -> Dict[str, Any]:
        """Post a Block Kit message to a channel.

        Args:
            channel: Channel ID
            blocks: Block Kit blocks
            text: Notification fallback text

        Returns:
            Slack API response data

        Raises:
            UpstreamError: If the client is not configured or Slack rejects the call
        """
        if not self.is_configured():
            raise UpstreamError('Slack client not configured')

        try:
            response = self.client.chat_postMessage(channel=channel, blocks=blocks, text=text)
        except SlackApiError as e:
            error = e.response.get('error') if e.response is not None else str(e)
            raise UpstreamError(f'chat.postMessage failed: {error}')

        logger.info('Posted message to channel %s', channel)
        return response.data

    def respond(self, response_url: str, payload: Dict[str, Any]) -> None:
        """Post to an interaction's ``response_url``.

        With ``replace_original`` set the original message is replaced in
        place rather than a new one appended.

        Raises:
            UpstreamError: If Slack cannot be reached or rejects the payload
        """
        try:
            post = retry(
                max_attempts=self.max_retries,
                backoff_seconds=self.retry_backoff_sec,
                exceptions=(requests.ConnectionError, requests.Timeout)
            )(self._post_response)
            post(response_url, payload)
        except requests.RequestException as e:
            raise UpstreamError(f'response_url update failed: {e}')

    def _post_response(self, response_url: str, payload: Dict[str, Any]) -> None:
        response = requests.post(response_url, json=payload, timeout=self.RESPONSE_TIMEOUT_SEC)
        response.raise_for_status()
