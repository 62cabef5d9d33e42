# leakmon_cli/notifications.py
"""
Alert channels for messages above WARN.

Two channels are supported: a generic JSON webhook built from a payload
template, and a Telegram bot (optionally reached through a SOCKS5 proxy).
Delivery is best-effort: transport failures never reach the caller of
``broadcast``.
"""

import json
import logging
import threading
from typing import Dict, Optional, Tuple, TYPE_CHECKING
from urllib.parse import quote, urlsplit

import requests

from .config import NotificationsConfig
from .exceptions import NotificationError

if TYPE_CHECKING:
    from .alerts import AlertLogger

logger = logging.getLogger('leakmon-cli.notifications')


def build_socks_proxies(address: str, username: Optional[str] = None,
                        password: Optional[str] = None) -> Dict[str, str]:
    """Turn ``host:port`` plus optional credentials into a requests proxies map."""
    try:
        parsed = urlsplit(f"//{address.strip()}")
        host, port = parsed.hostname, parsed.port
    except ValueError as e:
        raise NotificationError(service=NotificationManager.SERVICE_TELEGRAM,
                                message=f"invalid proxy address '{address}': {e}", original_error=e)
    if not host or not port:
        raise NotificationError(service=NotificationManager.SERVICE_TELEGRAM,
                                message=f"invalid proxy address '{address}': expected host:port")

    auth = ''
    if username:
        auth = quote(username, safe='')
        if password:
            auth += ':' + quote(password, safe='')
        auth += '@'
    proxy_url = f"socks5h://{auth}{host}:{port}"
    return {'http': proxy_url, 'https': proxy_url}


class NotificationManager:
    """Sends rendered log messages to the configured webhook and chat bot."""

    SERVICE_WEBHOOK = "Webhook"
    SERVICE_TELEGRAM = "Telegram"
    TELEGRAM_API = "https://api.telegram.org"

    def __init__(self, config: NotificationsConfig, log: Optional['AlertLogger'] = None,
                 timeout: int = 15) -> None:
        self.config = config
        self.log = log
        self.timeout = timeout

        from . import __version__ as leakmon_version
        self.session = requests.Session()
        self.session.headers.update({'User-Agent': f'leakmon-cli/{leakmon_version}'})

        self.webhook_url: Optional[str] = str(config.webhook.url) if config.webhook.url else None
        self.webhook_payload = config.webhook.payload
        self.telegram_enabled = config.telegram.enabled

        self._telegram_session: Optional[requests.Session] = None
        self._telegram_lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url or self.telegram_enabled)

    # --- Payloads ---
    def render_webhook_payload(self, text: str) -> str:
        """Substitute the JSON-escaped ``text`` into the payload template."""
        escaped = json.dumps(text)[1:-1]
        return self.webhook_payload.replace('%s', escaped)

    def telegram_url(self) -> str:
        return f"{self.TELEGRAM_API}/bot{self.config.telegram.token}/sendMessage"

    def telegram_payload(self, text: str) -> Dict[str, str]:
        return {
            'text': text,
            'chat_id': str(self.config.telegram.chat_id),
            'parse_mode': 'Markdown',
        }

    # --- Transport ---
    def _build_telegram_session(self) -> Tuple[requests.Session, Optional[NotificationError]]:
        tg = self.config.telegram
        if not tg.proxy_address:
            return self.session, None

        session = requests.Session()
        session.headers.update(self.session.headers)
        try:
            session.proxies.update(build_socks_proxies(tg.proxy_address, tg.proxy_username, tg.proxy_password))
        except NotificationError as e:
            return session, e
        return session, None

    def _get_telegram_session(self) -> requests.Session:
        """Build the chat-bot session once; a proxy failure degrades to a direct session."""
        error: Optional[NotificationError] = None
        with self._telegram_lock:
            if self._telegram_session is None:
                self._telegram_session, error = self._build_telegram_session()
        if error is not None:
            if self.log is not None:
                self.log.error("can't connect to the proxy: %s", error)
            else:
                logger.error(f"can't connect to the proxy: {error}")
        return self._telegram_session

    def send_webhook(self, text: str) -> requests.Response:
        """POST ``text`` to the webhook. Raises NotificationError on transport failure."""
        if not self.webhook_url:
            raise NotificationError(service=self.SERVICE_WEBHOOK, message="webhook URL not configured")
        try:
            return self.session.post(
                self.webhook_url,
                data=self.render_webhook_payload(text).encode('utf-8'),
                headers={'Content-Type': 'application/json'},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise NotificationError(service=self.SERVICE_WEBHOOK, message=str(e), original_error=e)

    def send_telegram_message(self, text: str) -> requests.Response:
        """POST ``text`` to the bot API. Raises NotificationError on transport failure."""
        if not self.telegram_enabled:
            raise NotificationError(service=self.SERVICE_TELEGRAM, message="bot token or chat id not configured")
        session = self._get_telegram_session()
        try:
            return session.post(self.telegram_url(), json=self.telegram_payload(text), timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise NotificationError(service=self.SERVICE_TELEGRAM, message=str(e), original_error=e)

    # --- Public API ---
    def broadcast(self, text: str) -> None:
        """Fire-and-forget delivery to every configured channel."""
        if self.webhook_url:
            try:
                self.send_webhook(text)
            except NotificationError as e:
                logger.debug(f"Ignoring webhook failure: {e}")

        if self.telegram_enabled:
            try:
                self.send_telegram_message(text)
            except NotificationError as e:
                logger.debug(f"Ignoring Telegram failure: {e}")

    def send_test_notification(self) -> bool:
        """Send a test message to every configured channel, raising on the first failure."""
        if not self.enabled:
            logger.warning("No notification channels configured.")
            return False

        message = "🧪 leakmon-cli test notification. If you can read this, alerts are configured correctly."
        for service, send in ((self.SERVICE_WEBHOOK, self.send_webhook if self.webhook_url else None),
                              (self.SERVICE_TELEGRAM, self.send_telegram_message if self.telegram_enabled else None)):
            if send is None:
                continue
            resp = send(message)
            if resp.status_code >= 400:
                raise NotificationError(service=service, message="test message rejected",
                                        status_code=resp.status_code, response_body=resp.text)
            logger.info(f"✅ {service} test message sent successfully.")
        return True
