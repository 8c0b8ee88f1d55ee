import logging

import requests as http

logger = logging.getLogger(__name__)


class TelegramClient:
    def __init__(self, token: str, api_url: str = "https://api.telegram.org", timeout: float = 5):
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    def call(self, method: str, payload: dict) -> bool:
        # failures are logged and reported, never raised
        try:
            resp = http.post(
                f"{self.api_url}/bot{self.token}/{method}",
                json=payload,
                timeout=self.timeout,
            )
        except http.RequestException as e:
            logger.warning("telegram %s failed: %s", method, e)
            return False
        if not resp.ok:
            logger.warning("telegram %s returned %s", method, resp.status_code)
            return False
        return True

    def send_message(self, chat_id, text: str, reply_markup: dict | None = None) -> bool:
        payload = {"chat_id": chat_id, "text": text}
        if reply_markup is not None:
            payload["reply_markup"] = reply_markup
        return self.call("sendMessage", payload)
