"""DingTalk custom robot webhook notifier.

See https://open.dingtalk.com/document/orgapp/custom-robot-access
"""

import httpx
import structlog

from ..config import DingtalkConfig
from .base import Notifier, NotifierError

log = structlog.get_logger()


class DingtalkNotifier(Notifier):
    """Posts alerts as DingTalk text messages."""

    name = "dingtalk"

    def __init__(self, webhook_url: str, template: str = "{message}", timeout: float = 10.0):
        self.webhook_url = webhook_url
        self.template = template
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: DingtalkConfig) -> "DingtalkNotifier":
        return cls(config.webhook, template=config.template, timeout=config.timeout)

    def build_payload(self, message: str) -> dict:
        return {
            "msgtype": "text",
            "text": {"content": self.template.replace("{message}", message)},
        }

    def notify(self, message: str) -> bool:
        """Send a message to the robot.

        Returns:
            True if DingTalk accepted the message, False otherwise

        Raises:
            NotifierError: If the request could not be made
        """
        try:
            response = httpx.post(
                self.webhook_url,
                json=self.build_payload(message),
                timeout=self.timeout,
            )
        except httpx.RequestError as e:
            raise NotifierError(f"DingTalk request failed: {e}") from e

        if response.status_code != 200:
            log.error("DingTalk API error", status=response.status_code)
            return False

        # The robot reports rejections (bad token, keyword filter) in the body
        try:
            body = response.json()
        except ValueError:
            body = None
        errcode = body.get("errcode", 0) if isinstance(body, dict) else 0
        if errcode:
            log.error("DingTalk rejected message", errcode=errcode)
            return False

        log.debug("DingTalk message sent")
        return True
