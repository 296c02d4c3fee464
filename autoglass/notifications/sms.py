"""
Twilio SMS client.

Sends messages through the Twilio REST API. When credentials are not
configured the client logs what it would have sent and reports failure,
so local runs work without a Twilio account.
"""

import logging
from typing import Optional

import httpx

from autoglass.config import SmsConfig
from autoglass.utils import to_e164

logger = logging.getLogger(__name__)

TWILIO_API = "https://api.twilio.com/2010-04-01"


class TwilioSmsClient:
    """Thin async wrapper around Twilio's Messages endpoint."""

    def __init__(self, config: SmsConfig, http: Optional[httpx.AsyncClient] = None) -> None:
        self._config = config
        self._http = http

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    async def send(self, to: str, body: str) -> bool:
        """Send ``body`` to ``to``. Returns True when Twilio accepted the message."""
        if not self.enabled:
            logger.info("[SMS DISABLED] Would send to %s: %s", to, body)
            return False

        formatted = to_e164(to)
        url = f"{TWILIO_API}/Accounts/{self._config.account_sid}/Messages.json"
        data = {"To": formatted, "From": self._config.from_number, "Body": body}
        auth = (self._config.account_sid, self._config.auth_token)

        try:
            if self._http is not None:
                response = await self._http.post(
                    url, data=data, auth=auth, timeout=self._config.timeout_seconds
                )
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(
                        url, data=data, auth=auth, timeout=self._config.timeout_seconds
                    )
        except httpx.HTTPError as exc:
            logger.error("Twilio request failed for %s: %s", formatted, exc)
            return False

        if response.status_code in (200, 201):
            logger.info("SMS sent to %s: %s", formatted, response.json().get("sid"))
            return True

        logger.error("Twilio API error %s for %s: %s", response.status_code, formatted, response.text)
        return False
