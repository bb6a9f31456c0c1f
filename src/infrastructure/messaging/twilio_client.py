from __future__ import annotations

import logging
import os
import time

from requests.exceptions import RequestException
from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client
from twilio.twiml.messaging_response import MessagingResponse

from domain.errors import MessagingError
from domain.schemas import SentMessage

logger = logging.getLogger(__name__)

WHATSAPP_PREFIX = "whatsapp:"


def to_whatsapp_address(number: str) -> str:
    number = number.strip()
    return number if number.startswith(WHATSAPP_PREFIX) else f"{WHATSAPP_PREFIX}{number}"


def twiml_reply(body: str | None) -> str:
    """TwiML document answering an inbound message; no <Message> when body is None."""
    response = MessagingResponse()
    if body is not None:
        response.message(body)
    return str(response)


class TwilioMessenger:
    """Sends WhatsApp text through Twilio's Messages REST resource."""

    def __init__(
        self,
        account_sid: str | None = None,
        auth_token: str | None = None,
        from_number: str | None = None,
        timeout_seconds: float | None = None,
        client: Client | None = None,
    ) -> None:
        self.account_sid = account_sid or os.getenv("TWILIO_ACCOUNT_SID", "")
        self.auth_token = auth_token or os.getenv("TWILIO_AUTH_TOKEN", "")
        self.from_number = from_number or os.getenv("TWILIO_WHATSAPP_FROM", "")
        self.timeout_seconds = timeout_seconds or float(os.getenv("TWILIO_TIMEOUT_SECONDS", "15"))
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    def _get_client(self) -> Client:
        if self._client is None:
            self._client = Client(
                self.account_sid,
                self.auth_token,
                http_client=TwilioHttpClient(timeout=self.timeout_seconds),
            )
        return self._client

    def send_text(self, to: str, body: str) -> SentMessage:
        if not self.configured:
            raise MessagingError("Twilio is not configured (TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_WHATSAPP_FROM)")

        recipient = to_whatsapp_address(to)
        started = time.perf_counter()
        logger.info("TwilioMessenger send start to=%s body_chars=%d", recipient, len(body))
        try:
            message = self._get_client().messages.create(
                from_=to_whatsapp_address(self.from_number),
                to=recipient,
                body=body,
            )
        except TwilioRestException as exc:
            logger.warning("TwilioMessenger send failed status=%s code=%s msg=%s", exc.status, exc.code, exc.msg)
            raise MessagingError(f"Twilio rejected message ({exc.status}): {exc.msg}") from exc
        except (TwilioException, RequestException) as exc:
            logger.warning("TwilioMessenger send failed after %.2fs: %s", time.perf_counter() - started, exc)
            raise MessagingError(f"Twilio request failed: {exc}") from exc

        logger.info("TwilioMessenger send complete in %.2fs sid=%s", time.perf_counter() - started, message.sid)
        return SentMessage(
            sid=str(message.sid or ""),
            status=message.status,
            to=str(message.to or recipient),
            from_=message.from_,
        )
