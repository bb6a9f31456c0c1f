from __future__ import annotations

import os
import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from application.engine import PredictaEngine
from domain.errors import MessagingError
from domain.models import Currency
from domain.schemas import SentMessage
from infrastructure.messaging.twilio_client import twiml_reply
from infrastructure.storage.memory_store import InMemoryStore
from interface.api import create_app

SENDER = "whatsapp:+2348012345678"


class _StubMessenger:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[tuple[str, str]] = []

    def send_text(self, to: str, body: str) -> SentMessage:
        if self.fail:
            raise MessagingError("Twilio rejected message (401): bad credentials")
        self.sent.append((to, body))
        return SentMessage(sid="SM123", status="queued", to=to, from_="whatsapp:+14155238886")


class ApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryStore()
        self.engine = PredictaEngine(store=self.store, default_currency=Currency.NGN)
        self.messenger = _StubMessenger()
        self.client = TestClient(create_app(engine=self.engine, messenger=self.messenger))

    def test_index_and_health(self) -> None:
        self.assertEqual(self.client.get("/").text, "Predicta backend running")
        self.assertEqual(self.client.get("/health").json(), {"status": "ok"})

    def test_webhook_verification(self) -> None:
        params = {"hub.mode": "subscribe", "hub.verify_token": "tok", "hub.challenge": "12345"}
        with patch.dict(os.environ, {"VERIFY_TOKEN": "tok"}):
            ok = self.client.get("/webhook", params=params)
            bad = self.client.get("/webhook", params={**params, "hub.verify_token": "nope"})

        self.assertEqual(ok.status_code, 200)
        self.assertEqual(ok.text, "12345")
        self.assertEqual(bad.status_code, 403)

    def test_webhook_replies_through_messenger(self) -> None:
        response = self.client.post("/webhook", data={"Body": "stock rice 20", "From": SENDER})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(self.messenger.sent), 1)
        to, body = self.messenger.sent[0]
        self.assertEqual(to, SENDER)
        self.assertIn("rice", body)

    def test_webhook_acknowledges_incomplete_payload(self) -> None:
        response = self.client.post("/webhook", data={"From": SENDER})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.messenger.sent, [])

    def test_webhook_send_failure_is_500(self) -> None:
        client = TestClient(create_app(engine=self.engine, messenger=_StubMessenger(fail=True)))
        response = client.post("/webhook", data={"Body": "help", "From": SENDER})
        self.assertEqual(response.status_code, 500)

    def test_twiml_reply(self) -> None:
        response = self.client.post("/twilio/whatsapp", data={"Body": "help", "From": SENDER})

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.headers["content-type"].startswith("text/xml"))
        self.assertIn("<Response><Message>", response.text)
        self.assertIn("Predicta commands", response.text)
        self.assertEqual(self.messenger.sent, [])

    def test_twiml_escapes_markup(self) -> None:
        self.assertIn("&lt;item&gt;", twiml_reply("sale <item>"))
        self.assertNotIn("<Message", twiml_reply(None))

    def test_messages_endpoint_returns_outcome(self) -> None:
        response = self.client.post("/messages", json={"sender": SENDER, "text": "sale rice zero 100"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["outcome"], "usage")

    def test_send_whatsapp_requires_api_key(self) -> None:
        with patch.dict(os.environ, {"PREDICTA_API_KEY": "secret"}):
            response = self.client.post("/send-whatsapp", json={"to": "+447000000000", "body": "hi"})
        self.assertEqual(response.status_code, 401)

    def test_send_whatsapp(self) -> None:
        headers = {"x-api-key": "secret"}
        with patch.dict(os.environ, {"PREDICTA_API_KEY": "secret", "DEFAULT_WHATSAPP_TO": "+447000000000"}):
            sent = self.client.post("/send-whatsapp", json={"body": "hi"}, headers=headers)
            missing = self.client.post("/send-whatsapp", json={"to": "+447000000000"}, headers=headers)

        self.assertEqual(sent.status_code, 200)
        payload = sent.json()
        self.assertTrue(payload["success"])
        self.assertEqual(payload["sid"], "SM123")
        self.assertEqual(payload["from"], "whatsapp:+14155238886")
        self.assertEqual(self.messenger.sent, [("whatsapp:+447000000000", "hi")])
        self.assertEqual(missing.status_code, 400)

    def test_business_report(self) -> None:
        self.client.post("/messages", json={"sender": SENDER, "text": "sale rice 3 45000"})
        business = self.engine.resolve_business(SENDER)
        headers = {"x-api-key": "secret"}

        with patch.dict(os.environ, {"PREDICTA_API_KEY": "secret"}):
            report = self.client.get(f"/businesses/{business.id}/report", params={"period": "week"}, headers=headers)
            missing = self.client.get("/businesses/999/report", headers=headers)

        self.assertEqual(report.status_code, 200)
        summary = report.json()["summary"]
        self.assertEqual(summary["period_label"], "Last 7 days")
        self.assertEqual(summary["sales"]["NGN"]["quantity"], 3)
        self.assertEqual(missing.status_code, 404)


if __name__ == "__main__":
    unittest.main()
