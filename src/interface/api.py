from __future__ import annotations

import logging
import os
from typing import Optional

from fastapi import Depends, FastAPI, Form, Header, HTTPException, Query
from fastapi.responses import PlainTextResponse, Response

from application.engine import PredictaEngine
from domain.commands import Period
from domain.errors import BusinessNotFoundError, MessagingError, StoreError
from domain.schemas import DetailedReport, EngineReply, InboundMessage, SendMessageRequest, SentMessage
from infrastructure.messaging.twilio_client import TwilioMessenger, to_whatsapp_address, twiml_reply
from interface.cli import build_engine

logger = logging.getLogger(__name__)


def require_api_key(x_api_key: Optional[str] = Header(default=None)) -> None:
    expected = os.getenv("PREDICTA_API_KEY")
    if not expected or x_api_key != expected:
        raise HTTPException(status_code=401, detail="Unauthorized")


def create_app(engine: PredictaEngine | None = None, messenger: TwilioMessenger | None = None) -> FastAPI:
    app = FastAPI(title="Predicta API")
    engine = engine or build_engine()
    messenger = messenger or TwilioMessenger()

    @app.get("/", response_class=PlainTextResponse)
    def index() -> str:
        return "Predicta backend running"

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/webhook", response_class=PlainTextResponse)
    def verify_webhook(
        mode: Optional[str] = Query(default=None, alias="hub.mode"),
        token: Optional[str] = Query(default=None, alias="hub.verify_token"),
        challenge: Optional[str] = Query(default=None, alias="hub.challenge"),
    ) -> str:
        verify_token = os.getenv("VERIFY_TOKEN")
        if mode == "subscribe" and verify_token and token == verify_token:
            return challenge or ""
        raise HTTPException(status_code=403, detail="Forbidden")

    @app.post("/webhook")
    def receive_webhook(
        body: Optional[str] = Form(default=None, alias="Body"),
        sender: Optional[str] = Form(default=None, alias="From"),
    ) -> Response:
        if not body or not sender:
            logger.info("Webhook payload without Body/From acknowledged")
            return Response(status_code=200)

        logger.info("Webhook inbound message from=%s chars=%d", sender, len(body))
        reply = engine.handle(InboundMessage(sender=sender, text=body))
        try:
            messenger.send_text(sender, reply.reply)
        except MessagingError:
            logger.exception("Webhook auto-reply failed to=%s", sender)
            return Response(status_code=500)
        return Response(status_code=200)

    @app.post("/twilio/whatsapp")
    def twilio_whatsapp(
        body: Optional[str] = Form(default=None, alias="Body"),
        sender: Optional[str] = Form(default=None, alias="From"),
    ) -> Response:
        logger.info("TwiML inbound message from=%s", sender)
        if not sender:
            return Response(content=twiml_reply(None), media_type="text/xml")
        reply = engine.handle(InboundMessage(sender=sender, text=body or ""))
        return Response(content=twiml_reply(reply.reply), media_type="text/xml")

    @app.post("/messages")
    def handle_message(message: InboundMessage) -> EngineReply:
        return engine.handle(message)

    @app.post("/send-whatsapp", dependencies=[Depends(require_api_key)])
    def send_whatsapp(request: SendMessageRequest) -> dict:
        to = request.to or os.getenv("DEFAULT_WHATSAPP_TO")
        if not to or not request.body:
            raise HTTPException(
                status_code=400,
                detail="Missing required fields: to (or DEFAULT_WHATSAPP_TO), body",
            )
        try:
            sent: SentMessage = messenger.send_text(to_whatsapp_address(to), request.body)
        except MessagingError as exc:
            logger.exception("Outbound send failed to=%s", to)
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        return {"success": True, **sent.model_dump(by_alias=True)}

    @app.get("/businesses/{business_id}/report", dependencies=[Depends(require_api_key)])
    def business_report(business_id: int, period: str = "today") -> DetailedReport:
        try:
            return engine.detailed_report(business_id, Period.parse(period))
        except BusinessNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except StoreError as exc:
            logger.exception("Report failed business_id=%s", business_id)
            raise HTTPException(status_code=503, detail="Storage unavailable") from exc

    return app


app = create_app()
