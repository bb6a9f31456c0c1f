from __future__ import annotations

import logging
import os
import time

from application import formatting
from application.dispatcher import CommandDispatcher
from application.insights import generate_tips
from application.recorder import EventRecorder
from application.summary import REPORT_TOP_N, SummaryAggregator
from domain.commands import Period
from domain.errors import AmountParseError, CommandValidationError, StoreError, UnknownCommandError
from domain.models import Business, Currency
from domain.schemas import DetailedReport, EngineReply, InboundMessage
from infrastructure.storage.store import Store
from parsing.commands import parse_command
from parsing.normalizer import collapse_whitespace, normalize_command

logger = logging.getLogger(__name__)

WHATSAPP_PREFIX = "whatsapp:"


def default_business_name(channel_id: str) -> str:
    name = channel_id[len(WHATSAPP_PREFIX):] if channel_id.startswith(WHATSAPP_PREFIX) else channel_id
    return name or channel_id


class PredictaEngine:
    """
    Turns one inbound message into one reply.

    Every error the pipeline can raise is recovered here, so a reply is
    produced for every message.
    """

    def __init__(
        self,
        store: Store,
        dispatcher: CommandDispatcher | None = None,
        aggregator: SummaryAggregator | None = None,
        default_currency: Currency | None = None,
    ):
        self._store = store
        self._aggregator = aggregator or SummaryAggregator(store)
        self._dispatcher = dispatcher or CommandDispatcher(EventRecorder(store), self._aggregator)
        self._default_currency = (
            default_currency
            or Currency.from_code(os.getenv("PREDICTA_DEFAULT_CURRENCY"))
            or Currency.NGN
        )

    def resolve_business(self, channel_id: str) -> Business:
        business_id = self._store.upsert_business(channel_id, default_business_name(channel_id), self._default_currency)
        return self._store.business_by_id(business_id)

    def handle(self, message: InboundMessage) -> EngineReply:
        t0 = time.perf_counter()
        text = collapse_whitespace(message.text)
        canonical: str | None = None
        logger.info("Engine handle start sender=%s chars=%d", message.sender, len(text))

        try:
            business = self.resolve_business(message.sender)
            canonical = normalize_command(text)
            command = parse_command(canonical, business.currency)
            reply = EngineReply(reply=self._dispatcher.dispatch(business, command), command=canonical)
        except CommandValidationError as exc:
            logger.info("Engine usage reply command=%s reason=%s", exc.command, exc.reason)
            reply = EngineReply(reply=f"⚠️ {exc.usage}", outcome="usage", command=canonical, error=str(exc))
        except AmountParseError as exc:
            logger.info("Engine rejected amount token=%r", exc.token)
            reply = EngineReply(
                reply=f"⚠️ I couldn't read the amount '{exc.token}'. Use a number like 45000, ₦45,000 or 45 GBP.",
                outcome="rejected",
                command=canonical,
                error=str(exc),
            )
        except UnknownCommandError as exc:
            logger.info("Engine unknown command text=%r", exc.text)
            reply = EngineReply(reply=formatting.UNKNOWN_HINT, outcome="unknown", command=canonical, error=str(exc))
        except StoreError as exc:
            logger.exception("Engine store failure sender=%s", message.sender)
            reply = EngineReply(reply=formatting.STORE_APOLOGY, outcome="store_error", command=canonical, error=str(exc))

        logger.info("Engine handle complete in %.2fs outcome=%s", time.perf_counter() - t0, reply.outcome)
        return reply

    def detailed_report(self, business_id: int, period: Period) -> DetailedReport:
        business = self._store.business_by_id(business_id)
        summary = self._aggregator.summarize(business, period, top_n=REPORT_TOP_N)
        return DetailedReport(summary=summary, tips=generate_tips(summary))
