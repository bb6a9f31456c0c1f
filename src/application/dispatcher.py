from __future__ import annotations

import logging
from typing import assert_never

from application import formatting
from application.insights import generate_tips
from application.recorder import EventRecorder
from application.summary import CHAT_TOP_N, SummaryAggregator
from domain.commands import (
    AdviceCommand,
    Command,
    ExpenseCommand,
    HelpCommand,
    SaleCommand,
    StockAddCommand,
    StockRemoveCommand,
    StockSetCommand,
    SummaryCommand,
    UnknownCommand,
)
from domain.errors import UnknownCommandError
from domain.models import Business

logger = logging.getLogger(__name__)


class CommandDispatcher:
    """Routes a validated command to the write path or the read path and renders the reply."""

    def __init__(self, recorder: EventRecorder, aggregator: SummaryAggregator):
        self._recorder = recorder
        self._aggregator = aggregator

    def dispatch(self, business: Business, command: Command) -> str:
        logger.info("Dispatching command=%s business_id=%s", type(command).__name__, business.id)

        if isinstance(command, HelpCommand):
            return formatting.HELP_TEXT
        if isinstance(command, SummaryCommand):
            summary = self._aggregator.summarize(business, command.period, top_n=CHAT_TOP_N)
            return formatting.render_summary(summary, generate_tips(summary))
        if isinstance(command, AdviceCommand):
            summary = self._aggregator.summarize(business, command.period, top_n=CHAT_TOP_N)
            return formatting.render_advice(summary, generate_tips(summary))
        if isinstance(command, SaleCommand):
            return formatting.format_sale(self._recorder.record_sale(business.id, command))
        if isinstance(command, ExpenseCommand):
            return formatting.format_expense(self._recorder.record_expense(business.id, command))
        if isinstance(command, StockSetCommand):
            return formatting.format_stock_set(self._recorder.set_stock(business.id, command.item, command.quantity))
        if isinstance(command, StockAddCommand):
            return formatting.format_stock_change(self._recorder.adjust_stock(business.id, command.item, command.delta))
        if isinstance(command, StockRemoveCommand):
            return formatting.format_stock_change(self._recorder.adjust_stock(business.id, command.item, -command.delta))
        if isinstance(command, UnknownCommand):
            raise UnknownCommandError(command.text)
        assert_never(command)
