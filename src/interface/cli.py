from __future__ import annotations

import os

from application.engine import PredictaEngine
from domain.schemas import InboundMessage
from infrastructure.storage.memory_store import InMemoryStore
from infrastructure.storage.sql_store import SqlStore
from infrastructure.storage.store import Store

EXIT_WORDS = {"quit", "exit"}


def build_store() -> Store:
    if os.getenv("PREDICTA_STORE", "sql").lower() == "memory":
        return InMemoryStore()
    return SqlStore()


def build_engine(store: Store | None = None) -> PredictaEngine:
    return PredictaEngine(store=store or build_store())


def main() -> None:
    sender = os.getenv("PREDICTA_CLI_SENDER", "cli:local")
    engine = build_engine()
    print("Predicta CLI. Type 'help' for commands, 'quit' to leave.")
    while True:
        try:
            message = input("Predicta > ").strip()
        except EOFError:
            print()
            break
        if message.lower() in EXIT_WORDS:
            break
        reply = engine.handle(InboundMessage(sender=sender, text=message))
        print(reply.reply)


if __name__ == "__main__":
    main()
