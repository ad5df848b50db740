"""Entry point and dependency wiring."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from actionbroker.broker import ConversationBroker
from actionbroker.cli.app import app
from actionbroker.config.settings import Settings
from actionbroker.executor.action_executor import ConfirmationExecutor
from actionbroker.observability.telemetry import TelemetrySink
from actionbroker.policy.role_gate import RoleGate
from actionbroker.store.database import Database
from actionbroker.store.pending import PendingActionStore
from actionbroker.store.records import RecordStore
from actionbroker.validation.sanitize import TextLimits

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class Services:
    db: Database
    pending: PendingActionStore
    records: RecordStore
    executor: ConfirmationExecutor
    telemetry: TelemetrySink
    broker: ConversationBroker


def configure_logging(settings: Settings) -> None:
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)


def build_services(settings: Settings | None = None) -> Services:
    settings = settings or Settings()

    db = Database(db_path=settings.db_path)
    pending = PendingActionStore(
        db,
        ttl=timedelta(seconds=settings.pending_ttl_seconds),
        retention=timedelta(hours=settings.retention_hours),
    )
    records = RecordStore(db)
    executor = ConfirmationExecutor(
        records,
        gate=RoleGate(records),
        limits=TextLimits(
            title=settings.max_title_length,
            description=settings.max_description_length,
        ),
    )
    telemetry = TelemetrySink(records)
    broker = ConversationBroker(pending, executor, telemetry)

    return Services(
        db=db,
        pending=pending,
        records=records,
        executor=executor,
        telemetry=telemetry,
        broker=broker,
    )


if __name__ == "__main__":
    app()
