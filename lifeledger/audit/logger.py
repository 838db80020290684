"""
Audit Logger

DESIGN DECISION: Every write against the record stores is logged.
This provides:
1. Traceability of which store a submission landed in
2. The exact occurrence index where a recurrence series stopped
3. A record of rejected mutations (read-only sources, bad dates)

The audit logger:
- Is async, matching the storage interface
- Gracefully handles failures (doesn't break the write if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from lifeledger.models.audit import AuditEvent, AuditEventBuilder
from lifeledger.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(ensure_ascii=False)
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_saved(
        self,
        table: str,
        record_ids: list[str],
        correlation_id: Optional[UUID],
        group_id: Optional[str] = None,
    ) -> None:
        await self.log(AuditEventBuilder.event_saved(
            table=table,
            record_ids=record_ids,
            correlation_id=correlation_id,
            group_id=group_id,
        ))

    async def log_updated(
        self,
        table: str,
        record_id: str,
        fields: list[str],
        correlation_id: Optional[UUID],
    ) -> None:
        await self.log(AuditEventBuilder.event_updated(
            table=table,
            record_id=record_id,
            fields=fields,
            correlation_id=correlation_id,
        ))

    async def log_deleted(
        self,
        table: str,
        record_id: str,
        correlation_id: Optional[UUID],
    ) -> None:
        await self.log(AuditEventBuilder.event_deleted(
            table=table,
            record_id=record_id,
            correlation_id=correlation_id,
        ))

    async def log_recurrence_failure(
        self,
        group_id: str,
        failed_index: int,
        total: int,
        inserted_ids: list[str],
        error_message: str,
        correlation_id: Optional[UUID],
    ) -> None:
        """Log a recurrence series that stopped partway."""
        await self.log(AuditEventBuilder.recurrence_partial_failure(
            group_id=group_id,
            failed_index=failed_index,
            total=total,
            inserted_ids=inserted_ids,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_read_only_rejected(
        self,
        event_id: str,
        operation: str,
        correlation_id: Optional[UUID],
    ) -> None:
        await self.log(AuditEventBuilder.read_only_rejected(
            event_id=event_id,
            operation=operation,
            correlation_id=correlation_id,
        ))

    async def log_invalid_date(
        self,
        value: Optional[str],
        correlation_id: Optional[UUID],
    ) -> None:
        await self.log(AuditEventBuilder.invalid_date_rejected(
            value=value,
            correlation_id=correlation_id,
        ))

    async def log_route_rejected(
        self,
        category: Optional[str],
        source: Optional[str],
        mode: str,
        correlation_id: Optional[UUID],
    ) -> None:
        await self.log(AuditEventBuilder.write_route_rejected(
            category=category,
            source=source,
            mode=mode,
            correlation_id=correlation_id,
        ))

    async def log_save_failed(
        self,
        table: str,
        error_message: str,
        correlation_id: Optional[UUID],
    ) -> None:
        await self.log(AuditEventBuilder.save_failed(
            table=table,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_reconciled(
        self,
        internal_count: int,
        external_count: int,
        suppressed_count: int,
        skipped_count: int,
        correlation_id: Optional[UUID],
    ) -> None:
        await self.log(AuditEventBuilder.reconcile_completed(
            internal_count=internal_count,
            external_count=external_count,
            suppressed_count=suppressed_count,
            skipped_count=skipped_count,
            correlation_id=correlation_id,
        ))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID],
    ) -> None:
        await self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g. one form submission).
    Pass it through all subsequent operations.
    """
    return uuid4()
