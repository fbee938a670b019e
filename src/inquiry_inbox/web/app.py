"""FastAPI application exposing the contact message inbox as JSON."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi import status as http_status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from inquiry_inbox.core import (
    AppSettings,
    ServiceContainer,
    StorageError,
    ValidationError,
    load_app_settings,
)
from inquiry_inbox.core.datetime_utils import serialize_datetime
from inquiry_inbox.core.models import (
    BulkActionResult,
    MessageQuery,
    MessageView,
    RangeStatistics,
    ReplyDraft,
    StatisticsReport,
)
from inquiry_inbox.operations import InquiryService
from inquiry_inbox.storage.connection_pool import ConnectionPool, PoolClosedError
from inquiry_inbox.transport import SmtpNotifier

LOGGER = logging.getLogger(__name__)

POOL_TIMEOUT_SECONDS = 10.0


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SubmitMessageBody(_CamelModel):
    sender_name: str = Field(alias="senderName")
    sender_email: str = Field(alias="senderEmail")
    subject: str
    message: str


class BulkActionBody(_CamelModel):
    message_ids: list[int] = Field(default_factory=list, alias="messageIds")
    action: str = ""


class PurgeBody(_CamelModel):
    older_than_days: int | None = Field(default=None, alias="olderThanDays")


def _build_container(settings: AppSettings) -> ServiceContainer:
    container = ServiceContainer()
    container.register_instance("settings", settings)
    container.register(
        "pool",
        lambda c: ConnectionPool(c.resolve("settings").storage),
    )
    if settings.notification.enabled:
        container.register(
            "notifier",
            lambda c: SmtpNotifier(
                c.resolve("settings").smtp, c.resolve("settings").notification
            ),
        )
    return container


def create_app(settings: AppSettings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app_settings = settings or load_app_settings(env_file=".env")
    container = _build_container(app_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        container.shutdown()
        LOGGER.info("Inquiry inbox services shut down")

    app = FastAPI(title="Inquiry Inbox", lifespan=lifespan)
    app.state.container = container

    def get_service() -> Iterator[InquiryService]:
        pool: ConnectionPool = container.resolve("pool")
        notifier = container.try_resolve("notifier")
        with pool.acquire(timeout=POOL_TIMEOUT_SECONDS) as repository:
            yield InquiryService(
                repository, settings=app_settings.classifier, notifier=notifier
            )

    @app.exception_handler(ValidationError)
    async def handle_validation_error(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            content={"error": str(exc), "field": exc.field},
        )

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError) -> JSONResponse:
        LOGGER.error("Storage failure serving %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"error": "Storage is unavailable", "operation": exc.operation},
        )

    @app.exception_handler(PoolClosedError)
    @app.exception_handler(TimeoutError)
    async def handle_pool_error(request: Request, exc: Exception) -> JSONResponse:
        LOGGER.warning("No repository available for %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"error": "Storage is unavailable"},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/messages", status_code=http_status.HTTP_201_CREATED)
    async def submit_message(
        body: SubmitMessageBody,
        service: InquiryService = Depends(get_service),  # noqa: B008
    ) -> dict[str, Any]:
        """Accept a contact form submission."""
        view = await service.submit_message(
            body.sender_name, body.sender_email, body.subject, body.message
        )
        return _serialize_view(view)

    @app.get("/api/messages")
    async def list_messages(
        search_term: str | None = Query(default=None, alias="searchTerm"),
        sender_email: str | None = Query(default=None, alias="senderEmail"),
        is_read: bool | None = Query(default=None, alias="isRead"),
        is_urgent: bool | None = Query(default=None, alias="isUrgent"),
        start_date: datetime | None = Query(default=None, alias="startDate"),
        end_date: datetime | None = Query(default=None, alias="endDate"),
        days_back: int | None = Query(default=None, alias="daysBack"),
        skip: int | None = None,
        take: int | None = None,
        service: InquiryService = Depends(get_service),  # noqa: B008
    ) -> list[dict[str, Any]]:
        """Filter messages by the first applicable criterion."""
        query = MessageQuery(
            search_term=search_term,
            sender_email=sender_email,
            is_read=is_read,
            is_urgent=is_urgent,
            start_date=start_date,
            end_date=end_date,
            days_back=days_back,
            skip=skip,
            take=take,
        )
        return [_serialize_view(view) for view in await service.search(query)]

    @app.get("/api/messages/page")
    async def page_messages(
        page_number: int = Query(default=1, alias="pageNumber"),
        page_size: int = Query(default=10, alias="pageSize"),
        service: InquiryService = Depends(get_service),  # noqa: B008
    ) -> dict[str, Any]:
        views = await service.get_page(page_number, page_size)
        return {
            "pageNumber": page_number,
            "pageSize": page_size,
            "messages": [_serialize_view(view) for view in views],
        }

    @app.get("/api/messages/{message_id}")
    async def get_message(
        message_id: int,
        service: InquiryService = Depends(get_service),  # noqa: B008
    ) -> dict[str, Any]:
        view = await service.get_message(message_id)
        if view is None:
            raise HTTPException(status_code=404, detail="Message not found")
        return _serialize_view(view)

    @app.delete("/api/messages/{message_id}")
    async def delete_message(
        message_id: int,
        service: InquiryService = Depends(get_service),  # noqa: B008
    ) -> dict[str, Any]:
        if not await service.delete_message(message_id):
            raise HTTPException(status_code=404, detail="Message not found")
        return {"success": True, "id": message_id}

    @app.post("/api/messages/{message_id}/read")
    async def mark_read(
        message_id: int,
        service: InquiryService = Depends(get_service),  # noqa: B008
    ) -> dict[str, Any]:
        if not await service.mark_read(message_id):
            raise HTTPException(status_code=404, detail="Message not found")
        return {"success": True, "id": message_id, "isRead": True}

    @app.post("/api/messages/{message_id}/unread")
    async def mark_unread(
        message_id: int,
        service: InquiryService = Depends(get_service),  # noqa: B008
    ) -> dict[str, Any]:
        if not await service.mark_unread(message_id):
            raise HTTPException(status_code=404, detail="Message not found")
        return {"success": True, "id": message_id, "isRead": False}

    @app.get("/api/messages/{message_id}/reply")
    async def draft_reply(
        message_id: int,
        service: InquiryService = Depends(get_service),  # noqa: B008
    ) -> dict[str, Any]:
        """Return a pre-filled reply for the operator to edit."""
        draft = await service.draft_reply(message_id)
        if draft is None:
            raise HTTPException(status_code=404, detail="Message not found")
        return _serialize_reply(draft)

    @app.post("/api/messages/bulk")
    async def bulk_action(
        body: BulkActionBody,
        service: InquiryService = Depends(get_service),  # noqa: B008
    ) -> dict[str, Any]:
        result = await service.perform_bulk_action(body.message_ids, body.action)
        return _serialize_bulk_result(result)

    @app.post("/api/messages/purge")
    async def purge_messages(
        body: PurgeBody | None = None,
        service: InquiryService = Depends(get_service),  # noqa: B008
    ) -> dict[str, Any]:
        """Delete messages older than the requested or configured age."""
        days = (
            body.older_than_days
            if body is not None and body.older_than_days is not None
            else app_settings.retention.max_age_days
        )
        deleted = await service.purge_older_than(days)
        return {"olderThanDays": days, "deletedCount": deleted}

    @app.get("/api/stats")
    async def statistics(
        service: InquiryService = Depends(get_service),  # noqa: B008
    ) -> dict[str, Any]:
        return _serialize_report(await service.get_statistics())

    @app.get("/api/stats/range")
    async def range_statistics(
        start: datetime,
        end: datetime,
        service: InquiryService = Depends(get_service),  # noqa: B008
    ) -> dict[str, Any]:
        stats = await service.get_range_statistics(start, end)
        return _serialize_range(stats)

    return app


def _serialize_view(view: MessageView) -> dict[str, Any]:
    return {
        "id": view.id,
        "senderName": view.sender_name,
        "senderEmail": view.sender_email,
        "senderDomain": view.sender_domain,
        "subject": view.subject,
        "message": view.body,
        "preview": view.preview,
        "sentAt": serialize_datetime(view.sent_at),
        "formattedSentDate": view.formatted_sent_date,
        "relativeTime": view.relative_time,
        "isRead": view.is_read,
        "ageInDays": view.age_in_days,
        "ageInHours": view.age_in_hours,
        "isUrgent": view.is_urgent,
        "priority": view.priority,
        "isPotentialSpam": view.is_potential_spam,
        "messageLength": view.message_length,
        "wordCount": view.word_count,
    }


def _serialize_reply(draft: ReplyDraft) -> dict[str, Any]:
    return {
        "originalMessageId": draft.original_message_id,
        "toEmail": draft.to_email,
        "toName": draft.to_name,
        "subject": draft.subject,
        "template": draft.template,
        "originalMessage": draft.original_body,
    }


def _serialize_bulk_result(result: BulkActionResult) -> dict[str, Any]:
    return {
        "action": result.action.value if result.action is not None else None,
        "affectedCount": result.affected_count,
    }


def _serialize_range(stats: RangeStatistics) -> dict[str, int]:
    return {"total": stats.total, "read": stats.read, "unread": stats.unread}


def _serialize_report(report: StatisticsReport) -> dict[str, Any]:
    return {
        "totalMessages": report.total_messages,
        "unreadMessages": report.unread_messages,
        "readMessages": report.read_messages,
        "urgentMessages": report.urgent_messages,
        "todayMessages": report.today_messages,
        "weekMessages": report.week_messages,
        "monthMessages": report.month_messages,
        "averageMessagesPerDay": report.average_messages_per_day,
        "readPercentage": report.read_percentage,
        "topDomains": [
            {
                "domain": domain.domain,
                "messageCount": domain.message_count,
                "percentage": domain.percentage,
            }
            for domain in report.top_domains
        ],
        "dailyStats": [
            {
                "date": day.date.isoformat(),
                "label": day.label,
                "messageCount": day.message_count,
                "unreadCount": day.unread_count,
                "readCount": day.read_count,
            }
            for day in report.daily_stats
        ],
    }


__all__ = ["create_app"]
