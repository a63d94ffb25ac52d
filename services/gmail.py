"""
GmailService — label statistics, email export and bulk mark-as-read.
"""

from typing import Any

from adapters import gmail as gmail_api
from extractors.gmail import (
    count_attachments,
    extract_plain_body,
    format_sender_info,
    get_headers,
    parse_recipients,
)
from models import EmailRecord, LabelStats
from services.base import WorkspaceService

# Characters of plain body kept as the record snippet
SNIPPET_CHARS = 200


class GmailService(WorkspaceService):
    config_key = "gmail"

    def _user_labels(self) -> list[dict[str, Any]]:
        return [l for l in gmail_api.list_labels() if l.get("type") == "user"]

    def _label_names(self) -> dict[str, str]:
        """User label id -> name."""
        return {l["id"]: l["name"] for l in self._user_labels()}

    def get_label_stats(self) -> list[LabelStats]:
        """Thread and message totals for every user label."""

        def run() -> list[LabelStats]:
            stats = []
            for label in self._user_labels():
                detail = gmail_api.get_label(label["id"])
                stats.append(LabelStats(
                    name=detail.get("name", label["name"]),
                    thread_count=int(detail.get("threadsTotal", 0)),
                    email_count=int(detail.get("messagesTotal", 0)),
                ))
            return stats

        return self.execute("get_label_stats", run)

    def get_unread_counts(self) -> dict[str, int]:
        """Unread thread count per user label."""

        def run() -> dict[str, int]:
            counts = {}
            for label in self._user_labels():
                detail = gmail_api.get_label(label["id"])
                counts[detail.get("name", label["name"])] = int(detail.get("threadsUnread", 0))
            return counts

        return self.execute("get_unread_counts", run)

    def parse_email_data(
        self,
        message: dict[str, Any],
        label_names: dict[str, str] | None = None,
    ) -> EmailRecord:
        """
        Flatten one Gmail API message into an EmailRecord.

        No API call, so no rate-limit slot or operation metrics.

        Args:
            message: Message resource (format=full)
            label_names: User label id -> name; other label ids are omitted
        """
        payload = message.get("payload", {})
        headers = get_headers(payload)
        sender = format_sender_info(headers.get("From"))
        label_ids = message.get("labelIds", [])
        attachments = count_attachments(payload)
        body = extract_plain_body(payload) or message.get("snippet", "")

        return EmailRecord(
            id=message.get("id", ""),
            thread_id=message.get("threadId", ""),
            date=gmail_api.parse_date(headers.get("Date"), message.get("internalDate")),
            subject=headers.get("Subject", ""),
            from_email=sender.email,
            from_name=sender.name,
            from_domain=sender.domain,
            to=parse_recipients(headers.get("To")),
            cc=parse_recipients(headers.get("Cc")),
            bcc=parse_recipients(headers.get("Bcc")),
            has_attachments=attachments > 0,
            attachment_count=attachments,
            labels=[label_names[i] for i in label_ids if label_names and i in label_names],
            snippet=body[:SNIPPET_CHARS],
            is_unread="UNREAD" in label_ids,
            is_starred="STARRED" in label_ids,
        )

    def export_emails(self, query: str = "", max_results: int = 100) -> list[EmailRecord]:
        """
        Every message of the first `max_results` threads matching `query`.

        Threads are fetched in batches of the service batch size.
        """

        def run() -> list[EmailRecord]:
            thread_ids = gmail_api.list_thread_ids(query, max_results)
            label_names = self._label_names()

            def process(batch: list[str]) -> list[EmailRecord]:
                records = []
                for thread_id in batch:
                    thread = gmail_api.fetch_thread(thread_id)
                    for message in thread.get("messages", []):
                        records.append(self.parse_email_data(message, label_names))
                return records

            return self.runner.run(thread_ids, process)

        return self.execute("export_emails", run)

    def mark_emails_read(self, thread_ids: list[str]) -> int:
        """
        Remove UNREAD from each thread, in batches.

        Returns:
            Number of threads marked
        """

        def process(batch: list[str]) -> list[str]:
            for thread_id in batch:
                gmail_api.mark_thread_read(thread_id)
            return batch

        return self.execute(
            "mark_emails_read", lambda: len(self.runner.run(thread_ids, process))
        )
