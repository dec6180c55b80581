"""Sync orchestration: tag feeds into vault notes."""

import threading
from datetime import UTC, datetime

from .config import Settings, TagConfig
from .logging_config import ActivityLog, create_execution_logger
from .models import SyncReport
from .note import generate_note
from .rss import FeedProcessor, build_feed_url
from .vault import CREATED, UPDATED, VaultWriter

# Only one sync may run per process
_sync_lock = threading.Lock()


def run_sync(
    settings: Settings,
    force: bool = False,
    processor: FeedProcessor | None = None,
    vault: VaultWriter | None = None,
    now: datetime | None = None,
    activity: ActivityLog | None = None,
    execution_id: str | None = None,
) -> SyncReport:
    """
    Fetch every configured tag and write its items as notes.

    A failing tag is recorded and the remaining tags are still processed.
    Errors never propagate; they end up in the report and the activity log.

    Args:
        settings: User settings (user ID, tags, folders, template)
        force: Bypass feed caches and overwrite existing notes
        processor: Feed fetcher, built from settings when omitted
        vault: Note writer, built from settings when omitted
        now: Current time used for cache busting and date fallbacks
        activity: Activity log to append to
        execution_id: Execution ID for logging context

    Returns:
        SyncReport with counters, errors and activity entries
    """
    execution_id = (
        execution_id or f"sync_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
    )
    main_logger = create_execution_logger("sync", execution_id)
    activity = activity if activity is not None else ActivityLog(main_logger)
    report = SyncReport(force=force)

    if not _sync_lock.acquire(blocking=False):
        activity.add("Sync already in progress.", "info")
        report.logs = list(activity.entries)
        return report

    try:
        mode = "Force Sync" if force else "Sync"
        main_logger.log_sync_start(force, len(settings.tags))
        activity.add(f"{mode} started", "info")

        try:
            now = now or datetime.now(UTC)
            processor = processor or FeedProcessor(
                timeout=settings.request_timeout,
                execution_id=execution_id,
                offline=settings.offline,
            )
            vault = vault or VaultWriter(settings.vault_path, execution_id)

            for tag in settings.tags:
                sync_tag(tag, settings, processor, vault, report, activity, force, now)

            activity.add(
                f"Sync complete. {report.notes_processed} notes processed.", "success"
            )
            main_logger.log_sync_end(report.metrics(), report.success)

        except Exception as e:
            error_msg = f"Critical error during sync: {e}"
            main_logger.error(error_msg, error=str(e))
            report.errors.append(error_msg)
            activity.add("Sync process failed globally", "error", str(e))
            main_logger.log_sync_end(report.metrics(), success=False)
    finally:
        _sync_lock.release()

    report.logs = list(activity.entries)
    return report


def sync_tag(
    tag: TagConfig,
    settings: Settings,
    processor: FeedProcessor,
    vault: VaultWriter,
    report: SyncReport,
    activity: ActivityLog,
    force: bool,
    now: datetime,
) -> None:
    """Fetch one tag and write its notes, recording any failure in the report."""
    feed_url = build_feed_url(settings.user_id, tag.name)
    activity.add(f"Fetching feed for tag: {tag.name}...", "info", feed_url)

    try:
        items = processor.fetch_tag(tag.name, settings.user_id, force=force, now=now)
        report.items_found += len(items)

        folder = settings.folder_for(tag)
        vault.ensure_folder(folder)

        written = 0
        for item in items:
            note = generate_note(item, settings.template)
            action = vault.write_note(folder, note, force=force)
            if action == CREATED:
                report.notes_created += 1
                written += 1
                activity.add(
                    f"Created: {note.file_name_stem}", "success", f"in {folder or '/'}"
                )
            elif action == UPDATED:
                report.notes_updated += 1
                written += 1
                activity.add(
                    f"Updated: {note.file_name_stem}", "success", "(Force update)"
                )
            else:
                report.notes_skipped += 1

        if written == 0:
            activity.add(f"No new items for tag: {tag.name}", "info")

        report.tags_processed += 1

    except Exception as e:
        error_msg = f"Failed to process tag: {tag.name}"
        report.tags_failed += 1
        report.errors.append(f"{error_msg}: {e}")
        activity.add(error_msg, "error", str(e))