# accounting/management/commands/replay_ledger_postings.py

from __future__ import annotations

from django.core.management.base import BaseCommand

from accounting.models.posting_task import LedgerPostingTask
from accounting.services.ledger_outbox import pending_posting_tasks, replay_posting_task


class Command(BaseCommand):
    help = "Retry pending / failed document postings (ledger outbox) below the attempt cap."

    def add_arguments(self, parser):
        parser.add_argument("--tenant", dest="tenant_id", help="Only replay this tenant (optional)")
        parser.add_argument("--limit", type=int, default=None, help="Max tasks to replay")
        parser.add_argument("--dry-run", action="store_true", help="List tasks without posting")

    def handle(self, *args, **options):
        dry_run = bool(options.get("dry_run"))
        limit = options.get("limit")

        qs = pending_posting_tasks(tenant_id=options.get("tenant_id")).select_related("created_by")
        if limit:
            qs = qs[:limit]

        self.stdout.write(self.style.MIGRATE_HEADING("Replay ledger postings"))
        if dry_run:
            self.stdout.write("DRY RUN: no database changes will be saved.\n")

        counts = {
            LedgerPostingTask.POSTED: 0,
            LedgerPostingTask.SKIPPED: 0,
            LedgerPostingTask.FAILED: 0,
        }
        total = 0

        for task in qs:
            total += 1
            label = f"[{task.tenant_id}] {task.kind} {task.source_reference or task.source_id}"

            if dry_run:
                self.stdout.write(f"Would replay {label} (attempts={task.attempts})")
                continue

            task = replay_posting_task(task)
            counts[task.ledger_status] = counts.get(task.ledger_status, 0) + 1

            if task.ledger_status == LedgerPostingTask.FAILED:
                self.stderr.write(self.style.ERROR(f"[FAIL] {label}: {task.last_error}"))
            else:
                self.stdout.write(f"[{task.ledger_status.upper()}] {label}")

        self.stdout.write("")
        self.stdout.write(f"Tasks considered: {total}")
        if not dry_run:
            self.stdout.write(
                self.style.SUCCESS(
                    f"posted={counts[LedgerPostingTask.POSTED]} "
                    f"skipped={counts[LedgerPostingTask.SKIPPED]} "
                    f"failed={counts[LedgerPostingTask.FAILED]}"
                )
            )
