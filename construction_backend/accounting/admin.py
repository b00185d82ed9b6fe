# accounting/admin.py

from django.contrib import admin, messages

from accounting.models.account import Account, SubAccount
from accounting.models.journal import JournalEntry, JournalEntryLine
from accounting.models.ledger import GeneralLedgerEntry
from accounting.models.posting_task import LedgerPostingTask
from accounting.services.ledger_outbox import replay_posting_task

# ============================================================
# ACCOUNT
# ============================================================


class SubAccountInline(admin.TabularInline):
    model = SubAccount
    extra = 0
    fields = ("kind", "code", "name", "sub_type")


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "name",
        "account_type",
        "tenant_id",
        "is_active",
    )
    list_filter = ("account_type", "is_active", "tenant_id")
    search_fields = ("code", "name", "tenant_id")
    ordering = ("tenant_id", "code")
    readonly_fields = ("financial_component", "created_by", "created_at", "updated_at")
    inlines = [SubAccountInline]

    fieldsets = (
        (
            "Account Identity",
            {
                "fields": ("tenant_id", "code", "name", "account_type", "parent_account"),
            },
        ),
        (
            "Status",
            {
                "fields": ("is_active", "description"),
            },
        ),
        (
            "System Fields",
            {
                "fields": ("financial_component", "created_by", "created_at", "updated_at"),
            },
        ),
    )


# ============================================================
# JOURNAL ENTRY (READ-ONLY)
# ============================================================


class JournalEntryLineInline(admin.TabularInline):
    model = JournalEntryLine
    extra = 0
    can_delete = False
    fields = ("line_no", "account_code", "account_name", "debit", "credit", "description")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(JournalEntry)
class JournalEntryAdmin(admin.ModelAdmin):
    list_display = (
        "entry_number",
        "tenant_id",
        "date",
        "transaction_type",
        "description",
        "total_debit",
        "status",
    )
    list_filter = ("status", "transaction_type", "date")
    search_fields = ("entry_number", "description", "source_reference", "tenant_id")
    ordering = ("-date", "-created_at")
    inlines = [JournalEntryLineInline]

    readonly_fields = (
        "tenant_id",
        "entry_number",
        "date",
        "transaction_type",
        "source_model",
        "source_id",
        "source_reference",
        "project",
        "description",
        "notes",
        "total_debit",
        "total_credit",
        "status",
        "is_posted",
        "posted_at",
        "reversal_of",
        "created_by",
        "approved_by",
        "approved_at",
        "created_at",
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ============================================================
# GENERAL LEDGER ENTRY (STRICTLY IMMUTABLE)
# ============================================================


@admin.register(GeneralLedgerEntry)
class GeneralLedgerEntryAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "entry_number",
        "date",
        "account_code",
        "debit",
        "credit",
        "balance",
        "status",
    )
    list_filter = ("status", "account_type", "tenant_id")
    search_fields = ("entry_number", "account_code", "tenant_id")
    ordering = ("date", "created_at", "id")

    readonly_fields = (
        "tenant_id",
        "journal_entry",
        "entry_number",
        "account",
        "account_code",
        "account_name",
        "account_type",
        "date",
        "debit",
        "credit",
        "balance",
        "status",
        "created_at",
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ============================================================
# POSTING TASKS (OUTBOX)
# ============================================================


@admin.register(LedgerPostingTask)
class LedgerPostingTaskAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "tenant_id",
        "kind",
        "source_reference",
        "ledger_status",
        "attempts",
        "last_attempt_at",
    )
    list_filter = ("ledger_status", "kind")
    search_fields = ("source_reference", "source_id", "tenant_id")
    ordering = ("-created_at",)
    actions = ["replay_selected"]

    readonly_fields = (
        "tenant_id",
        "kind",
        "source_model",
        "source_id",
        "source_reference",
        "payload",
        "ledger_status",
        "attempts",
        "last_error",
        "last_attempt_at",
        "journal_entry",
        "created_by",
        "created_at",
        "updated_at",
    )

    @admin.action(description="Retry ledger posting")
    def replay_selected(self, request, queryset):
        posted = 0
        for task in queryset:
            if replay_posting_task(task).ledger_status == LedgerPostingTask.POSTED:
                posted += 1
        self.message_user(request, f"{posted} task(s) posted.", messages.INFO)

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
