"""Pointman admin.

Ledgers are append-only: no add, change or delete from the admin.
Member balances are read-only here; use `pointman_reconcile --fix`.
"""

from django.contrib import admin
from django.utils.html import format_html

from pointman.models import EarnEvent, Member, Redemption, Reward, Store
from pointman.services import catalog


class RedemptionInline(admin.TabularInline):
    model = Redemption
    extra = 0
    fields = ["reward", "points_spent", "status", "redeemed_at"]
    readonly_fields = fields
    ordering = ["-redeemed_at"]

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):
    list_display = ["name", "email", "pos_customer_id", "points_balance", "updated_at"]
    search_fields = ["name", "email", "phone_number", "pos_customer_id"]
    readonly_fields = ["points_balance", "created_at", "updated_at"]
    raw_id_fields = ["user"]
    inlines = [RedemptionInline]


@admin.register(Reward)
class RewardAdmin(admin.ModelAdmin):
    list_display = ["name", "points_cost", "is_active", "updated_at"]
    list_filter = ["is_active"]
    list_editable = ["is_active"]
    search_fields = ["name", "description"]


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = ["name", "pos_store_id", "is_default_for_new_users"]
    search_fields = ["name", "pos_store_id"]


class _LedgerAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(EarnEvent)
class EarnEventAdmin(_LedgerAdmin):
    list_display = [
        "transaction_time",
        "pos_order_id",
        "pos_customer_id",
        "store_display",
        "total_amount",
        "points_display",
    ]
    search_fields = ["pos_order_id", "pos_customer_id"]
    date_hierarchy = "transaction_time"

    def store_display(self, obj):
        return catalog.store_label(obj.pos_store_id)

    store_display.short_description = "Store"

    def points_display(self, obj):
        return format_html('<span style="color:green">+{}</span>', obj.points_earned)

    points_display.short_description = "Points"


@admin.register(Redemption)
class RedemptionAdmin(_LedgerAdmin):
    list_display = ["redeemed_at", "member", "reward", "points_display", "status"]
    list_filter = ["status"]
    search_fields = ["member__name", "member__email", "reward__name"]
    date_hierarchy = "redeemed_at"

    def points_display(self, obj):
        return format_html('<span style="color:red">-{}</span>', obj.points_spent)

    points_display.short_description = "Points"
