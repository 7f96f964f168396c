from django.contrib import admin
from .models import WatchedContract, IndexerCursor


@admin.register(WatchedContract)
class WatchedContractAdmin(admin.ModelAdmin):
    list_display = ("address", "kind", "discovered_at_block", "created_at")
    list_filter = ("kind",)
    search_fields = ("address",)


@admin.register(IndexerCursor)
class IndexerCursorAdmin(admin.ModelAdmin):
    list_display = ("name", "last_block", "updated_at")
