from django.contrib import admin
from .models import Pool, Member, Cycle, CycleContribution


@admin.register(Pool)
class PoolAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "state", "current_cycle", "total_cycles", "cycle_start_time")
    list_filter = ("state",)
    search_fields = ("id", "name", "creator")


@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):
    list_display = ("pool", "address", "contribution", "joined_at_block")
    search_fields = ("address", "pool__id")


@admin.register(Cycle)
class CycleAdmin(admin.ModelAdmin):
    list_display = ("pool", "index", "winner", "prize", "yield_bonus", "compounded")
    search_fields = ("winner", "pool__id")


@admin.register(CycleContribution)
class CycleContributionAdmin(admin.ModelAdmin):
    list_display = ("pool", "cycle_index", "member_address", "amount", "is_liquidated")
    list_filter = ("is_liquidated",)
    search_fields = ("member_address", "pool__id")
