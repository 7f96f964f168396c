# rosca/pools/models.py
from django.db import models

KEY_SEPARATOR = "|"

# uint256 fits in 78 decimal digits
UINT256_DIGITS = 78


def composite_key(*parts) -> str:
    """Deterministic projection key, e.g. ``0xpool|3|0xmember``."""
    return KEY_SEPARATOR.join(str(p).lower() for p in parts)


class PoolState(models.TextChoices):
    OPEN = "Open", "Open"
    ACTIVE = "Active", "Active"
    COMPLETED = "Completed", "Completed"


class Pool(models.Model):
    """One deployed pool contract (off-chain mirror built from its events)."""

    id = models.CharField(primary_key=True, max_length=42)  # pool address, lower-cased
    creator = models.CharField(max_length=42, db_index=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    max_members = models.PositiveSmallIntegerField()
    contribution_per_period = models.DecimalField(
        max_digits=UINT256_DIGITS, decimal_places=0
    )  # 6-decimal minor units
    period_duration = models.DecimalField(
        max_digits=UINT256_DIGITS, decimal_places=0
    )  # seconds
    yield_bonus_split = models.PositiveSmallIntegerField()  # 0-100

    # Derived / dynamic fields updated by pool events
    state = models.CharField(
        max_length=16, choices=PoolState.choices, default=PoolState.OPEN, db_index=True
    )
    current_cycle = models.PositiveIntegerField(default=0)
    total_cycles = models.PositiveIntegerField()
    cycle_start_time = models.BigIntegerField(default=0)  # unix seconds

    created_at_block = models.BigIntegerField()
    created_at_timestamp = models.BigIntegerField()

    class Meta:
        ordering = ["created_at_block", "id"]

    def __str__(self):
        return f"{self.name} ({self.id})"


class Member(models.Model):
    """A joined address; immutable once created."""

    id = models.CharField(primary_key=True, max_length=96)  # pool|member
    pool = models.ForeignKey(Pool, on_delete=models.CASCADE, related_name="members")
    address = models.CharField(max_length=42, db_index=True)
    contribution = models.DecimalField(
        max_digits=UINT256_DIGITS, decimal_places=0
    )  # upfront collateral
    joined_at_block = models.BigIntegerField()
    joined_at_timestamp = models.BigIntegerField()

    class Meta:
        ordering = ["joined_at_block", "id"]


class Cycle(models.Model):
    id = models.CharField(primary_key=True, max_length=64)  # pool|index
    pool = models.ForeignKey(Pool, on_delete=models.CASCADE, related_name="cycles")
    index = models.PositiveIntegerField()
    winner = models.CharField(max_length=42, db_index=True)
    prize = models.DecimalField(max_digits=UINT256_DIGITS, decimal_places=0)
    yield_bonus = models.DecimalField(
        max_digits=UINT256_DIGITS, decimal_places=0, default=0
    )
    compounded = models.DecimalField(
        max_digits=UINT256_DIGITS, decimal_places=0, default=0
    )
    # timestamp of the event that last touched the row
    timestamp = models.BigIntegerField()

    class Meta:
        ordering = ["pool_id", "index"]
        constraints = [
            models.UniqueConstraint(fields=["pool", "index"], name="uniq_cycle_pool_index"),
        ]


class CycleContribution(models.Model):
    """A paid or liquidated contribution for one member in one cycle."""

    id = models.CharField(primary_key=True, max_length=112)  # pool|cycle|member
    pool = models.ForeignKey(
        Pool, on_delete=models.CASCADE, related_name="cycle_contributions"
    )
    cycle_index = models.PositiveIntegerField()
    member_address = models.CharField(max_length=42, db_index=True)
    amount = models.DecimalField(max_digits=UINT256_DIGITS, decimal_places=0)
    is_liquidated = models.BooleanField(default=False)
    timestamp = models.BigIntegerField()

    class Meta:
        ordering = ["pool_id", "cycle_index", "member_address"]
        indexes = [
            models.Index(fields=["pool", "cycle_index"], name="contrib_pool_cycle_idx"),
        ]
