from django.db import models


class WatchedContract(models.Model):
    """An address whose logs the indexer follows."""

    KIND_FACTORY = "factory"
    KIND_POOL = "pool"
    KIND_CHOICES = [
        (KIND_FACTORY, "Factory"),
        (KIND_POOL, "Pool"),
    ]

    address = models.CharField(primary_key=True, max_length=42)  # lower-cased
    kind = models.CharField(max_length=16, choices=KIND_CHOICES)
    discovered_at_block = models.BigIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["discovered_at_block", "address"]

    def __str__(self):
        return f"{self.kind}:{self.address}"


class IndexerCursor(models.Model):
    """Last block whose logs were fully applied; polling resumes after it."""

    name = models.CharField(primary_key=True, max_length=64)
    last_block = models.BigIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name}@{self.last_block}"
