"""Base abstract model shared by every EcoChain app.

``BaseModel`` provides a UUIDv7 primary key (time-ordered, so inserts stay
index friendly) plus ``created_at`` / ``updated_at`` bookkeeping.

``created_at`` defaults to ``timezone.now`` instead of ``auto_now_add`` so
rows imported from the marketplace store keep their original creation time.
The delivery simulation measures elapsed time from that value.
"""

from __future__ import annotations

import uuid6
from django.db import models
from django.utils import timezone


class BaseModel(models.Model):
    """Abstract base with UUIDv7 PK and timestamp bookkeeping."""

    id = models.UUIDField(
        primary_key=True,
        default=uuid6.uuid7,
        editable=False,
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        """Ensure ``updated_at`` is refreshed even when ``update_fields`` is passed."""
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "updated_at" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["updated_at"]
        super().save(*args, **kwargs)
