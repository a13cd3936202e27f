# apps/sync/models.py
from django.db import models


class ResourceRevision(models.Model):
    """
    Monotonic change counter per resource.

    Clients poll the counters and re-fetch a resource when its revision moves,
    instead of applying deltas.
    """
    resource = models.CharField(max_length=50, unique=True)
    revision = models.PositiveBigIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'resource_revisions'
        ordering = ['resource']

    def __str__(self):
        return f"{self.resource}@{self.revision}"
