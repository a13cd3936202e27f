# core/mixins/versioned.py
from django.db import models
from django.db.models import F
from django.utils import timezone

from core.exceptions import ConflictError


class VersionedMixin(models.Model):
    """
    Optimistic concurrency for rows several front-desk screens edit at once.

    Writers go through ``save_versioned`` which issues
    ``UPDATE ... WHERE id = %s AND version = expected`` and bumps the version.
    Zero rows updated means somebody else won the race.
    """
    version = models.PositiveIntegerField(default=1, editable=False)

    class Meta:
        abstract = True

    def save_versioned(self, fields, expected_version=None):
        expected = self.version if expected_version is None else int(expected_version)

        values = {name: getattr(self, name) for name in fields}
        if any(f.name == 'updated_at' for f in self._meta.concrete_fields):
            self.updated_at = timezone.now()
            values['updated_at'] = self.updated_at

        updated = type(self).objects.filter(pk=self.pk, version=expected).update(
            version=F('version') + 1,
            **values
        )
        if not updated:
            raise ConflictError(
                f"{self._meta.verbose_name.title()} {self.pk} was modified by another user. "
                f"Reload and try again."
            )
        self.version = expected + 1
