# apps/sync/services.py
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from core.constants import Resources
from .models import ResourceRevision
from .signals import resource_updated


def broadcast(*resources):
    """
    Record that ``resources`` changed.

    The revision bump joins the caller's transaction so it is only visible
    together with the data; in-process listeners are told after commit.
    """
    for resource in resources:
        if resource not in Resources.ALL:
            raise ValueError(f"Unknown resource: {resource}")

        updated = ResourceRevision.objects.filter(resource=resource).update(
            revision=F('revision') + 1,
            updated_at=timezone.now(),
        )
        if not updated:
            _, created = ResourceRevision.objects.get_or_create(
                resource=resource, defaults={'revision': 1}
            )
            if not created:
                ResourceRevision.objects.filter(resource=resource).update(
                    revision=F('revision') + 1
                )

        transaction.on_commit(
            lambda resource=resource: resource_updated.send(sender=ResourceRevision, resource=resource)
        )


def get_revisions():
    """Current revision of every known resource (0 when never written)"""
    revisions = {resource: 0 for resource in Resources.ALL}
    revisions.update(
        ResourceRevision.objects.filter(resource__in=Resources.ALL).values_list('resource', 'revision')
    )
    return revisions


def changed_since(known):
    """Resources named in the client's ``known`` map whose revision has moved"""
    current = get_revisions()
    return [
        resource for resource, revision in current.items()
        if resource in known and known[resource] != revision
    ]
