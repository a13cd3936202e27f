# apps/audit/services.py

import hashlib
import json
from typing import Any, Dict, Optional

from django.db import transaction
from django.forms.models import model_to_dict
from django.utils import timezone

from core.constants import AuditActions
from .models import AuditLog

VALID_ACTIONS = {code for code, _ in AuditActions.CHOICES}


# ======================================================
# JSON / SERIALIZATION UTILITIES
# ======================================================

def json_dumps(value: Any) -> str:
    """
    Deterministic JSON serialization for hashing.
    """
    return json.dumps(
        value,
        sort_keys=True,
        ensure_ascii=False,
        separators=(",", ":"),
        default=str,
    )


def serialize_model(instance) -> Optional[Dict[str, Any]]:
    """
    Convert Django model instance to a JSON-safe dict.
    FK -> pk
    Date/Datetime -> ISO
    """
    if instance is None:
        return None

    raw = model_to_dict(instance)
    data: Dict[str, Any] = {}

    for field, value in raw.items():
        if hasattr(value, "pk"):
            data[field] = value.pk
        elif hasattr(value, "isoformat"):
            data[field] = value.isoformat()
        elif isinstance(value, (dict, list, str, int, float, bool)) or value is None:
            data[field] = value
        else:
            data[field] = str(value)

    return data


# ======================================================
# HASH CHAIN
# ======================================================

def compute_record_hash(previous_hash: str, payload: Dict[str, Any]) -> str:
    """
    Compute SHA-256 audit hash.
    """
    raw = f"{previous_hash}{json_dumps(payload)}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def verify_chain() -> bool:
    """Recompute every hash in order; False on the first broken link"""
    previous_hash = ""
    for log in AuditLog.objects.order_by("id").iterator():
        if log.previous_hash != previous_hash:
            return False
        payload = _payload(log.user_id, log.action, log.model_name, log.object_id,
                           log.before, log.after, log.metadata)
        if compute_record_hash(previous_hash, payload) != log.record_hash:
            return False
        previous_hash = log.record_hash
    return True


def _payload(user_id, action, model_name, object_id, before, after, metadata):
    return {
        "user_id": user_id,
        "action": action,
        "model": model_name,
        "object_id": object_id,
        "before": before,
        "after": after,
        "metadata": metadata or {},
    }


# ======================================================
# CORE AUDIT LOGGER (IMMUTABLE)
# ======================================================

@transaction.atomic
def log_action(
    *,
    instance,
    action: str,
    user=None,
    before: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Create immutable audit log with hash chaining.
    """
    action = action.upper()
    if action not in VALID_ACTIONS:
        raise ValueError(f"Invalid audit action: {action}")

    if user is not None and not getattr(user, "is_authenticated", False):
        user = None

    after = serialize_model(instance)

    last = (
        AuditLog.objects
        .select_for_update()
        .order_by("-id")
        .only("record_hash")
        .first()
    )
    previous_hash = last.record_hash if last else ""

    model_name = instance.__class__.__name__
    object_id = str(instance.pk) if instance.pk else "NEW"

    # Round-trip through JSON so the hashed payload matches what the JSONField stores
    before = json.loads(json_dumps(before)) if before is not None else None
    after = json.loads(json_dumps(after))
    metadata = json.loads(json_dumps(metadata or {}))

    payload = _payload(user.pk if user else None, action, model_name, object_id,
                       before, after, metadata)

    return AuditLog.objects.create(
        user=user,
        ip_address=ip_address,
        action=action,
        model_name=model_name,
        object_id=object_id,
        before=before,
        after=after,
        metadata=metadata,
        previous_hash=previous_hash,
        record_hash=compute_record_hash(previous_hash, payload),
        timestamp=timezone.now(),
    )


def request_ip(request):
    if request is None:
        return None
    return request.META.get("REMOTE_ADDR")
