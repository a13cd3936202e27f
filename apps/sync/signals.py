# apps/sync/signals.py
from django.dispatch import Signal

# Sent after the writing transaction commits. Only ``resource`` is provided:
# receivers must re-read the resource rather than expect a delta.
resource_updated = Signal()
