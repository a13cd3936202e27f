# core/utils/records.py
"""
Record list (de)serialization.

The front ends used to keep every resource as a JSON array under a
local-storage key. Exports of that state, sync snapshots and the import
command all go through these helpers so that a list survives a round trip
unchanged and in order.
"""
import json
import logging
from decimal import Decimal
from datetime import date, datetime, time
from uuid import UUID

logger = logging.getLogger(__name__)


class RecordEncoder(json.JSONEncoder):
    def default(self, o):
        if isinstance(o, Decimal):
            return str(o)
        if isinstance(o, (datetime, date, time)):
            return o.isoformat()
        if isinstance(o, UUID):
            return str(o)
        return super().default(o)


def dumps_records(records):
    """Serialize a list of plain records, preserving order"""
    return json.dumps(list(records), cls=RecordEncoder)


def loads_records(raw, key='records'):
    """
    Parse a serialized record list.

    A missing payload yields an empty list. A corrupt payload also yields an
    empty list, but is reported, because it means stored state was lost.
    """
    if raw is None or raw == '':
        return []

    if isinstance(raw, list):
        records = raw
    else:
        try:
            records = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Discarding corrupt '{key}' payload: {e}")
            return []

    if not isinstance(records, list):
        logger.warning(f"Discarding '{key}' payload: expected a list, got {type(records).__name__}")
        return []

    kept = [record for record in records if isinstance(record, dict)]
    if len(kept) != len(records):
        logger.warning(f"Dropped {len(records) - len(kept)} malformed entries from '{key}'")
    return kept
