# apps/queues/services.py
"""
Walk-in queue: token numbering and the Waiting -> Calling -> Done lifecycle.

At most one token per queue day is Calling. The service checks it before
every call and the ``one_calling_token_per_day`` constraint backs it up.
"""
import logging
from datetime import timedelta

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.audit.services import log_action
from apps.sync.services import broadcast
from core.constants import AuditActions, Resources, TokenStatus
from core.exceptions import ConflictError, InvalidTransition
from core.state_machine import TransitionTable
from core.timers import TimerRegistry
from .models import Token

logger = logging.getLogger(__name__)

TOKEN_NUMBER_BASE = 1000
TOKEN_NUMBER_ATTEMPTS = 3

TOKEN_TRANSITIONS = TransitionTable(TokenStatus, {
    TokenStatus.WAITING: {TokenStatus.CALLING},
    TokenStatus.CALLING: {TokenStatus.DONE},
    TokenStatus.DONE: set(),
})

call_timers = TimerRegistry()


def next_token_number(queue_date):
    count = Token.objects.filter(queue_date=queue_date).count()
    return f"TK-{TOKEN_NUMBER_BASE + count + 1}"


def generate_token(*, patient, doctor=None, department=None, generated_by=None, queue_date=None):
    """Issue the next token of the day in Waiting state"""
    queue_date = queue_date or timezone.localdate()

    for attempt in range(1, TOKEN_NUMBER_ATTEMPTS + 1):
        try:
            with transaction.atomic():
                token = Token.objects.create(
                    token_number=next_token_number(queue_date),
                    queue_date=queue_date,
                    patient=patient,
                    doctor=doctor,
                    department=department,
                    generated_by=generated_by,
                )
                log_action(instance=token, action=AuditActions.CREATE, user=generated_by)
                broadcast(Resources.TOKENS)
        except IntegrityError:
            # Another desk took the same number
            logger.warning(f"Token number collision on {queue_date} (attempt {attempt})")
            continue
        logger.info(f"Token {token.token_number} generated for patient {patient.pk}")
        return token

    raise ConflictError("Could not allocate a token number. Try again.")


def _transition(token, target, expected_version=None, user=None, **timestamps):
    TOKEN_TRANSITIONS.check(token.status, target)
    before = {'status': token.status, 'version': token.version}

    token.status = target
    for field, value in timestamps.items():
        setattr(token, field, value)
    try:
        token.save_versioned(['status', *timestamps], expected_version=expected_version)
    except IntegrityError:
        raise ConflictError("Another token is already being called")

    action = AuditActions.CALL if target == TokenStatus.CALLING else AuditActions.COMPLETE
    log_action(instance=token, action=action, user=user, before=before)
    return token


def _calling_token(queue_date, exclude=None):
    queryset = Token.objects.select_for_update().filter(
        queue_date=queue_date, status=TokenStatus.CALLING
    )
    if exclude is not None:
        queryset = queryset.exclude(pk=exclude.pk)
    return queryset.first()


def call_token(token, user=None, expected_version=None):
    """Move a specific waiting token to Calling"""
    with transaction.atomic():
        current = _calling_token(token.queue_date, exclude=token)
        if current is not None:
            raise ConflictError(f"Token {current.token_number} is already being called")

        _transition(token, TokenStatus.CALLING, expected_version, user, called_at=timezone.now())
        broadcast(Resources.TOKENS)
        _schedule_timeout(token)

    logger.info(f"Token {token.token_number} called by {user}")
    return token


def call_next(queue_date=None, user=None):
    """
    Finish the token being called (if any) and call the oldest waiting one.

    Returns the newly called token, or None when nobody is waiting.
    """
    queue_date = queue_date or timezone.localdate()
    now = timezone.now()

    with transaction.atomic():
        current = _calling_token(queue_date)
        if current is not None:
            _transition(current, TokenStatus.DONE, user=user, completed_at=now)
            _cancel_timeout(current)

        upcoming = (
            Token.objects.select_for_update()
            .filter(queue_date=queue_date, status=TokenStatus.WAITING)
            .order_by('created_at', 'id')
            .first()
        )
        if upcoming is not None:
            _transition(upcoming, TokenStatus.CALLING, user=user, called_at=now)
            _schedule_timeout(upcoming)

        if current is not None or upcoming is not None:
            broadcast(Resources.TOKENS)

    if upcoming is None:
        logger.info(f"call_next on {queue_date}: queue is empty")
    else:
        logger.info(f"Now calling {upcoming.token_number}")
    return upcoming


def complete_token(token, user=None, expected_version=None):
    with transaction.atomic():
        _transition(token, TokenStatus.DONE, expected_version, user, completed_at=timezone.now())
        broadcast(Resources.TOKENS)
        _cancel_timeout(token)

    logger.info(f"Token {token.token_number} completed")
    return token


# ----------------------------
# Call timeout
# ----------------------------

def call_timeout_seconds():
    return int(getattr(settings, 'QUEUE_CALL_TIMEOUT_SECONDS', 0) or 0)


def _schedule_timeout(token):
    seconds = call_timeout_seconds()
    if seconds <= 0:
        return
    token_id, version = token.pk, token.version
    transaction.on_commit(
        lambda: call_timers.schedule(token_id, seconds, expire_token, token_id, version)
    )


def _cancel_timeout(token):
    token_id = token.pk
    transaction.on_commit(lambda: call_timers.cancel(token_id))


def expire_token(token_id, version):
    """Timer callback: auto-complete a token still Calling at ``version``"""
    token = Token.objects.filter(pk=token_id, status=TokenStatus.CALLING, version=version).first()
    if token is None:
        return False
    try:
        complete_token(token, expected_version=version)
    except (ConflictError, InvalidTransition) as exc:
        logger.info(f"Token {token_id} changed before its call timed out: {exc.detail}")
        return False
    logger.info(f"Token {token.token_number} auto-completed after call timeout")
    return True


def expire_called_tokens(now=None, timeout_seconds=None):
    """
    Complete every token that has been Calling longer than the timeout.

    Returns the number of tokens completed; 0 when the timeout is disabled.
    """
    timeout_seconds = call_timeout_seconds() if timeout_seconds is None else timeout_seconds
    if not timeout_seconds or timeout_seconds <= 0:
        return 0

    now = now or timezone.now()
    cutoff = now - timedelta(seconds=timeout_seconds)
    expired = Token.objects.filter(status=TokenStatus.CALLING, called_at__lte=cutoff)

    completed = 0
    for token in expired:
        if expire_token(token.pk, token.version):
            completed += 1
    return completed


# ----------------------------
# Stats
# ----------------------------

def queue_stats(queue_date=None):
    queue_date = queue_date or timezone.localdate()
    tokens = list(Token.objects.filter(queue_date=queue_date))

    counts = {choice: 0 for choice in TokenStatus.values}
    for token in tokens:
        counts[token.status] += 1

    waits = [token.wait_minutes for token in tokens if token.called_at]
    current = next((t for t in tokens if t.status == TokenStatus.CALLING), None)

    return {
        'date': queue_date,
        'total': len(tokens),
        'waiting': counts[TokenStatus.WAITING],
        'calling': counts[TokenStatus.CALLING],
        'done': counts[TokenStatus.DONE],
        'active': counts[TokenStatus.WAITING] + counts[TokenStatus.CALLING],
        'average_wait_minutes': round(sum(waits) / len(waits), 1) if waits else 0,
        'current_token': current.token_number if current else None,
    }
