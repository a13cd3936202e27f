from datetime import timedelta

import pytest
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.queues import services
from apps.queues.models import Token
from apps.sync.services import get_revisions
from core.constants import TokenStatus
from core.exceptions import ConflictError, InvalidTransition
from core.timers import TimerRegistry
from tests.conftest import FakeTimer

pytestmark = pytest.mark.django_db


@pytest.fixture
def tokens(patient, walk_in_patient, doctor, receptionist):
    return [
        services.generate_token(patient=patient, doctor=doctor, generated_by=receptionist),
        services.generate_token(patient=walk_in_patient, doctor=doctor, generated_by=receptionist),
    ]


def calling_count():
    return Token.objects.filter(status=TokenStatus.CALLING).count()


class TestTokenNumbers:

    def test_sequential_numbers(self, tokens):
        assert [t.token_number for t in tokens] == ['TK-1001', 'TK-1002']
        assert all(t.status == TokenStatus.WAITING for t in tokens)

    def test_numbering_restarts_per_day(self, patient):
        yesterday = timezone.localdate() - timedelta(days=1)
        services.generate_token(patient=patient, queue_date=yesterday)

        token = services.generate_token(patient=patient)
        assert token.token_number == 'TK-1001'

    def test_generation_bumps_revision(self, patient):
        services.generate_token(patient=patient)
        assert get_revisions()['tokens'] == 1


class TestTransitions:

    def test_call_next_calls_oldest_waiting(self, tokens):
        called = services.call_next()

        assert called.pk == tokens[0].pk
        assert called.status == TokenStatus.CALLING
        assert called.called_at is not None

    def test_call_next_completes_current(self, tokens):
        services.call_next()
        called = services.call_next()

        first = Token.objects.get(pk=tokens[0].pk)
        assert first.status == TokenStatus.DONE
        assert first.completed_at is not None
        assert called.pk == tokens[1].pk
        assert calling_count() == 1

    def test_call_next_on_empty_queue(self, tokens):
        services.call_next()
        services.call_next()
        assert services.call_next() is None
        assert calling_count() == 0
        assert Token.objects.filter(status=TokenStatus.DONE).count() == 2

    def test_at_most_one_calling(self, tokens):
        services.call_token(tokens[0])

        with pytest.raises(ConflictError):
            services.call_token(tokens[1])
        assert calling_count() == 1

    def test_database_enforces_single_calling_token(self, tokens):
        Token.objects.filter(pk=tokens[0].pk).update(status=TokenStatus.CALLING)

        with pytest.raises(IntegrityError):
            with transaction.atomic():
                Token.objects.filter(pk=tokens[1].pk).update(status=TokenStatus.CALLING)

    def test_waiting_cannot_be_completed(self, tokens):
        with pytest.raises(InvalidTransition):
            services.complete_token(tokens[0])

    def test_done_is_terminal(self, tokens):
        services.call_token(tokens[0])
        services.complete_token(tokens[0])

        with pytest.raises(InvalidTransition):
            services.call_token(tokens[0])

    def test_complete_with_stale_version(self, tokens):
        services.call_token(tokens[0])

        with pytest.raises(ConflictError):
            services.complete_token(tokens[0], expected_version=1)
        assert Token.objects.get(pk=tokens[0].pk).status == TokenStatus.CALLING


class TestCallTimeout:

    def test_sweep_completes_expired_tokens(self, tokens):
        called = services.call_next()
        Token.objects.filter(pk=called.pk).update(called_at=timezone.now() - timedelta(minutes=10))

        completed = services.expire_called_tokens(timeout_seconds=300)

        assert completed == 1
        assert Token.objects.get(pk=called.pk).status == TokenStatus.DONE

    def test_sweep_leaves_recent_calls(self, tokens):
        services.call_next()
        assert services.expire_called_tokens(timeout_seconds=300) == 0
        assert calling_count() == 1

    def test_sweep_disabled_without_timeout(self, tokens, settings):
        settings.QUEUE_CALL_TIMEOUT_SECONDS = 0
        services.call_next()
        assert services.expire_called_tokens(now=timezone.now() + timedelta(hours=1)) == 0

    def test_expire_ignores_moved_on_token(self, tokens):
        called = services.call_next()
        version = called.version
        services.complete_token(called)

        assert services.expire_token(called.pk, version) is False


@pytest.fixture
def timers(monkeypatch, settings):
    """Swap the module registry for one built on FakeTimer; returns it with the timers it made"""
    settings.QUEUE_CALL_TIMEOUT_SECONDS = 120
    made = []

    def factory(interval, function):
        timer = FakeTimer(interval, function)
        made.append(timer)
        return timer

    registry = TimerRegistry(timer_factory=factory)
    monkeypatch.setattr(services, 'call_timers', registry)
    return registry, made


class TestCallTimers:

    def test_call_schedules_and_complete_cancels(self, tokens, timers, django_capture_on_commit_callbacks):
        registry, made = timers

        with django_capture_on_commit_callbacks(execute=True):
            services.call_token(tokens[0])

        assert registry.pending(tokens[0].pk)
        assert made[0].interval == 120
        assert made[0].started

        with django_capture_on_commit_callbacks(execute=True):
            services.complete_token(tokens[0])

        assert not registry.pending(tokens[0].pk)
        assert made[0].cancelled

    def test_nothing_scheduled_before_commit(self, tokens, timers, django_capture_on_commit_callbacks):
        registry, made = timers

        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            services.call_token(tokens[0])

        assert callbacks
        assert made == []
        assert not registry.pending(tokens[0].pk)

    def test_call_next_moves_the_timer(self, tokens, timers, django_capture_on_commit_callbacks):
        registry, made = timers

        with django_capture_on_commit_callbacks(execute=True):
            services.call_next()
        with django_capture_on_commit_callbacks(execute=True):
            services.call_next()

        assert made[0].cancelled
        assert not registry.pending(tokens[0].pk)
        assert registry.pending(tokens[1].pk)

    def test_firing_timer_completes_token(self, tokens, timers, django_capture_on_commit_callbacks):
        registry, made = timers

        with django_capture_on_commit_callbacks(execute=True):
            called = services.call_next()
        made[0].function()

        called = Token.objects.get(pk=called.pk)
        assert called.status == TokenStatus.DONE
        assert called.completed_at is not None
        assert not registry.pending(called.pk)

    def test_late_timer_after_manual_completion_is_ignored(self, tokens, timers, django_capture_on_commit_callbacks):
        registry, made = timers

        with django_capture_on_commit_callbacks(execute=True):
            called = services.call_next()
        fire = made[0].function
        services.complete_token(called)
        done_version = Token.objects.get(pk=called.pk).version

        fire()

        assert Token.objects.get(pk=called.pk).version == done_version

    def test_disabled_timeout_schedules_nothing(self, tokens, timers, settings, django_capture_on_commit_callbacks):
        registry, made = timers
        settings.QUEUE_CALL_TIMEOUT_SECONDS = 0

        with django_capture_on_commit_callbacks(execute=True):
            services.call_next()

        assert made == []
        assert len(registry) == 0

class TestStats:

    def test_stats(self, tokens):
        services.call_next()
        stats = services.queue_stats()

        assert stats['total'] == 2
        assert stats['waiting'] == 1
        assert stats['calling'] == 1
        assert stats['active'] == 2
        assert stats['current_token'] == 'TK-1001'


class TestQueueApi:

    def test_generate_token(self, desk_client, walk_in_patient, doctor):
        response = desk_client.post('/api/queue/tokens/', {'patient_id': walk_in_patient.pk, 'doctor_id': doctor.pk},
                                    format='json')

        assert response.status_code == 201
        assert response.data['data']['token_number'] == 'TK-1001'
        assert response.data['data']['department_name'] == 'Cardiology'

    def test_call_next_endpoint(self, desk_client, tokens):
        response = desk_client.post('/api/queue/tokens/call-next/', {}, format='json')

        assert response.status_code == 200
        assert response.data['data']['token_number'] == 'TK-1001'
        assert response.data['data']['status'] == TokenStatus.CALLING

    def test_call_while_another_calling_is_409(self, desk_client, tokens):
        services.call_token(tokens[0])

        response = desk_client.post(f'/api/queue/tokens/{tokens[1].pk}/call/', {}, format='json')
        assert response.status_code == 409

    def test_complete_endpoint(self, desk_client, tokens):
        services.call_token(tokens[0])

        response = desk_client.post(f'/api/queue/tokens/{tokens[0].pk}/complete/', {}, format='json')

        assert response.status_code == 200
        assert response.data['data']['status'] == TokenStatus.DONE

    def test_list_defaults_to_today(self, desk_client, tokens, patient):
        services.generate_token(patient=patient, queue_date=timezone.localdate() - timedelta(days=1))

        response = desk_client.get('/api/queue/tokens/')

        assert response.status_code == 200
        assert response.data['count'] == 2

    def test_stats_endpoint(self, desk_client, tokens):
        response = desk_client.get('/api/queue/tokens/stats/')

        assert response.status_code == 200
        assert response.data['data']['waiting'] == 2

    def test_patient_cannot_call(self, patient_client, tokens):
        response = patient_client.post('/api/queue/tokens/call-next/', {}, format='json')
        assert response.status_code == 403
