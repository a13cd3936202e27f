# core/state_machine.py

from core.exceptions import InvalidTransition


class TransitionTable:
    """
    Exhaustive map of allowed status transitions for one entity.

    Every status must appear as a key; terminal statuses map to an empty set.
    """

    def __init__(self, choices, transitions):
        self.choices = choices
        missing = set(choices.values) - set(transitions)
        if missing:
            raise ValueError(f"Transition table is missing statuses: {sorted(missing)}")
        self._transitions = {
            source: frozenset(targets) for source, targets in transitions.items()
        }

    def allowed(self, source):
        return self._transitions.get(source, frozenset())

    def can(self, source, target):
        return target in self.allowed(source)

    def is_terminal(self, status):
        return not self.allowed(status)

    def check(self, source, target):
        if not self.can(source, target):
            raise InvalidTransition(
                f"Cannot move from '{self.choices(source).label}' to '{self.choices(target).label}'"
            )

    def apply(self, instance, target, field='status'):
        """Validate and set the new status on ``instance`` (caller persists it)"""
        self.check(getattr(instance, field), target)
        setattr(instance, field, target)
        return instance
