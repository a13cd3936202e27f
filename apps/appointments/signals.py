# apps/appointments/signals.py
from django.dispatch import Signal

# Sent inside the deciding transaction with ``appointment`` and ``user``
appointment_booked = Signal()
appointment_approved = Signal()
appointment_rejected = Signal()
