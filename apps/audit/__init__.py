"""
Audit trail for the hospital workflows.

Every approval, rejection, invoice, payment and token transition is
appended to an immutable, hash-chained log via ``services.log_action``.
"""
