"""Django signals for transaction status changes.

``transaction_status_changed`` is sent by the checkout service after a
status transition is persisted, with ``transaction`` and ``previous``.
"""

from django.apps import apps
from django.dispatch import Signal, receiver

from checkout.notifier import status_message

transaction_status_changed = Signal()


@receiver(transaction_status_changed)
def broadcast_status_change(sender, transaction, previous, **kwargs):
    """Push the new status to stream subscribers of the transaction."""
    notifier = apps.get_app_config("checkout").notifier
    notifier.publish(str(transaction.id), status_message(transaction))
