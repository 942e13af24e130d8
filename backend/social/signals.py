"""
Django Signals feeding the live-query registry.

Every committed save/delete of a model with subscribers is forwarded to
subscriptions.py.

Trade-off Discussion:
---------------------
PROS:
- Writers do not need to know who is listening
- Cascaded deletes (post → comments) are announced too, because the
  deletion collector sends post_delete per row when receivers exist

CONS:
- Signals do NOT fire on QuerySet.update() or bulk_create()
- One extra "does this row match?" query per subscriber per write

Counters are NOT maintained here. Keeping comment_count in a post_save
receiver would run outside the post's row lock; services.add_comment
updates it inside the lock instead.
"""
from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from . import subscriptions


@receiver(post_save, dispatch_uid='social_publish_saved')
def publish_saved(sender, instance, raw=False, **kwargs):
    """Queue a save notification for after the surrounding transaction commits."""
    if raw or not subscriptions.has_subscribers(sender):
        return
    transaction.on_commit(lambda: subscriptions.publish_saved(sender, instance))


@receiver(post_delete, dispatch_uid='social_publish_deleted')
def publish_deleted(sender, instance, **kwargs):
    """
    Queue a delete notification.

    The pk is captured now: Django clears instance.pk once the deletion
    finishes, which is before on_commit runs.
    """
    if not subscriptions.has_subscribers(sender):
        return
    pk = instance.pk
    transaction.on_commit(lambda: subscriptions.publish_deleted(sender, instance, pk))
