"""
Chat: global rooms, two-party threads, and the admin bulk clear.

THREAD RESOLUTION:
------------------
Looking a thread up by participants and creating one when nothing matches
is racy: two users opening the same DM at once both see "nothing" and both
create a thread.

Here the thread's primary key is thread_key(a, b), the sorted pair. Both
racers insert the same key; the database accepts one and get_or_create
reads it back for the other. There can never be two threads for one pair.

BULK CLEAR:
-----------
Deletes room messages in batches of SOCIAL_CHAT_CLEAR_BATCH_SIZE, re-querying
what is left on each pass. Interrupting it is harmless: the next call picks
up whatever remains. A batch that fails with TransientError is retried up
to SOCIAL_CHAT_CLEAR_MAX_RETRIES times.
"""
import logging
from typing import Optional

from django.conf import settings
from django.contrib.auth.models import User
from django.db import transaction
from django.utils import timezone

from .exceptions import (
    NotFoundError,
    PermissionDeniedError,
    TransientError,
    ValidationError,
    translate_db_errors,
)
from .models import ChatMessage, ConversationThread, thread_key
from .profiles import is_admin, profile_for

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 200


def is_room(channel: str) -> bool:
    return channel in settings.SOCIAL_CHAT_ROOMS


def get_thread(key: str) -> ConversationThread:
    try:
        return ConversationThread.objects.get(key=key)
    except ConversationThread.DoesNotExist:
        raise NotFoundError(f"Conversation {key} does not exist")


@translate_db_errors
def resolve_thread(user_a: User, user_b: User) -> ConversationThread:
    """
    Return THE thread for the pair, creating it if needed.

    resolve_thread(a, b) and resolve_thread(b, a) return the same row,
    even when called concurrently from two sessions.
    """
    if user_a.pk == user_b.pk:
        raise ValidationError("Cannot open a conversation with yourself.")

    low, high = sorted((user_a.pk, user_b.pk))
    thread, created = ConversationThread.objects.get_or_create(
        key=thread_key(low, high),
        defaults={'user_low_id': low, 'user_high_id': high}
    )
    if created:
        logger.info(f"Opened conversation {thread.key}")
    return thread


@translate_db_errors
def send_message(sender: User, channel: str, text: str) -> ChatMessage:
    """
    Append a message to a room or a thread.

    For threads, the sender must be a participant, and the thread's
    last-message preview moves in the same transaction as the insert.
    """
    text = (text or '').strip()
    if not text:
        raise ValidationError("Message cannot be empty.")

    profile = profile_for(sender)
    fields = {
        'sender': sender,
        'sender_name': profile.display_name,
        'sender_avatar': profile.avatar,
        'text': text,
    }

    if is_room(channel):
        message = ChatMessage.objects.create(room=channel, **fields)
        logger.debug(f"User {sender.pk} posted message {message.id} in room {channel}")
        return message

    with transaction.atomic():
        try:
            thread = ConversationThread.objects.select_for_update().get(key=channel)
        except ConversationThread.DoesNotExist:
            raise NotFoundError(f"Conversation {channel} does not exist")
        if not thread.has_participant(sender.pk):
            raise PermissionDeniedError("You are not part of this conversation.")

        message = ChatMessage.objects.create(thread=thread, **fields)
        thread.last_message = text[:PREVIEW_LENGTH]
        thread.last_message_at = message.created_at
        thread.save(update_fields=['last_message', 'last_message_at'])

    logger.debug(f"User {sender.pk} sent message {message.id} in {channel}")
    return message


def _lock_own_message(user: User, message_id) -> ChatMessage:
    try:
        message = ChatMessage.objects.select_for_update().get(id=message_id)
    except ChatMessage.DoesNotExist:
        raise NotFoundError(f"Message {message_id} does not exist")
    if message.sender_id != user.pk:
        raise PermissionDeniedError("Only the sender can change this message.")
    return message


@translate_db_errors
def edit_message(editor: User, message_id, text: str) -> ChatMessage:
    text = (text or '').strip()
    if not text:
        raise ValidationError("Message cannot be empty.")

    with transaction.atomic():
        message = _lock_own_message(editor, message_id)
        message.text = text
        message.edited = True
        message.edited_at = timezone.now()
        message.save(update_fields=['text', 'edited', 'edited_at'])
    return message


@translate_db_errors
def delete_message(requester: User, message_id) -> None:
    with transaction.atomic():
        message = _lock_own_message(requester, message_id)
        message.delete()
    logger.info(f"User {requester.pk} deleted message {message_id}")


@translate_db_errors
def _delete_message_batch(ids: list) -> int:
    with transaction.atomic():
        deleted, _ = ChatMessage.objects.filter(id__in=ids).delete()
    return deleted


def _delete_with_retry(ids: list) -> int:
    max_retries = settings.SOCIAL_CHAT_CLEAR_MAX_RETRIES
    attempt = 1
    while True:
        try:
            return _delete_message_batch(ids)
        except TransientError:
            if attempt >= max_retries:
                raise
            logger.warning(f"Clear batch failed (attempt {attempt}/{max_retries}), retrying")
            attempt += 1


@translate_db_errors
def clear_all_messages(requester: User, room: Optional[str] = None) -> int:
    """
    Delete every room message (or every message of one room). Admin only.

    Direct-message threads are private and are not touched.

    RETURNS:
    Number of messages deleted.
    """
    if not is_admin(requester):
        raise PermissionDeniedError("You must be an administrator to clear the chat.")
    if room is not None and not is_room(room):
        raise NotFoundError(f"Room {room} does not exist")

    remaining = ChatMessage.objects.filter(thread__isnull=True)
    if room is not None:
        remaining = remaining.filter(room=room)

    batch_size = settings.SOCIAL_CHAT_CLEAR_BATCH_SIZE
    total = 0
    while True:
        ids = list(remaining.order_by('id').values_list('id', flat=True)[:batch_size])
        if not ids:
            break
        deleted = _delete_with_retry(ids)
        total += deleted
        logger.info(f"Cleared {deleted} messages ({total} so far)")

    logger.info(f"Admin {requester.pk} cleared {total} chat messages")
    return total
