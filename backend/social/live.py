"""
Live-stream announcements and streams.

Announcements are plain owned records. Streams add one rule: a host is
live at most once at a time, enforced by a partial unique constraint so
two "go live" clicks cannot both succeed.
"""
import logging

from django.contrib.auth.models import User
from django.db import IntegrityError, transaction
from django.utils import timezone

from .exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    translate_db_errors,
)
from .models import LiveAnnouncement, LiveComment, LiveStream
from .profiles import profile_for

logger = logging.getLogger(__name__)

EDITABLE_ANNOUNCEMENT_FIELDS = ('topic', 'scheduled_at', 'location', 'description')


@translate_db_errors
def announce_live(host: User, topic: str, scheduled_at, location: str = '', description: str = '') -> LiveAnnouncement:
    topic = (topic or '').strip()
    if not topic or scheduled_at is None:
        raise ValidationError("Topic and scheduled time are required.")

    profile = profile_for(host)
    announcement = LiveAnnouncement.objects.create(
        host=host,
        host_name=profile.display_name,
        host_avatar=profile.avatar,
        topic=topic,
        scheduled_at=scheduled_at,
        location=(location or '').strip(),
        description=(description or '').strip(),
    )
    logger.info(f"User {host.pk} announced live stream {announcement.id}")
    return announcement


def _lock_own_announcement(user: User, announcement_id) -> LiveAnnouncement:
    try:
        announcement = LiveAnnouncement.objects.select_for_update().get(id=announcement_id)
    except LiveAnnouncement.DoesNotExist:
        raise NotFoundError(f"Announcement {announcement_id} does not exist")
    if announcement.host_id != user.pk:
        raise PermissionDeniedError("Only the host can change this announcement.")
    return announcement


@translate_db_errors
def edit_announcement(editor: User, announcement_id, **changes) -> LiveAnnouncement:
    unknown = set(changes) - set(EDITABLE_ANNOUNCEMENT_FIELDS)
    if unknown:
        raise ValidationError(f"Cannot edit fields: {', '.join(sorted(unknown))}")
    if 'topic' in changes:
        changes['topic'] = (changes['topic'] or '').strip()
        if not changes['topic']:
            raise ValidationError("Topic is required.")
    if 'scheduled_at' in changes and changes['scheduled_at'] is None:
        raise ValidationError("Scheduled time is required.")

    with transaction.atomic():
        announcement = _lock_own_announcement(editor, announcement_id)
        for field, value in changes.items():
            setattr(announcement, field, value)
        if changes:
            announcement.save(update_fields=list(changes))
    return announcement


@translate_db_errors
def delete_announcement(requester: User, announcement_id) -> None:
    with transaction.atomic():
        announcement = _lock_own_announcement(requester, announcement_id)
        announcement.delete()
    logger.info(f"User {requester.pk} deleted announcement {announcement_id}")


@translate_db_errors
def start_stream(host: User) -> LiveStream:
    """Go live. ConflictError if this host already has a live stream."""
    profile = profile_for(host)
    try:
        with transaction.atomic():
            stream = LiveStream.objects.create(
                host=host,
                host_name=profile.display_name,
                host_avatar=profile.avatar,
            )
    except IntegrityError:
        raise ConflictError("You already have a live stream running.")

    logger.info(f"User {host.pk} started stream {stream.id}")
    return stream


@translate_db_errors
def end_stream(requester: User, stream_id) -> int:
    """
    End a stream and clear its comments. Host only.

    Ending an already-ended stream is a no-op.

    RETURNS:
    Number of live comments removed.
    """
    with transaction.atomic():
        try:
            stream = LiveStream.objects.select_for_update().get(id=stream_id)
        except LiveStream.DoesNotExist:
            raise NotFoundError(f"Stream {stream_id} does not exist")
        if stream.host_id != requester.pk:
            raise PermissionDeniedError("Only the host can end this stream.")
        if not stream.is_live:
            return 0

        stream.is_live = False
        stream.ended_at = timezone.now()
        stream.save(update_fields=['is_live', 'ended_at'])
        cleared, _ = stream.comments.all().delete()

    logger.info(f"User {requester.pk} ended stream {stream_id}, cleared {cleared} comments")
    return cleared


@translate_db_errors
def add_live_comment(author: User, stream_id, text: str) -> LiveComment:
    text = (text or '').strip()
    if not text:
        raise ValidationError("Comment cannot be empty.")

    profile = profile_for(author)
    with transaction.atomic():
        stream = LiveStream.objects.select_for_update().filter(id=stream_id, is_live=True).first()
        if stream is None:
            raise NotFoundError(f"Stream {stream_id} is not live")
        return LiveComment.objects.create(
            stream=stream,
            author=author,
            author_name=profile.display_name,
            text=text,
        )
