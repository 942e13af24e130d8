"""
Read Accessors
==============

Everything the UI reads goes through here. Writes live in services.py,
chat.py and live.py.

WHY THESE ARE CHEAP:
--------------------
Author names and avatars are denormalized onto posts, comments and
messages, so none of these queries JOIN the user table:

    SELECT * FROM social_post ORDER BY created_at DESC LIMIT 20

The counters (like_count, comment_count) come straight off the row as
well. The one extra query a feed page needs is "which of these did I
like?", answered by get_liked_post_ids() in a single IN (...) lookup.

Functions returning a QuerySet stay lazy, so callers may slice or
paginate them; subscriptions.subscribe() accepts them directly.
"""
from typing import Iterable, Optional

from django.conf import settings
from django.db.models import Q, QuerySet
from django.utils import timezone

from .chat import get_thread, is_room
from .exceptions import NotFoundError, PermissionDeniedError
from .models import (
    ChatMessage,
    Comment,
    ConversationThread,
    LiveAnnouncement,
    LiveComment,
    LiveStream,
    Post,
    Profile,
    Reaction,
)


def get_post(post_id) -> Post:
    try:
        return Post.objects.get(id=post_id)
    except Post.DoesNotExist:
        raise NotFoundError(f"Post {post_id} does not exist")


def list_posts(order_by_recency: bool = True) -> QuerySet:
    """All posts, newest first by default."""
    ordering = ('-created_at', '-id') if order_by_recency else ('created_at', 'id')
    return Post.objects.order_by(*ordering)


def list_posts_by_author(user_id) -> QuerySet:
    return Post.objects.filter(author_id=user_id).order_by('-created_at', '-id')


def list_comments_for_post(post_id) -> QuerySet:
    """Comments oldest first. NotFoundError if the post is gone."""
    if not Post.objects.filter(id=post_id).exists():
        raise NotFoundError(f"Post {post_id} does not exist")
    return Comment.objects.filter(post_id=post_id).order_by('created_at', 'id')


def get_liked_post_ids(user_id, post_ids: Iterable[int]) -> set:
    """
    Which of these posts has the user liked?

    Query: 1, regardless of page size.
    """
    return set(
        Reaction.objects
        .filter(user_id=user_id, post_id__in=list(post_ids), kind=Reaction.Kind.LIKE)
        .values_list('post_id', flat=True)
    )


def messages_in_channel(channel: str, viewer=None) -> QuerySet:
    """
    Unsliced message queryset for a room or thread, oldest first.

    When a viewer is given, thread messages are only visible to the two
    participants.
    """
    if is_room(channel):
        return ChatMessage.objects.filter(room=channel).order_by('created_at', 'id')

    thread = get_thread(channel)
    if viewer is not None and not thread.has_participant(viewer.pk):
        raise PermissionDeniedError("You are not part of this conversation.")
    return ChatMessage.objects.filter(thread=thread).order_by('created_at', 'id')


def list_messages_for_thread(channel: str, viewer=None, limit: Optional[int] = None) -> list:
    """
    The latest `limit` messages of a room or thread, returned oldest first.
    """
    limit = limit or settings.SOCIAL_MESSAGE_HISTORY_LIMIT
    latest = messages_in_channel(channel, viewer).order_by('-created_at', '-id')[:limit]
    return list(reversed(latest))


def list_users(order_by_name: bool = True) -> QuerySet:
    if order_by_name:
        return Profile.objects.order_by('display_name', 'user_id')
    return Profile.objects.order_by('-created_at', 'user_id')


def list_threads_for_user(user_id) -> QuerySet:
    """The user's conversations, most recent activity first."""
    return (
        ConversationThread.objects
        .filter(Q(user_low_id=user_id) | Q(user_high_id=user_id))
        .order_by('-last_message_at')
    )


def list_upcoming_announcements(now=None) -> QuerySet:
    now = now or timezone.now()
    return LiveAnnouncement.objects.filter(scheduled_at__gte=now).order_by('scheduled_at', 'id')


def list_announcements_for_host(user_id) -> QuerySet:
    return LiveAnnouncement.objects.filter(host_id=user_id).order_by('-scheduled_at', '-id')


def list_live_streams() -> QuerySet:
    return LiveStream.objects.filter(is_live=True).order_by('-started_at')


def list_live_comments(stream_id) -> QuerySet:
    if not LiveStream.objects.filter(id=stream_id).exists():
        raise NotFoundError(f"Stream {stream_id} does not exist")
    return LiveComment.objects.filter(stream_id=stream_id).order_by('created_at', 'id')
