"""
Data Models for the Pagebook Social Graph
==========================================

Design Philosophy:
------------------
1. One explicit model per entity (Profile, Post, Reaction, Comment, ...)
   - Every optional field is a named column with a default, never an open
     JSON blob.

2. Counters are denormalized on the parent (Post.like_count, comment_count)
   - Fast feed reads without COUNT(*) joins
   - Trade-off: the counter must ONLY be touched by services.py, inside
     transaction.atomic() with the parent row locked (select_for_update)
   - The counter is derived-but-authoritative: like_count == number of
     Reaction rows of kind LIKE for that post

3. The liker set is a Reaction table, not an array on Post
   - Unique constraint (post, user) means a user holds at most one reaction
   - A reaction is either LIKE or DISLIKE, so the two sets are disjoint

4. Conversation threads are keyed by the sorted participant pair
   - Primary key "<low>:<high>" makes creation idempotent: two clients
     racing to open the same DM hit the same row, never two rows

5. Author name/avatar are copied onto posts, comments and messages
   - Accepted staleness: a later profile edit does NOT rewrite old content

Indexes Strategy:
-----------------
- post.created_at: feed ordering, cursor pagination
- post.author + created_at: profile page
- comment.post + created_at: comments for a post
- chatmessage.thread + created_at / room + created_at: message history
- liveannouncement.scheduled_at: upcoming announcements
"""

from django.conf import settings
from django.contrib.auth.models import User
from django.db import models
from django.db.models import Q
from django.utils import timezone


def default_avatar_for(user_id) -> str:
    """Avatar URL used when a profile has no uploaded photo."""
    return settings.SOCIAL_DEFAULT_AVATAR_URL.format(user_id=user_id)


def thread_key(user_a_id: int, user_b_id: int) -> str:
    """
    Canonical identity of the unordered pair (a, b).

    thread_key(3, 12) == thread_key(12, 3) == "3:12"
    """
    low, high = sorted((int(user_a_id), int(user_b_id)))
    return f"{low}:{high}"


class Profile(models.Model):
    """
    The social-graph view of a user.

    The identity record itself (email, password, session) belongs to
    django.contrib.auth; this row holds what the feed needs. Its primary
    key IS the auth user id, so "user id" means the same thing everywhere.

    Profiles are never hard-deleted.
    """
    user = models.OneToOneField(
        User,
        on_delete=models.PROTECT,
        primary_key=True,
        related_name='profile'
    )
    display_name = models.CharField(max_length=150, db_index=True)
    email = models.EmailField(blank=True)
    avatar_url = models.URLField(max_length=500, blank=True)
    bio = models.TextField(blank=True)
    is_admin = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)
    last_login_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['display_name']

    @property
    def avatar(self) -> str:
        return self.avatar_url or default_avatar_for(self.user_id)

    def __str__(self):
        return self.display_name


class Post(models.Model):
    """
    A feed post.

    OWNERSHIP:
    - author is immutable after creation
    - only the author may edit or delete
    - any authenticated user may toggle their own reaction

    CONCURRENCY:
    like_count/dislike_count/comment_count are contended shared state.
    They are written only under select_for_update() in services.py.
    """
    author = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='posts',
        db_index=True
    )
    # Denormalized at creation time, never refreshed
    author_name = models.CharField(max_length=150)
    author_avatar = models.URLField(max_length=500, blank=True)

    text = models.TextField(blank=True)
    image_url = models.URLField(max_length=500, blank=True)

    like_count = models.PositiveIntegerField(default=0)
    dislike_count = models.PositiveIntegerField(default=0)
    comment_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    edited_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['author', '-created_at'], name='post_author_created_idx'),
        ]

    def __str__(self):
        return f"{self.text[:50]} by {self.author_name}"


class Reaction(models.Model):
    """
    A user's like or dislike on a post.

    The liker set of a post is Reaction.objects.filter(post=p, kind=LIKE).
    Unique (post, user) keeps a user out of both sets at once.
    """

    class Kind(models.TextChoices):
        LIKE = 'like', 'Like'
        DISLIKE = 'dislike', 'Dislike'

    post = models.ForeignKey(
        Post,
        on_delete=models.CASCADE,
        related_name='reactions'
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='reactions'
    )
    kind = models.CharField(max_length=10, choices=Kind.choices)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['post', 'user'],
                name='unique_reaction_per_user_per_post'
            )
        ]
        indexes = [
            models.Index(fields=['post', 'kind'], name='reaction_post_kind_idx'),
        ]

    def __str__(self):
        return f"{self.user_id} {self.kind} post {self.post_id}"


class Comment(models.Model):
    """Flat comment on a post. Deleted together with its post."""
    post = models.ForeignKey(
        Post,
        on_delete=models.CASCADE,
        related_name='comments'
    )
    author = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='comments'
    )
    author_name = models.CharField(max_length=150)
    text = models.TextField()
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['post', 'created_at'], name='comment_post_created_idx'),
        ]

    def __str__(self):
        return f"Comment by {self.author_name} on {self.post_id}"


class ConversationThread(models.Model):
    """
    A two-party direct message channel.

    WHY A STRING PRIMARY KEY:
    - The naive approach queries "is there a thread for [a, b]? or [b, a]?"
      and creates one if not. Two clients doing that at once create two
      threads for the same pair.
    - With key = thread_key(a, b) as the primary key, both clients try to
      insert the SAME row. The database rejects the second insert and the
      loser simply reads the winner's row.
    """
    key = models.CharField(max_length=64, primary_key=True)
    user_low = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='+'
    )
    user_high = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='+'
    )
    last_message = models.CharField(max_length=200, blank=True)
    last_message_at = models.DateTimeField(default=timezone.now, db_index=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-last_message_at']
        constraints = [
            models.UniqueConstraint(
                fields=['user_low', 'user_high'],
                name='unique_thread_per_pair'
            ),
            models.CheckConstraint(
                condition=Q(user_low__lt=models.F('user_high')),
                name='thread_pair_is_sorted'
            ),
        ]

    @property
    def participant_ids(self) -> tuple:
        return (self.user_low_id, self.user_high_id)

    def has_participant(self, user_id) -> bool:
        return user_id in self.participant_ids

    def __str__(self):
        return f"Thread {self.key}"


class ChatMessage(models.Model):
    """
    A message in either a global room or a direct thread (never both).

    Rooms are named in settings.SOCIAL_CHAT_ROOMS; thread messages belong
    to a ConversationThread and go away with it.
    """
    thread = models.ForeignKey(
        ConversationThread,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='messages'
    )
    room = models.CharField(max_length=50, blank=True, db_index=True)

    sender = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='chat_messages'
    )
    sender_name = models.CharField(max_length=150)
    sender_avatar = models.URLField(max_length=500, blank=True)

    text = models.TextField()
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    edited = models.BooleanField(default=False)
    edited_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['thread', 'created_at'], name='message_thread_created_idx'),
            models.Index(fields=['room', 'created_at'], name='message_room_created_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    (Q(thread__isnull=False) & Q(room=''))
                    | (Q(thread__isnull=True) & ~Q(room=''))
                ),
                name='message_in_thread_xor_room'
            ),
        ]

    @property
    def channel(self) -> str:
        return self.thread_id or self.room

    def __str__(self):
        return f"{self.sender_name} in {self.channel}: {self.text[:30]}"


class LiveAnnouncement(models.Model):
    """A scheduled live-stream event, owned by its host."""
    host = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='live_announcements'
    )
    host_name = models.CharField(max_length=150)
    host_avatar = models.URLField(max_length=500, blank=True)
    topic = models.CharField(max_length=200)
    scheduled_at = models.DateTimeField(db_index=True)
    location = models.CharField(max_length=200, blank=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['scheduled_at']

    def __str__(self):
        return f"{self.topic} by {self.host_name} at {self.scheduled_at}"


class LiveStream(models.Model):
    """
    An active or finished broadcast.

    A host has at most one stream with is_live=True; the partial unique
    constraint enforces it even if two "go live" clicks race.
    """
    host = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='live_streams'
    )
    host_name = models.CharField(max_length=150)
    host_avatar = models.URLField(max_length=500, blank=True)
    is_live = models.BooleanField(default=True)
    started_at = models.DateTimeField(default=timezone.now)
    ended_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-started_at']
        constraints = [
            models.UniqueConstraint(
                fields=['host'],
                condition=Q(is_live=True),
                name='one_live_stream_per_host'
            ),
        ]

    def __str__(self):
        state = 'live' if self.is_live else 'ended'
        return f"{self.host_name} stream ({state})"


class LiveComment(models.Model):
    stream = models.ForeignKey(
        LiveStream,
        on_delete=models.CASCADE,
        related_name='comments'
    )
    author = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='live_comments'
    )
    author_name = models.CharField(max_length=150)
    text = models.TextField()
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['created_at']

    def __str__(self):
        return f"{self.author_name} on stream {self.stream_id}"
