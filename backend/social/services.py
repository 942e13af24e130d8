"""
Post, Reaction & Comment Service
=================================

This module handles every mutation of posts and their contended counters:
1. Atomic read-modify-write of the reaction set + counter
2. Ownership checks (one place, not in every caller)
3. Comment counter maintenance

CONCURRENCY STRATEGY:
---------------------
Problem: Two users toggling a like at the exact same moment
Naive: read post.likes → write post.likes + 1 → LOST UPDATE!

Also naive: check "did I like it?" then like/unlike in a second step.
Two toggles from the same user interleave and the counter drifts away
from the size of the liker set.

Solution: SELECT ... FOR UPDATE on the post row, inside transaction.atomic()
    - The post row is the lock for its reactions and counters
    - Membership check, reaction insert/delete and counter write all happen
      while holding it
    - A concurrent toggle on the same post waits, then sees committed state

The same lock guards comment_count. Deleting the post takes the same lock,
so "comment while the post is being deleted" resolves one of two ways:
the comment lands first and is then cascaded away, or the delete lands
first and add_comment raises NotFoundError.
"""
import logging

from django.contrib.auth.models import User
from django.db import transaction
from django.utils import timezone

from .exceptions import (
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    translate_db_errors,
)
from .models import Comment, Post, Reaction
from .profiles import profile_for

logger = logging.getLogger(__name__)

COUNTER_FIELDS = {
    Reaction.Kind.LIKE: 'like_count',
    Reaction.Kind.DISLIKE: 'dislike_count',
}


class ToggleResult:
    """Post-operation state of a reaction toggle."""
    def __init__(self, active: bool, new_count: int, kind: str = Reaction.Kind.LIKE):
        self.active = active
        self.new_count = new_count
        self.kind = kind

    @property
    def liked(self) -> bool:
        return self.kind == Reaction.Kind.LIKE and self.active

    def as_dict(self) -> dict:
        return {
            'kind': self.kind,
            'active': self.active,
            'liked': self.liked,
            'new_count': self.new_count,
        }

    def __repr__(self):
        return f"ToggleResult(kind={self.kind!r}, active={self.active}, new_count={self.new_count})"


def _lock_post(post_id) -> Post:
    """Fetch a post with its row locked until the enclosing transaction ends."""
    try:
        return Post.objects.select_for_update().get(id=post_id)
    except Post.DoesNotExist:
        raise NotFoundError(f"Post {post_id} does not exist")


def _bump(post: Post, kind: str, delta: int) -> None:
    field = COUNTER_FIELDS[kind]
    setattr(post, field, max(0, getattr(post, field) + delta))


@translate_db_errors
def create_post(author: User, text: str, image_url: str = '') -> Post:
    """
    Create a post.

    Author name and avatar are copied from the profile NOW. A later rename
    will not touch this post.
    """
    text = (text or '').strip()
    image_url = (image_url or '').strip()
    if not text and not image_url:
        raise ValidationError("A post needs text or an image.")

    profile = profile_for(author)
    post = Post.objects.create(
        author=author,
        author_name=profile.display_name,
        author_avatar=profile.avatar,
        text=text,
        image_url=image_url,
    )
    logger.info(f"User {author.pk} created post {post.id}")
    return post


@translate_db_errors
def toggle_reaction(user: User, post_id, kind: str) -> ToggleResult:
    """
    Flip the user's reaction of the given kind on a post.

    OPERATION (all under the post's row lock):
    1. No reaction yet          → create it, counter + 1
    2. Same kind already there  → delete it, counter - 1 (floor 0)
    3. Opposite kind there      → switch it, old counter - 1, new counter + 1

    RETURNS:
    ToggleResult reflecting the state AFTER the operation.

    RAISES:
    NotFoundError if the post is gone (possibly deleted a moment ago).
    """
    if kind not in COUNTER_FIELDS:
        raise ValidationError(f"Invalid reaction kind: {kind}")

    with transaction.atomic():
        post = _lock_post(post_id)
        existing = Reaction.objects.filter(post=post, user=user).first()

        if existing is None:
            Reaction.objects.create(post=post, user=user, kind=kind)
            _bump(post, kind, +1)
            active = True
        elif existing.kind == kind:
            existing.delete()
            _bump(post, kind, -1)
            active = False
        else:
            _bump(post, existing.kind, -1)
            existing.kind = kind
            existing.save(update_fields=['kind'])
            _bump(post, kind, +1)
            active = True

        post.save(update_fields=list(COUNTER_FIELDS.values()))

    result = ToggleResult(active, getattr(post, COUNTER_FIELDS[kind]), kind)
    logger.info(f"User {user.pk} toggled {kind} on post {post_id}: {result}")
    return result


def toggle_like(user: User, post_id) -> ToggleResult:
    """
    Like if not liked, unlike if liked.

    Calling it twice in a row returns the post to its original state.
    """
    return toggle_reaction(user, post_id, Reaction.Kind.LIKE)


def toggle_dislike(user: User, post_id) -> ToggleResult:
    return toggle_reaction(user, post_id, Reaction.Kind.DISLIKE)


@translate_db_errors
def edit_post(editor: User, post_id, text: str) -> Post:
    """Replace a post's text. Author only."""
    text = (text or '').strip()

    with transaction.atomic():
        post = _lock_post(post_id)
        if post.author_id != editor.pk:
            raise PermissionDeniedError("Only the author can edit this post.")
        if not text and not post.image_url:
            raise ValidationError("A post needs text or an image.")

        post.text = text
        post.edited_at = timezone.now()
        post.save(update_fields=['text', 'edited_at'])

    logger.info(f"User {editor.pk} edited post {post_id}")
    return post


@translate_db_errors
def delete_post(requester: User, post_id) -> None:
    """
    Hard-delete a post. Author only.

    Comments and reactions go with it (ON DELETE CASCADE). A toggle_like
    racing with this either completes before the delete or gets
    NotFoundError after it.
    """
    with transaction.atomic():
        post = _lock_post(post_id)
        if post.author_id != requester.pk:
            raise PermissionDeniedError("Only the author can delete this post.")
        post.delete()

    logger.info(f"User {requester.pk} deleted post {post_id}")


@translate_db_errors
def add_comment(author: User, post_id, text: str) -> Comment:
    """
    Comment on a post and bump its comment_count by exactly one.

    The counter is written under the same row lock as reactions, so N
    concurrent comments always add N.
    """
    text = (text or '').strip()
    if not text:
        raise ValidationError("Comment cannot be empty.")

    profile = profile_for(author)

    with transaction.atomic():
        post = _lock_post(post_id)
        comment = Comment.objects.create(
            post=post,
            author=author,
            author_name=profile.display_name,
            text=text,
        )
        post.comment_count += 1
        post.save(update_fields=['comment_count'])

    logger.info(f"User {author.pk} commented on post {post_id}")
    return comment


@translate_db_errors
def delete_comment(requester: User, comment_id) -> None:
    """Delete a comment. Comment author only."""
    try:
        comment = Comment.objects.get(id=comment_id)
    except Comment.DoesNotExist:
        raise NotFoundError(f"Comment {comment_id} does not exist")
    if comment.author_id != requester.pk:
        raise PermissionDeniedError("Only the author can delete this comment.")

    with transaction.atomic():
        post = _lock_post(comment.post_id)
        deleted, _ = Comment.objects.filter(id=comment_id).delete()
        if deleted:
            post.comment_count = max(0, post.comment_count - 1)
            post.save(update_fields=['comment_count'])

    logger.info(f"User {requester.pk} deleted comment {comment_id}")
