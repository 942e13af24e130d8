"""
Profile lifecycle: created on first sign-in, edited by its owner, never deleted.

STALENESS NOTE:
Posts, comments and messages copy the author's display name and avatar at
write time. update_profile() does NOT rewrite those copies. Old content
keeps showing the old name; that is the price of join-free feed reads.
"""
import logging
from typing import Optional

from django.contrib.auth.models import User
from django.utils import timezone

from .exceptions import NotFoundError, ValidationError, translate_db_errors
from .models import Profile

logger = logging.getLogger(__name__)


def _default_display_name(user: User) -> str:
    if user.get_full_name():
        return user.get_full_name()
    if user.email:
        return user.email.split('@')[0]
    return user.username


@translate_db_errors
def ensure_profile(user: User, record_login: bool = True) -> Profile:
    """
    Return the user's profile, creating it on first sign-in.

    Safe to call on every sign-in: get_or_create survives two sessions
    signing in at the same moment.
    """
    now = timezone.now()
    profile, created = Profile.objects.get_or_create(
        user=user,
        defaults={
            'display_name': _default_display_name(user),
            'email': user.email,
            'last_login_at': now if record_login else None,
        }
    )
    if created:
        logger.info(f"Created profile for user {user.pk}")
    elif record_login:
        profile.last_login_at = now
        profile.save(update_fields=['last_login_at'])
    return profile


def profile_for(user: User) -> Profile:
    """Profile lookup used when denormalizing author fields."""
    return ensure_profile(user, record_login=False)


def get_user(user_id) -> User:
    try:
        return User.objects.get(pk=user_id)
    except (User.DoesNotExist, ValueError):
        raise NotFoundError(f"User {user_id} does not exist")


def get_profile(user_id) -> Profile:
    try:
        return Profile.objects.select_related('user').get(pk=user_id)
    except (Profile.DoesNotExist, ValueError):
        raise NotFoundError(f"Profile {user_id} does not exist")


def is_admin(user: User) -> bool:
    return Profile.objects.filter(pk=user.pk, is_admin=True).exists()


@translate_db_errors
def update_profile(
    user: User,
    display_name: Optional[str] = None,
    bio: Optional[str] = None,
    avatar_url: Optional[str] = None,
) -> Profile:
    """
    Edit the caller's own profile. Only the fields passed are changed.

    Passing avatar_url='' clears the uploaded photo, falling back to the
    generated default avatar.
    """
    profile = profile_for(user)
    changed = []

    if display_name is not None:
        display_name = display_name.strip()
        if not display_name:
            raise ValidationError("Display name cannot be empty.")
        profile.display_name = display_name
        changed.append('display_name')

    if bio is not None:
        profile.bio = bio.strip()
        changed.append('bio')

    if avatar_url is not None:
        profile.avatar_url = avatar_url.strip()
        changed.append('avatar_url')

    if changed:
        profile.save(update_fields=changed)
        logger.info(f"User {user.pk} updated profile fields {changed}")
    return profile
