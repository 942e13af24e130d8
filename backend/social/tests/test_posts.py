"""
Tests for posts, reactions and comments.

Focus areas:
1. like_count always equals the size of the liker set
2. Ownership checks live in the service layer
3. Operations on a deleted post fail with NotFoundError
"""

from django.contrib.auth.models import User
from django.test import TestCase

from social.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from social.models import Comment, Post, Reaction
from social.profiles import ensure_profile, update_profile
from social.queries import get_liked_post_ids, list_comments_for_post
from social.services import (
    add_comment,
    create_post,
    delete_comment,
    delete_post,
    edit_post,
    toggle_dislike,
    toggle_like,
)


def make_user(username):
    user = User.objects.create_user(username, f'{username}@test.com', 'pass')
    ensure_profile(user)
    return user


class CreatePostTestCase(TestCase):

    def setUp(self):
        self.author = make_user('alice')

    def test_text_post(self):
        post = create_post(self.author, '  hello  ')
        self.assertEqual(post.text, 'hello')
        self.assertEqual(post.like_count, 0)
        self.assertEqual(post.comment_count, 0)
        self.assertIsNone(post.edited_at)

    def test_image_only_post(self):
        post = create_post(self.author, '', image_url='https://img.example.com/cat.png')
        self.assertEqual(post.text, '')
        self.assertEqual(post.image_url, 'https://img.example.com/cat.png')

    def test_empty_post_rejected(self):
        with self.assertRaises(ValidationError):
            create_post(self.author, '   ', image_url='')
        self.assertEqual(Post.objects.count(), 0)

    def test_author_fields_denormalized(self):
        post = create_post(self.author, 'hello')
        self.assertEqual(post.author_name, 'alice')
        self.assertEqual(post.author_avatar, f'https://i.pravatar.cc/150?u={self.author.pk}')

    def test_author_rename_does_not_rewrite_old_posts(self):
        post = create_post(self.author, 'before rename')
        update_profile(self.author, display_name='Alice Liddell')

        post.refresh_from_db()
        self.assertEqual(post.author_name, 'alice')

        newer = create_post(self.author, 'after rename')
        self.assertEqual(newer.author_name, 'Alice Liddell')


class ToggleLikeTestCase(TestCase):

    def setUp(self):
        self.author = make_user('alice')
        self.liker = make_user('bob')
        self.post = create_post(self.author, 'hello')

    def assertCounterMatchesLikers(self, post_id):
        post = Post.objects.get(id=post_id)
        likers = Reaction.objects.filter(post_id=post_id, kind=Reaction.Kind.LIKE).count()
        self.assertEqual(post.like_count, likers)

    def test_like_then_unlike(self):
        first = toggle_like(self.liker, self.post.id)
        self.assertTrue(first.liked)
        self.assertEqual(first.new_count, 1)

        second = toggle_like(self.liker, self.post.id)
        self.assertFalse(second.liked)
        self.assertEqual(second.new_count, 0)

        self.assertCounterMatchesLikers(self.post.id)

    def test_double_toggle_restores_original_state(self):
        other = make_user('carol')
        toggle_like(other, self.post.id)

        toggle_like(self.liker, self.post.id)
        result = toggle_like(self.liker, self.post.id)

        self.assertFalse(result.liked)
        self.assertEqual(result.new_count, 1)
        self.assertEqual(get_liked_post_ids(self.liker.id, [self.post.id]), set())
        self.assertEqual(get_liked_post_ids(other.id, [self.post.id]), {self.post.id})

    def test_counter_matches_liker_set_across_many_users(self):
        users = [make_user(f'user{i}') for i in range(12)]
        for user in users:
            toggle_like(user, self.post.id)
        # Every third user changes their mind
        for user in users[::3]:
            toggle_like(user, self.post.id)

        self.post.refresh_from_db()
        self.assertEqual(self.post.like_count, 8)
        self.assertCounterMatchesLikers(self.post.id)

    def test_like_missing_post(self):
        with self.assertRaises(NotFoundError):
            toggle_like(self.liker, 999999)

    def test_counter_never_goes_negative(self):
        Reaction.objects.create(post=self.post, user=self.liker, kind=Reaction.Kind.LIKE)
        # Counter drifted to 0 while the reaction exists
        result = toggle_like(self.liker, self.post.id)
        self.assertFalse(result.liked)
        self.assertEqual(result.new_count, 0)

    def test_dislike_replaces_like(self):
        toggle_like(self.liker, self.post.id)
        result = toggle_dislike(self.liker, self.post.id)

        self.assertTrue(result.active)
        self.assertFalse(result.liked)
        self.assertEqual(result.new_count, 1)

        self.post.refresh_from_db()
        self.assertEqual(self.post.like_count, 0)
        self.assertEqual(self.post.dislike_count, 1)
        self.assertEqual(Reaction.objects.filter(post=self.post, user=self.liker).count(), 1)

    def test_like_replaces_dislike(self):
        toggle_dislike(self.liker, self.post.id)
        result = toggle_like(self.liker, self.post.id)

        self.assertTrue(result.liked)
        self.post.refresh_from_db()
        self.assertEqual(self.post.like_count, 1)
        self.assertEqual(self.post.dislike_count, 0)


class EditDeletePostTestCase(TestCase):

    def setUp(self):
        self.author = make_user('alice')
        self.stranger = make_user('mallory')
        self.post = create_post(self.author, 'hello')

    def test_author_can_edit(self):
        post = edit_post(self.author, self.post.id, 'hello, world')
        self.assertEqual(post.text, 'hello, world')
        self.assertIsNotNone(post.edited_at)

    def test_non_author_cannot_edit(self):
        with self.assertRaises(PermissionDeniedError):
            edit_post(self.stranger, self.post.id, 'pwned')
        self.post.refresh_from_db()
        self.assertEqual(self.post.text, 'hello')
        self.assertIsNone(self.post.edited_at)

    def test_edit_to_empty_rejected(self):
        with self.assertRaises(ValidationError):
            edit_post(self.author, self.post.id, '   ')

    def test_edit_deleted_post(self):
        delete_post(self.author, self.post.id)
        with self.assertRaises(NotFoundError):
            edit_post(self.author, self.post.id, 'too late')

    def test_non_author_cannot_delete(self):
        with self.assertRaises(PermissionDeniedError):
            delete_post(self.stranger, self.post.id)
        self.assertTrue(Post.objects.filter(id=self.post.id).exists())

    def test_like_after_delete_fails(self):
        delete_post(self.author, self.post.id)
        with self.assertRaises(NotFoundError):
            toggle_like(self.stranger, self.post.id)

    def test_delete_cascades_comments_and_reactions(self):
        add_comment(self.stranger, self.post.id, 'nice')
        toggle_like(self.stranger, self.post.id)

        delete_post(self.author, self.post.id)

        self.assertEqual(Comment.objects.filter(post_id=self.post.id).count(), 0)
        self.assertEqual(Reaction.objects.filter(post_id=self.post.id).count(), 0)


class CommentTestCase(TestCase):

    def setUp(self):
        self.author = make_user('alice')
        self.commenter = make_user('bob')
        self.post = create_post(self.author, 'hello')

    def test_add_comment_increments_counter(self):
        for i in range(5):
            add_comment(self.commenter, self.post.id, f'comment {i}')

        self.post.refresh_from_db()
        self.assertEqual(self.post.comment_count, 5)
        self.assertEqual(Comment.objects.filter(post=self.post).count(), 5)

    def test_comment_denormalizes_author_name(self):
        comment = add_comment(self.commenter, self.post.id, 'hi')
        self.assertEqual(comment.author_name, 'bob')

    def test_empty_comment_rejected(self):
        with self.assertRaises(ValidationError):
            add_comment(self.commenter, self.post.id, '  ')
        self.post.refresh_from_db()
        self.assertEqual(self.post.comment_count, 0)

    def test_comment_on_deleted_post(self):
        delete_post(self.author, self.post.id)
        with self.assertRaises(NotFoundError):
            add_comment(self.commenter, self.post.id, 'anyone here?')

    def test_comments_listed_oldest_first(self):
        first = add_comment(self.commenter, self.post.id, 'first')
        second = add_comment(self.author, self.post.id, 'second')

        ids = [c.id for c in list_comments_for_post(self.post.id)]
        self.assertEqual(ids, [first.id, second.id])

    def test_list_comments_for_missing_post(self):
        with self.assertRaises(NotFoundError):
            list_comments_for_post(999999)

    def test_delete_comment_decrements_counter(self):
        comment = add_comment(self.commenter, self.post.id, 'oops')
        delete_comment(self.commenter, comment.id)

        self.post.refresh_from_db()
        self.assertEqual(self.post.comment_count, 0)

    def test_only_author_deletes_comment(self):
        comment = add_comment(self.commenter, self.post.id, 'mine')
        with self.assertRaises(PermissionDeniedError):
            delete_comment(self.author, comment.id)
