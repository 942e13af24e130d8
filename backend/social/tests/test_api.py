"""
HTTP tests: status codes and response shapes.

Business rules are covered by the service tests; these check that each
store error reaches the client with the right status.
"""
from unittest import mock

from django.contrib.auth.models import User
from django.test import override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from social.chat import resolve_thread, send_message
from social.models import ChatMessage, Post, Profile
from social.profiles import ensure_profile
from social.services import add_comment, create_post, toggle_like
from social.views import FeedPagination


def make_user(username, admin=False):
    user = User.objects.create_user(username, f'{username}@test.com', 'pass')
    ensure_profile(user)
    if admin:
        Profile.objects.filter(pk=user.pk).update(is_admin=True)
    return user


class PostAPITestCase(APITestCase):

    def setUp(self):
        self.alice = make_user('alice')
        self.bob = make_user('bob')

    def test_create_post(self):
        self.client.force_authenticate(self.alice)
        response = self.client.post('/api/posts/', {'text': 'hello'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['text'], 'hello')
        self.assertEqual(response.data['author_name'], 'alice')
        self.assertEqual(response.data['like_count'], 0)

    def test_empty_post_is_400(self):
        self.client.force_authenticate(self.alice)
        response = self.client.post('/api/posts/', {'text': ''}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'validation')

    def test_anonymous_cannot_post(self):
        response = self.client.post('/api/posts/', {'text': 'hello'}, format='json')
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))
        self.assertEqual(Post.objects.count(), 0)

    def test_like_toggle_round_trip(self):
        post = create_post(self.alice, 'hello')
        self.client.force_authenticate(self.bob)

        first = self.client.post(f'/api/posts/{post.id}/like/')
        second = self.client.post(f'/api/posts/{post.id}/like/')

        self.assertEqual(first.data, {'kind': 'like', 'active': True, 'liked': True, 'new_count': 1})
        self.assertEqual(second.data['liked'], False)
        self.assertEqual(second.data['new_count'], 0)

    def test_like_missing_post_is_404(self):
        self.client.force_authenticate(self.bob)
        response = self.client.post('/api/posts/999999/like/')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['code'], 'not_found')

    def test_edit_someone_elses_post_is_403(self):
        post = create_post(self.alice, 'hello')
        self.client.force_authenticate(self.bob)
        response = self.client.patch(f'/api/posts/{post.id}/', {'text': 'mine'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['code'], 'permission')

    def test_delete_own_post(self):
        post = create_post(self.alice, 'hello')
        self.client.force_authenticate(self.alice)
        response = self.client.delete(f'/api/posts/{post.id}/')

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Post.objects.filter(id=post.id).exists())

    def test_post_detail_includes_comments(self):
        post = create_post(self.alice, 'hello')
        add_comment(self.bob, post.id, 'nice')

        response = self.client.get(f'/api/posts/{post.id}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['comment_count'], 1)
        self.assertEqual([c['text'] for c in response.data['comments']], ['nice'])

    def test_comment_create(self):
        post = create_post(self.alice, 'hello')
        self.client.force_authenticate(self.bob)
        response = self.client.post(f'/api/posts/{post.id}/comments/', {'text': 'hi'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['author_name'], 'bob')


class FeedAPITestCase(APITestCase):

    def setUp(self):
        self.alice = make_user('alice')
        self.bob = make_user('bob')
        self.posts = [create_post(self.alice, f'post {i}') for i in range(3)]

    def test_feed_newest_first(self):
        response = self.client.get('/api/feed/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        ids = [p['id'] for p in response.data['results']]
        self.assertEqual(ids, [p.id for p in reversed(self.posts)])

    def test_feed_marks_my_likes(self):
        toggle_like(self.bob, self.posts[0].id)
        self.client.force_authenticate(self.bob)

        response = self.client.get('/api/feed/')

        liked = {p['id']: p['liked'] for p in response.data['results']}
        self.assertTrue(liked[self.posts[0].id])
        self.assertFalse(liked[self.posts[1].id])

    def test_posts_sharing_a_timestamp_span_pages(self):
        Post.objects.update(created_at=timezone.now())

        with mock.patch.object(FeedPagination, 'page_size', 2):
            first = self.client.get('/api/feed/')
            second = self.client.get(first.data['next'])

        seen = [p['id'] for p in first.data['results'] + second.data['results']]
        self.assertEqual(len(first.data['results']), 2)
        self.assertEqual(sorted(seen), sorted(p.id for p in self.posts))
        self.assertEqual(seen, sorted(seen, reverse=True))


@override_settings(SOCIAL_CHAT_ROOMS=['general', 'lobby'])
class ChatAPITestCase(APITestCase):

    def setUp(self):
        self.alice = make_user('alice')
        self.bob = make_user('bob')
        self.admin = make_user('admin', admin=True)

    def test_open_thread_is_idempotent(self):
        self.client.force_authenticate(self.alice)
        first = self.client.post('/api/threads/', {'user_id': self.bob.pk}, format='json')

        self.client.force_authenticate(self.bob)
        second = self.client.post('/api/threads/', {'user_id': self.alice.pk}, format='json')

        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertEqual(first.data['key'], second.data['key'])

    def test_open_thread_with_unknown_user_is_404(self):
        self.client.force_authenticate(self.alice)
        response = self.client.post('/api/threads/', {'user_id': 999999}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_thread_messages(self):
        thread = resolve_thread(self.alice, self.bob)
        self.client.force_authenticate(self.alice)

        sent = self.client.post(f'/api/threads/{thread.key}/messages/', {'text': 'hi'}, format='json')
        listed = self.client.get(f'/api/threads/{thread.key}/messages/')

        self.assertEqual(sent.status_code, status.HTTP_201_CREATED)
        self.assertEqual(sent.data['channel'], thread.key)
        self.assertEqual([m['text'] for m in listed.data], ['hi'])

    def test_outsider_cannot_read_thread(self):
        thread = resolve_thread(self.alice, self.bob)
        send_message(self.alice, thread.key, 'secret')

        self.client.force_authenticate(self.admin)
        response = self.client.get(f'/api/threads/{thread.key}/messages/')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_clear_requires_admin(self):
        send_message(self.alice, 'general', 'hello')
        self.client.force_authenticate(self.alice)

        response = self.client.post('/api/rooms/general/clear/')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(ChatMessage.objects.count(), 1)

    def test_admin_clears_room(self):
        send_message(self.alice, 'general', 'hello')
        send_message(self.bob, 'general', 'hey')
        self.client.force_authenticate(self.admin)

        response = self.client.post('/api/rooms/general/clear/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'deleted': 2})


class LiveAPITestCase(APITestCase):

    def setUp(self):
        self.host = make_user('host')

    def test_second_stream_is_409(self):
        self.client.force_authenticate(self.host)

        first = self.client.post('/api/live/streams/')
        second = self.client.post('/api/live/streams/')

        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(second.status_code, status.HTTP_409_CONFLICT)

    def test_announcement_requires_topic(self):
        self.client.force_authenticate(self.host)
        response = self.client.post(
            '/api/live/announcements/',
            {'topic': '', 'scheduled_at': '2030-01-01T10:00:00Z'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class AuthAPITestCase(APITestCase):

    def test_mock_login_creates_profile(self):
        response = self.client.post('/api/auth/mock-login/', {'username': 'newbie'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['created'])
        self.assertTrue(Profile.objects.filter(pk=response.data['user_id']).exists())

        whoami = self.client.get('/api/auth/whoami/')
        self.assertTrue(whoami.data['authenticated'])
        self.assertEqual(whoami.data['display_name'], 'newbie')
