from datetime import timedelta

from django.contrib.auth.models import User
from django.test import TestCase
from django.utils import timezone

from social.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from social.live import (
    add_live_comment,
    announce_live,
    delete_announcement,
    edit_announcement,
    end_stream,
    start_stream,
)
from social.models import LiveAnnouncement, LiveComment
from social.profiles import ensure_profile
from social.queries import (
    list_announcements_for_host,
    list_live_comments,
    list_live_streams,
    list_upcoming_announcements,
)


def make_user(username):
    user = User.objects.create_user(username, f'{username}@test.com', 'pass')
    ensure_profile(user)
    return user


class AnnouncementTestCase(TestCase):

    def setUp(self):
        self.host = make_user('host')
        self.viewer = make_user('viewer')
        self.tomorrow = timezone.now() + timedelta(days=1)

    def test_announce(self):
        announcement = announce_live(self.host, ' Office hours ', self.tomorrow, location='Online')
        self.assertEqual(announcement.topic, 'Office hours')
        self.assertEqual(announcement.host_name, 'host')
        self.assertEqual(announcement.location, 'Online')

    def test_topic_and_time_required(self):
        with self.assertRaises(ValidationError):
            announce_live(self.host, '', self.tomorrow)
        with self.assertRaises(ValidationError):
            announce_live(self.host, 'Office hours', None)

    def test_upcoming_sorted_soonest_first(self):
        later = announce_live(self.host, 'Later', self.tomorrow + timedelta(days=2))
        sooner = announce_live(self.host, 'Sooner', self.tomorrow)
        announce_live(self.host, 'Past', timezone.now() - timedelta(days=1))

        ids = [a.id for a in list_upcoming_announcements()]
        self.assertEqual(ids, [sooner.id, later.id])

    def test_host_edits(self):
        announcement = announce_live(self.host, 'Office hours', self.tomorrow)
        edited = edit_announcement(self.host, announcement.id, location='Room 4')
        self.assertEqual(edited.location, 'Room 4')
        self.assertEqual(edited.topic, 'Office hours')

    def test_only_host_edits(self):
        announcement = announce_live(self.host, 'Office hours', self.tomorrow)
        with self.assertRaises(PermissionDeniedError):
            edit_announcement(self.viewer, announcement.id, topic='Mine now')

    def test_unknown_field_rejected(self):
        announcement = announce_live(self.host, 'Office hours', self.tomorrow)
        with self.assertRaises(ValidationError):
            edit_announcement(self.host, announcement.id, host_name='someone else')

    def test_only_host_deletes(self):
        announcement = announce_live(self.host, 'Office hours', self.tomorrow)
        with self.assertRaises(PermissionDeniedError):
            delete_announcement(self.viewer, announcement.id)

        delete_announcement(self.host, announcement.id)
        self.assertFalse(LiveAnnouncement.objects.filter(id=announcement.id).exists())
        self.assertEqual(list(list_announcements_for_host(self.host.pk)), [])


class LiveStreamTestCase(TestCase):

    def setUp(self):
        self.host = make_user('host')
        self.viewer = make_user('viewer')

    def test_start_and_list(self):
        stream = start_stream(self.host)
        self.assertTrue(stream.is_live)
        self.assertEqual([s.id for s in list_live_streams()], [stream.id])

    def test_host_live_only_once(self):
        start_stream(self.host)
        with self.assertRaises(ConflictError):
            start_stream(self.host)

    def test_comment_on_live_stream(self):
        stream = start_stream(self.host)
        comment = add_live_comment(self.viewer, stream.id, 'hi!')
        self.assertEqual(comment.author_name, 'viewer')
        self.assertEqual([c.id for c in list_live_comments(stream.id)], [comment.id])

    def test_end_clears_comments(self):
        stream = start_stream(self.host)
        add_live_comment(self.viewer, stream.id, 'one')
        add_live_comment(self.viewer, stream.id, 'two')

        cleared = end_stream(self.host, stream.id)

        self.assertEqual(cleared, 2)
        self.assertEqual(LiveComment.objects.filter(stream=stream).count(), 0)
        self.assertEqual(list(list_live_streams()), [])

    def test_end_twice_is_noop(self):
        stream = start_stream(self.host)
        end_stream(self.host, stream.id)
        self.assertEqual(end_stream(self.host, stream.id), 0)

    def test_can_go_live_again_after_ending(self):
        first = start_stream(self.host)
        end_stream(self.host, first.id)
        second = start_stream(self.host)
        self.assertNotEqual(first.id, second.id)

    def test_only_host_ends(self):
        stream = start_stream(self.host)
        with self.assertRaises(PermissionDeniedError):
            end_stream(self.viewer, stream.id)

    def test_no_comments_after_end(self):
        stream = start_stream(self.host)
        end_stream(self.host, stream.id)
        with self.assertRaises(NotFoundError):
            add_live_comment(self.viewer, stream.id, 'too late')
