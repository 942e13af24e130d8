"""
Fill a development database with a small, consistent social graph.

Usage: python manage.py seed_data [--users N] [--posts N] [--comments N] [--clear]

Everything goes through the service layer, so counters come out consistent.
"""

import random
from datetime import timedelta
from django.conf import settings
from django.core.management.base import BaseCommand
from django.contrib.auth.models import User
from django.utils import timezone

from social.chat import resolve_thread, send_message
from social.live import announce_live
from social.models import (
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
from social.profiles import ensure_profile
from social.services import add_comment, create_post, toggle_like


class Command(BaseCommand):
    help = 'Populate a development database with demo users, posts, chat and live announcements'

    def add_arguments(self, parser):
        parser.add_argument('--users', type=int, default=10, help='How many demo accounts')
        parser.add_argument('--posts', type=int, default=20, help='How many posts')
        parser.add_argument('--comments', type=int, default=60, help='How many comments, spread over the posts')
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Wipe posts, chat and announcements first (profiles are kept)'
        )

    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            ChatMessage.objects.all().delete()
            ConversationThread.objects.all().delete()
            Reaction.objects.all().delete()
            Comment.objects.all().delete()
            Post.objects.all().delete()
            LiveAnnouncement.objects.all().delete()
            LiveComment.objects.all().delete()
            LiveStream.objects.all().delete()

        self.stdout.write('Creating users...')
        users = self._create_users(options['users'])
        if not users:
            self.stdout.write(self.style.WARNING('No users requested; nothing else to seed.'))
            return

        self.stdout.write('Creating posts...')
        posts = self._create_posts(users, options['posts'])

        self.stdout.write('Creating comments...')
        comment_count = self._create_comments(users, posts, options['comments'])

        self.stdout.write('Creating likes...')
        like_count = self._create_likes(users, posts)

        self.stdout.write('Creating conversations...')
        message_count = self._create_chat(users)

        self.stdout.write('Creating live announcements...')
        self._create_announcements(users)

        self.stdout.write(self.style.SUCCESS(
            f'Successfully created:\n'
            f'  - {len(users)} users\n'
            f'  - {len(posts)} posts\n'
            f'  - {comment_count} comments\n'
            f'  - {like_count} likes\n'
            f'  - {message_count} chat messages'
        ))

    def _create_users(self, count):
        users = []
        for i in range(count):
            username = f'user{i+1}'
            user, created = User.objects.get_or_create(
                username=username,
                defaults={'email': f'{username}@example.com'}
            )
            if created:
                user.set_password('password123')
                user.save(update_fields=['password'])
            ensure_profile(user)
            users.append(user)

        # First user administers the chat
        if users:
            Profile.objects.filter(pk=users[0].pk).update(is_admin=True)
        return users

    def _create_posts(self, users, count):
        texts = [
            "First post from the new place!",
            "Anyone up for a coffee this weekend?",
            "Sunset over the harbour tonight",
            "Reading recommendations, please",
            "Unpopular opinion: tabs over spaces.",
            "Finally finished the marathon training plan",
            "Throwback to last summer",
            "Who else is watching the stream later?",
        ]
        return [
            create_post(random.choice(users), f"{random.choice(texts)} #{i+1}")
            for i in range(count)
        ]

    def _create_comments(self, users, posts, count):
        texts = [
            "Love this!",
            "Count me in.",
            "Where was this taken?",
            "Congrats!",
            "Same here, honestly.",
            "Saving this for later",
        ]
        if not posts:
            return 0
        for _ in range(count):
            add_comment(random.choice(users), random.choice(posts).id, random.choice(texts))
        return count

    def _create_likes(self, users, posts):
        # Each user likes roughly half the posts; toggle only from a clean state
        created = 0
        for post in posts:
            likers = random.sample(users, k=len(users) // 2)
            for liker in likers:
                if not Reaction.objects.filter(post=post, user=liker).exists():
                    toggle_like(liker, post.id)
                    created += 1
        return created

    def _create_chat(self, users):
        lines = ["Hey!", "How's it going?", "Did you see the latest post?", "See you at the stream."]
        sent = 0
        for sender in users:
            send_message(sender, settings.SOCIAL_CHAT_ROOMS[0], random.choice(lines))
            sent += 1
        for first, second in zip(users, users[1:]):
            thread = resolve_thread(first, second)
            for speaker in (first, second):
                send_message(speaker, thread.key, random.choice(lines))
                sent += 1
        return sent

    def _create_announcements(self, users):
        for user in users[:3]:
            announce_live(
                user,
                topic=f"{user.username}'s Q&A",
                scheduled_at=timezone.now() + timedelta(days=random.randint(1, 7)),
                location='Online',
                description='Bring your questions.',
            )
