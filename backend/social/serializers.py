"""
DRF Serializers
===============

Serializers handle:
1. Validation of request shape (types, required fields)
2. Transformation of model instances to JSON

Business rules (empty posts, ownership, admin rights) are NOT checked here;
they live in the service layer so every caller gets the same answer.
"""

from rest_framework import serializers

from .models import (
    ChatMessage,
    Comment,
    ConversationThread,
    LiveAnnouncement,
    LiveComment,
    LiveStream,
    Post,
    Profile,
)


class ProfileSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True)
    avatar = serializers.CharField(read_only=True)

    class Meta:
        model = Profile
        fields = ['user_id', 'display_name', 'email', 'avatar', 'bio', 'is_admin', 'created_at']
        read_only_fields = fields


class ProfileUpdateSerializer(serializers.Serializer):
    display_name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    bio = serializers.CharField(required=False, allow_blank=True)
    avatar_url = serializers.URLField(required=False, allow_blank=True, max_length=500)


class PostSerializer(serializers.ModelSerializer):
    """
    Post as shown in the feed.

    `liked` comes from context['liked_post_ids'], computed once per page
    by the view, so serialization runs no extra queries.
    """
    author_id = serializers.IntegerField(read_only=True)
    liked = serializers.SerializerMethodField()

    class Meta:
        model = Post
        fields = [
            'id',
            'author_id',
            'author_name',
            'author_avatar',
            'text',
            'image_url',
            'like_count',
            'dislike_count',
            'comment_count',
            'created_at',
            'edited_at',
            'liked',
        ]
        read_only_fields = fields

    def get_liked(self, obj):
        return obj.id in self.context.get('liked_post_ids', ())


class PostCreateSerializer(serializers.Serializer):
    text = serializers.CharField(required=False, allow_blank=True, default='')
    image_url = serializers.URLField(required=False, allow_blank=True, default='', max_length=500)


class PostEditSerializer(serializers.Serializer):
    text = serializers.CharField(allow_blank=True)


class CommentSerializer(serializers.ModelSerializer):
    author_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Comment
        fields = ['id', 'post_id', 'author_id', 'author_name', 'text', 'created_at']
        read_only_fields = fields


class TextSerializer(serializers.Serializer):
    """Request body for comments and chat messages."""
    text = serializers.CharField(allow_blank=True)


class ThreadSerializer(serializers.ModelSerializer):
    participants = serializers.SerializerMethodField()

    class Meta:
        model = ConversationThread
        fields = ['key', 'participants', 'last_message', 'last_message_at', 'created_at']
        read_only_fields = fields

    def get_participants(self, obj):
        return list(obj.participant_ids)


class ThreadOpenSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(min_value=1)


class ChatMessageSerializer(serializers.ModelSerializer):
    sender_id = serializers.IntegerField(read_only=True)
    channel = serializers.CharField(read_only=True)

    class Meta:
        model = ChatMessage
        fields = [
            'id',
            'channel',
            'sender_id',
            'sender_name',
            'sender_avatar',
            'text',
            'created_at',
            'edited',
            'edited_at',
        ]
        read_only_fields = fields


class AnnouncementSerializer(serializers.ModelSerializer):
    host_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = LiveAnnouncement
        fields = [
            'id',
            'host_id',
            'host_name',
            'host_avatar',
            'topic',
            'scheduled_at',
            'location',
            'description',
            'created_at',
        ]
        read_only_fields = ['id', 'host_id', 'host_name', 'host_avatar', 'created_at']


class AnnouncementUpdateSerializer(serializers.Serializer):
    topic = serializers.CharField(required=False, allow_blank=True, max_length=200)
    scheduled_at = serializers.DateTimeField(required=False)
    location = serializers.CharField(required=False, allow_blank=True, max_length=200)
    description = serializers.CharField(required=False, allow_blank=True)


class LiveStreamSerializer(serializers.ModelSerializer):
    host_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = LiveStream
        fields = ['id', 'host_id', 'host_name', 'host_avatar', 'is_live', 'started_at', 'ended_at']
        read_only_fields = fields


class LiveCommentSerializer(serializers.ModelSerializer):
    author_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = LiveComment
        fields = ['id', 'stream_id', 'author_id', 'author_name', 'text', 'created_at']
        read_only_fields = fields
