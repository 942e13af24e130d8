"""
Django Admin Configuration for Social Models

Counters and denormalized author fields are read-only here: editing them
by hand would break like_count == |likers|.
"""
from django.contrib import admin
from .models import (
    ChatMessage,
    Comment,
    ConversationThread,
    LiveAnnouncement,
    LiveStream,
    Post,
    Profile,
    Reaction,
)


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ['user_id', 'display_name', 'email', 'is_admin', 'created_at', 'last_login_at']
    list_filter = ['is_admin']
    search_fields = ['display_name', 'email']
    readonly_fields = ['created_at', 'last_login_at']

    def has_delete_permission(self, request, obj=None):
        # Profiles are never hard-deleted
        return False


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = ['id', 'author_name', 'like_count', 'dislike_count', 'comment_count', 'created_at']
    list_filter = ['created_at']
    search_fields = ['text', 'author_name']
    readonly_fields = ['author_name', 'author_avatar', 'like_count', 'dislike_count',
                       'comment_count', 'created_at', 'edited_at']


@admin.register(Reaction)
class ReactionAdmin(admin.ModelAdmin):
    list_display = ['user', 'post', 'kind', 'created_at']
    list_filter = ['kind', 'created_at']

    def has_add_permission(self, request):
        # Reactions only change through toggle_reaction (keeps counters in sync)
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ['id', 'post', 'author_name', 'created_at']
    search_fields = ['text', 'author_name']
    readonly_fields = ['post', 'author', 'author_name', 'created_at']

    def has_add_permission(self, request):
        # Adding or removing a comment moves Post.comment_count; only the services do that
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ConversationThread)
class ConversationThreadAdmin(admin.ModelAdmin):
    list_display = ['key', 'last_message', 'last_message_at']
    readonly_fields = ['key', 'user_low', 'user_high', 'created_at']


@admin.register(ChatMessage)
class ChatMessageAdmin(admin.ModelAdmin):
    list_display = ['id', 'room', 'thread', 'sender_name', 'edited', 'created_at']
    list_filter = ['room', 'edited']
    search_fields = ['text', 'sender_name']


@admin.register(LiveAnnouncement)
class LiveAnnouncementAdmin(admin.ModelAdmin):
    list_display = ['topic', 'host_name', 'scheduled_at', 'location']
    list_filter = ['scheduled_at']
    search_fields = ['topic', 'host_name']


@admin.register(LiveStream)
class LiveStreamAdmin(admin.ModelAdmin):
    list_display = ['id', 'host_name', 'is_live', 'started_at', 'ended_at']
    list_filter = ['is_live']
