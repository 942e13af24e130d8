"""
DRF Views
=========

Thin HTTP layer over the store. Each view:
1. Validates request shape with a serializer
2. Calls ONE service/query function
3. Serializes the result

Views never check ownership or admin rights themselves. Service functions
raise typed errors and exceptions.custom_exception_handler turns them into
400/403/404/409/503 responses.
"""

from django.conf import settings
from django.contrib.auth import login
from django.contrib.auth.models import User
from rest_framework import generics, permissions, status
from rest_framework.pagination import CursorPagination
from rest_framework.response import Response
from rest_framework.views import APIView

from . import chat, live, profiles, queries, services
from .serializers import (
    AnnouncementSerializer,
    AnnouncementUpdateSerializer,
    ChatMessageSerializer,
    CommentSerializer,
    LiveCommentSerializer,
    LiveStreamSerializer,
    PostCreateSerializer,
    PostEditSerializer,
    PostSerializer,
    ProfileSerializer,
    ProfileUpdateSerializer,
    TextSerializer,
    ThreadOpenSerializer,
    ThreadSerializer,
)


def _liked_ids(request, posts) -> set:
    if not request.user.is_authenticated:
        return set()
    return queries.get_liked_post_ids(request.user.id, [post.id for post in posts])


class FeedPagination(CursorPagination):
    """
    Cursor pagination for the feed.

    WHY CURSOR PAGINATION:
    - Offset pagination: SELECT ... LIMIT 20 OFFSET 1000 → scans 1020 rows
    - Cursor pagination: SELECT ... WHERE created_at < cursor → index seek

    Perfect for infinite scroll feeds, and stable while new posts arrive.
    """
    page_size = settings.SOCIAL_FEED_PAGE_SIZE
    ordering = ('-created_at', '-id')
    cursor_query_param = 'cursor'


class FeedView(generics.ListAPIView):
    """
    GET /api/feed/

    Paginated posts, newest first, with the caller's like state.
    """
    serializer_class = PostSerializer
    pagination_class = FeedPagination
    permission_classes = [permissions.AllowAny]

    def get_queryset(self):
        return queries.list_posts()

    def list(self, request, *args, **kwargs):
        page = self.paginate_queryset(self.get_queryset())
        context = self.get_serializer_context()
        context['liked_post_ids'] = _liked_ids(request, page)
        serializer = PostSerializer(page, many=True, context=context)
        return self.get_paginated_response(serializer.data)


class PostCreateView(APIView):
    """POST /api/posts/"""

    def post(self, request):
        serializer = PostCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        post = services.create_post(request.user, **serializer.validated_data)
        return Response(PostSerializer(post).data, status=status.HTTP_201_CREATED)


class PostDetailView(APIView):
    """
    GET    /api/posts/<id>/  post + comments
    PATCH  /api/posts/<id>/  edit text (author only)
    DELETE /api/posts/<id>/  delete (author only)
    """

    def get_permissions(self):
        if self.request.method == 'GET':
            return [permissions.AllowAny()]
        return super().get_permissions()

    def get(self, request, post_id):
        post = queries.get_post(post_id)
        comments = queries.list_comments_for_post(post_id)
        data = PostSerializer(post, context={'liked_post_ids': _liked_ids(request, [post])}).data
        data['comments'] = CommentSerializer(comments, many=True).data
        return Response(data)

    def patch(self, request, post_id):
        serializer = PostEditSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        post = services.edit_post(request.user, post_id, serializer.validated_data['text'])
        return Response(PostSerializer(post).data)

    def delete(self, request, post_id):
        services.delete_post(request.user, post_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class PostLikeView(APIView):
    """
    POST /api/posts/<id>/like/

    Returns:
    {"kind": "like", "active": true, "liked": true, "new_count": 1}
    """

    def post(self, request, post_id):
        result = services.toggle_like(request.user, post_id)
        return Response(result.as_dict())


class PostDislikeView(APIView):
    """POST /api/posts/<id>/dislike/"""

    def post(self, request, post_id):
        result = services.toggle_dislike(request.user, post_id)
        return Response(result.as_dict())


class CommentListCreateView(APIView):
    """
    GET  /api/posts/<post_id>/comments/
    POST /api/posts/<post_id>/comments/   {"text": "..."}
    """

    def get_permissions(self):
        if self.request.method == 'GET':
            return [permissions.AllowAny()]
        return super().get_permissions()

    def get(self, request, post_id):
        comments = queries.list_comments_for_post(post_id)
        return Response(CommentSerializer(comments, many=True).data)

    def post(self, request, post_id):
        serializer = TextSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = services.add_comment(request.user, post_id, serializer.validated_data['text'])
        return Response(CommentSerializer(comment).data, status=status.HTTP_201_CREATED)


class CommentDetailView(APIView):
    """DELETE /api/comments/<id>/"""

    def delete(self, request, comment_id):
        services.delete_comment(request.user, comment_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class UserListView(APIView):
    """GET /api/users/  all profiles, by display name"""
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        return Response(ProfileSerializer(queries.list_users(), many=True).data)


class UserDetailView(APIView):
    """GET /api/users/<id>/  profile with posts and announcements"""
    permission_classes = [permissions.AllowAny]

    def get(self, request, user_id):
        profile = profiles.get_profile(user_id)
        posts = list(queries.list_posts_by_author(user_id))
        data = ProfileSerializer(profile).data
        data['posts'] = PostSerializer(
            posts, many=True, context={'liked_post_ids': _liked_ids(request, posts)}
        ).data
        data['announcements'] = AnnouncementSerializer(
            queries.list_announcements_for_host(user_id), many=True
        ).data
        return Response(data)


class ProfileView(APIView):
    """
    GET   /api/profile/  own profile
    PATCH /api/profile/  edit own profile
    """

    def get(self, request):
        return Response(ProfileSerializer(profiles.profile_for(request.user)).data)

    def patch(self, request):
        serializer = ProfileUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        profile = profiles.update_profile(request.user, **serializer.validated_data)
        return Response(ProfileSerializer(profile).data)


class ThreadListView(APIView):
    """
    GET  /api/threads/                    my conversations
    POST /api/threads/  {"user_id": 12}   open (or reopen) a conversation
    """

    def get(self, request):
        threads = queries.list_threads_for_user(request.user.id)
        return Response(ThreadSerializer(threads, many=True).data)

    def post(self, request):
        serializer = ThreadOpenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        other = profiles.get_user(serializer.validated_data['user_id'])
        thread = chat.resolve_thread(request.user, other)
        return Response(ThreadSerializer(thread).data)


class ChannelMessagesView(APIView):
    """
    GET  /api/threads/<channel>/messages/
    GET  /api/rooms/<channel>/messages/
    POST (same URLs)  {"text": "..."}

    A channel is either a thread key ("3:12") or a room name.
    """

    def get(self, request, channel):
        messages = queries.list_messages_for_thread(channel, viewer=request.user)
        return Response(ChatMessageSerializer(messages, many=True).data)

    def post(self, request, channel):
        serializer = TextSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        message = chat.send_message(request.user, channel, serializer.validated_data['text'])
        return Response(ChatMessageSerializer(message).data, status=status.HTTP_201_CREATED)


class RoomClearView(APIView):
    """POST /api/rooms/<room>/clear/  (admin only)"""

    def post(self, request, room):
        deleted = chat.clear_all_messages(request.user, room=room)
        return Response({'deleted': deleted})


class MessageDetailView(APIView):
    """
    PATCH  /api/messages/<id>/  edit (sender only)
    DELETE /api/messages/<id>/  delete (sender only)
    """

    def patch(self, request, message_id):
        serializer = TextSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        message = chat.edit_message(request.user, message_id, serializer.validated_data['text'])
        return Response(ChatMessageSerializer(message).data)

    def delete(self, request, message_id):
        chat.delete_message(request.user, message_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class AnnouncementListCreateView(APIView):
    """
    GET  /api/live/announcements/  upcoming, soonest first
    POST /api/live/announcements/
    """

    def get_permissions(self):
        if self.request.method == 'GET':
            return [permissions.AllowAny()]
        return super().get_permissions()

    def get(self, request):
        announcements = queries.list_upcoming_announcements()
        return Response(AnnouncementSerializer(announcements, many=True).data)

    def post(self, request):
        serializer = AnnouncementSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        announcement = live.announce_live(request.user, **serializer.validated_data)
        return Response(AnnouncementSerializer(announcement).data, status=status.HTTP_201_CREATED)


class AnnouncementDetailView(APIView):
    """PATCH / DELETE /api/live/announcements/<id>/  (host only)"""

    def patch(self, request, announcement_id):
        serializer = AnnouncementUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        announcement = live.edit_announcement(request.user, announcement_id, **serializer.validated_data)
        return Response(AnnouncementSerializer(announcement).data)

    def delete(self, request, announcement_id):
        live.delete_announcement(request.user, announcement_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class LiveStreamListView(APIView):
    """
    GET  /api/live/streams/  streams live right now
    POST /api/live/streams/  go live
    """

    def get_permissions(self):
        if self.request.method == 'GET':
            return [permissions.AllowAny()]
        return super().get_permissions()

    def get(self, request):
        return Response(LiveStreamSerializer(queries.list_live_streams(), many=True).data)

    def post(self, request):
        stream = live.start_stream(request.user)
        return Response(LiveStreamSerializer(stream).data, status=status.HTTP_201_CREATED)


class LiveStreamDetailView(APIView):
    """DELETE /api/live/streams/<id>/  end the stream (host only)"""

    def delete(self, request, stream_id):
        cleared = live.end_stream(request.user, stream_id)
        return Response({'ended': True, 'comments_cleared': cleared})


class LiveCommentView(APIView):
    """
    GET  /api/live/streams/<id>/comments/
    POST /api/live/streams/<id>/comments/  {"text": "..."}
    """

    def get_permissions(self):
        if self.request.method == 'GET':
            return [permissions.AllowAny()]
        return super().get_permissions()

    def get(self, request, stream_id):
        comments = queries.list_live_comments(stream_id)
        return Response(LiveCommentSerializer(comments, many=True).data)

    def post(self, request, stream_id):
        serializer = TextSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = live.add_live_comment(request.user, stream_id, serializer.validated_data['text'])
        return Response(LiveCommentSerializer(comment).data, status=status.HTTP_201_CREATED)


# ============================================================================
# DEVELOPMENT/TESTING HELPERS
# ============================================================================

class MockAuthView(APIView):
    """
    POST /api/auth/mock-login/

    DEVELOPMENT ONLY: Quick login for testing without the identity provider.
    Creates the user and profile if they don't exist.

    Body: { "username": "testuser" }
    """
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        username = request.data.get('username', 'testuser')
        user, created = User.objects.get_or_create(
            username=username,
            defaults={'email': f'{username}@example.com'}
        )
        profile = profiles.ensure_profile(user)
        login(request, user)

        return Response({
            'user_id': user.id,
            'display_name': profile.display_name,
            'created': created
        })


class WhoAmIView(APIView):
    """
    GET /api/auth/whoami/

    Returns current authenticated user info.
    """
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        if request.user.is_authenticated:
            profile = profiles.profile_for(request.user)
            return Response({
                'authenticated': True,
                'user_id': request.user.id,
                'display_name': profile.display_name,
                'is_admin': profile.is_admin
            })
        return Response({
            'authenticated': False,
            'user_id': None,
            'display_name': None,
            'is_admin': False
        })
