"""
Social App URL Configuration
"""
from django.urls import path
from .views import (
    AnnouncementDetailView,
    AnnouncementListCreateView,
    ChannelMessagesView,
    CommentDetailView,
    CommentListCreateView,
    FeedView,
    LiveCommentView,
    LiveStreamDetailView,
    LiveStreamListView,
    MessageDetailView,
    MockAuthView,
    PostCreateView,
    PostDetailView,
    PostDislikeView,
    PostLikeView,
    ProfileView,
    RoomClearView,
    ThreadListView,
    UserDetailView,
    UserListView,
    WhoAmIView,
)

urlpatterns = [
    # Feed
    path('feed/', FeedView.as_view(), name='feed'),

    # Posts
    path('posts/', PostCreateView.as_view(), name='post-create'),
    path('posts/<int:post_id>/', PostDetailView.as_view(), name='post-detail'),
    path('posts/<int:post_id>/like/', PostLikeView.as_view(), name='post-like'),
    path('posts/<int:post_id>/dislike/', PostDislikeView.as_view(), name='post-dislike'),
    path('posts/<int:post_id>/comments/', CommentListCreateView.as_view(), name='post-comments'),

    # Comments
    path('comments/<int:comment_id>/', CommentDetailView.as_view(), name='comment-detail'),

    # Users & profile
    path('users/', UserListView.as_view(), name='user-list'),
    path('users/<int:user_id>/', UserDetailView.as_view(), name='user-detail'),
    path('profile/', ProfileView.as_view(), name='profile'),

    # Chat
    path('threads/', ThreadListView.as_view(), name='thread-list'),
    path('threads/<str:channel>/messages/', ChannelMessagesView.as_view(), name='thread-messages'),
    path('rooms/<str:channel>/messages/', ChannelMessagesView.as_view(), name='room-messages'),
    path('rooms/<str:room>/clear/', RoomClearView.as_view(), name='room-clear'),
    path('messages/<int:message_id>/', MessageDetailView.as_view(), name='message-detail'),

    # Live
    path('live/announcements/', AnnouncementListCreateView.as_view(), name='announcement-list'),
    path('live/announcements/<int:announcement_id>/', AnnouncementDetailView.as_view(), name='announcement-detail'),
    path('live/streams/', LiveStreamListView.as_view(), name='stream-list'),
    path('live/streams/<int:stream_id>/', LiveStreamDetailView.as_view(), name='stream-detail'),
    path('live/streams/<int:stream_id>/comments/', LiveCommentView.as_view(), name='stream-comments'),

    # Auth (development)
    path('auth/mock-login/', MockAuthView.as_view(), name='mock-login'),
    path('auth/whoami/', WhoAmIView.as_view(), name='whoami'),
]
