"""
ViewSets for chat API.

This module provides REST API endpoints for the chat system:
- ConversationViewSet: Conversation lifecycle, listing, search and stats
- ParticipantViewSet: Participant management (nested under conversation)
- ConversationMessageViewSet: Message operations (nested under conversation)
- MessageViewSet: Operations on a single message and cross-conversation queries
- Presence views: Online users and registry stats for this process

URL Structure:
    /api/v1/chat/conversations/                               GET, POST
    /api/v1/chat/conversations/unread/                        GET
    /api/v1/chat/conversations/search/?q=                     GET
    /api/v1/chat/conversations/stats/                         GET
    /api/v1/chat/conversations/{id}/                          GET, PATCH
    /api/v1/chat/conversations/{id}/archive/                  POST
    /api/v1/chat/conversations/{id}/leave/                    POST
    /api/v1/chat/conversations/{id}/participants/             GET, POST
    /api/v1/chat/conversations/{id}/participants/{user_id}/   DELETE
    /api/v1/chat/conversations/{id}/messages/                 GET, POST
    /api/v1/chat/conversations/{id}/messages/recent/          GET
    /api/v1/chat/conversations/{id}/messages/read/            POST
    /api/v1/chat/conversations/{id}/messages/unread/          GET
    /api/v1/chat/conversations/{id}/messages/stats/           GET
    /api/v1/chat/messages/search/?q=&limit=                   GET
    /api/v1/chat/messages/unread-count/                       GET
    /api/v1/chat/messages/{id}/                               GET, DELETE
    /api/v1/chat/messages/{id}/read/                          POST
    /api/v1/chat/presence/online/                             GET
    /api/v1/chat/presence/online/{user_id}/                   GET
    /api/v1/chat/presence/stats/                              GET

Design Decisions:
    - Views only parse requests and translate ServiceResult into responses
    - Access checks happen in the services, keyed by request.user.id
    - Failure codes map to VALIDATION_ERROR 400, ACCESS_DENIED 403, NOT_FOUND 404
"""

from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
    extend_schema_view,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from chat.constants import ERROR_CODES, MESSAGE_CONFIG
from chat.presence import presence_registry
from chat.serializers import (
    ConversationCreateSerializer,
    ConversationSummarySerializer,
    ConversationUpdateSerializer,
    MessageCreateSerializer,
    MessageSerializer,
    ParticipantCreateSerializer,
    ParticipantSerializer,
)
from chat.services import ConversationService, MessageService, ParticipantService

ERROR_STATUS = {
    ERROR_CODES.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ERROR_CODES.ACCESS_DENIED: status.HTTP_403_FORBIDDEN,
    ERROR_CODES.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    "PARTIAL_FAILURE": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(result) -> Response:
    """Translate a failed ServiceResult into an error response."""
    return Response(
        result.to_response(),
        status=ERROR_STATUS.get(result.error_code, status.HTTP_400_BAD_REQUEST),
    )


def result_response(result, success_status: int = status.HTTP_200_OK) -> Response:
    if not result.success:
        return error_response(result)
    return Response(result.data, status=success_status)


def int_param(request, name: str, default: int) -> int:
    """Read an integer query parameter, rejecting malformed values with 400."""
    raw = request.query_params.get(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError:
        raise DRFValidationError({name: [f"{name} must be an integer"]}) from None


def bool_param(request, name: str) -> bool:
    return request.query_params.get(name, "").lower() in ("1", "true", "yes")


# =============================================================================
# Conversations
# =============================================================================


@extend_schema_view(
    list=extend_schema(
        operation_id="list_conversations",
        summary="List conversations",
        parameters=[
            OpenApiParameter(
                name="include_archived",
                type=OpenApiTypes.BOOL,
                location=OpenApiParameter.QUERY,
                description="Also return archived conversations",
                required=False,
            ),
        ],
        responses={200: ConversationSummarySerializer(many=True)},
        tags=["Chat - Conversations"],
    ),
    create=extend_schema(
        operation_id="create_conversation",
        summary="Create conversation",
        request=ConversationCreateSerializer,
        responses={
            201: ConversationSummarySerializer,
            400: OpenApiResponse(description="Blank subject, no participants or unknown users"),
        },
        tags=["Chat - Conversations"],
    ),
    retrieve=extend_schema(
        operation_id="get_conversation",
        summary="Get conversation",
        responses={
            200: ConversationSummarySerializer,
            403: OpenApiResponse(description="Not a participant in this conversation"),
            404: OpenApiResponse(description="Conversation not found"),
        },
        tags=["Chat - Conversations"],
    ),
    partial_update=extend_schema(
        operation_id="update_conversation",
        summary="Update conversation",
        description="Rename and/or archive or unarchive the conversation.",
        request=ConversationUpdateSerializer,
        responses={200: ConversationSummarySerializer},
        tags=["Chat - Conversations"],
    ),
)
class ConversationViewSet(viewsets.ViewSet):
    """
    ViewSet for conversation operations.

    list:
        Conversations of the current user, most recent activity first.

    create:
        Create a conversation; the current user is added as creator.

    retrieve:
        Conversation summary with participants and last message.

    partial_update:
        Rename and/or toggle the archived flag.

    unread / search / stats:
        Conversations with unread messages, subject search, counters.

    archive / leave:
        Archive the conversation, or leave it.
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    def list(self, request):
        result = ConversationService.list_user_conversations(
            request.user.id,
            include_archived=bool_param(request, "include_archived"),
        )
        return result_response(result)

    def create(self, request):
        serializer = ConversationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = ConversationService.create_conversation(
            subject=data["subject"],
            participant_ids=data["participant_ids"],
            creator_id=request.user.id,
            initial_message=data.get("initial_message"),
            session_id=data.get("session_id"),
        )
        return result_response(result, status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        return result_response(ConversationService.get_conversation(int(pk), request.user.id))

    def partial_update(self, request, pk=None):
        serializer = ConversationUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = ConversationService.update_conversation(
            int(pk),
            request.user.id,
            subject=data.get("subject"),
            archived=data.get("archived"),
        )
        return result_response(result)

    @extend_schema(
        operation_id="list_unread_conversations",
        summary="List conversations with unread messages",
        responses={200: ConversationSummarySerializer(many=True)},
        tags=["Chat - Conversations"],
    )
    @action(detail=False, methods=["get"])
    def unread(self, request):
        return result_response(ConversationService.list_unread_conversations(request.user.id))

    @extend_schema(
        operation_id="search_conversations",
        summary="Search conversations by subject",
        description="A blank query returns the regular conversation list.",
        parameters=[
            OpenApiParameter(
                name="q",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                description="Case-insensitive subject substring",
                required=False,
            ),
        ],
        responses={200: ConversationSummarySerializer(many=True)},
        tags=["Chat - Conversations"],
    )
    @action(detail=False, methods=["get"])
    def search(self, request):
        result = ConversationService.search_conversations(
            request.user.id, request.query_params.get("q")
        )
        return result_response(result)

    @extend_schema(
        operation_id="get_conversation_statistics",
        summary="Conversation counters for the current user",
        responses={200: OpenApiTypes.OBJECT},
        tags=["Chat - Conversations"],
    )
    @action(detail=False, methods=["get"])
    def stats(self, request):
        return result_response(ConversationService.get_conversation_statistics(request.user.id))

    @extend_schema(
        operation_id="archive_conversation",
        summary="Archive conversation",
        request=None,
        responses={200: ConversationSummarySerializer},
        tags=["Chat - Conversations"],
    )
    @action(detail=True, methods=["post"])
    def archive(self, request, pk=None):
        return result_response(ConversationService.archive_conversation(int(pk), request.user.id))

    @extend_schema(
        operation_id="leave_conversation",
        summary="Leave conversation",
        request=None,
        responses={200: OpenApiTypes.OBJECT},
        tags=["Chat - Conversations"],
    )
    @action(detail=True, methods=["post"])
    def leave(self, request, pk=None):
        result = ParticipantService.leave_conversation(int(pk), request.user.id)
        if not result.success:
            return error_response(result)
        return Response({"status": "left"})


# =============================================================================
# Participants
# =============================================================================


@extend_schema_view(
    list=extend_schema(
        operation_id="list_participants",
        summary="List participants",
        responses={200: ParticipantSerializer(many=True)},
        tags=["Chat - Participants"],
    ),
    create=extend_schema(
        operation_id="add_participant",
        summary="Add participant",
        description="Adding a user who is already a participant returns the existing membership.",
        request=ParticipantCreateSerializer,
        responses={
            201: ParticipantSerializer,
            404: OpenApiResponse(description="Conversation or user not found"),
        },
        tags=["Chat - Participants"],
    ),
    destroy=extend_schema(
        operation_id="remove_participant",
        summary="Remove participant",
        responses={204: None},
        tags=["Chat - Participants"],
    ),
)
class ParticipantViewSet(viewsets.ViewSet):
    """Participants of one conversation (conversation_pk from the URL)."""

    permission_classes = [IsAuthenticated]

    def list(self, request, conversation_pk=None):
        result = ParticipantService.get_conversation_participants(
            int(conversation_pk), request.user.id
        )
        return result_response(result)

    def create(self, request, conversation_pk=None):
        serializer = ParticipantCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ParticipantService.add_participant(
            int(conversation_pk),
            serializer.validated_data["user_id"],
            request.user.id,
        )
        return result_response(result, status.HTTP_201_CREATED)

    def destroy(self, request, conversation_pk=None, user_id=None):
        result = ParticipantService.remove_participant(
            int(conversation_pk), int(user_id), request.user.id
        )
        if not result.success:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Messages
# =============================================================================


@extend_schema_view(
    list=extend_schema(
        operation_id="list_messages",
        summary="List messages",
        description=(
            "Page 0 holds the newest messages. Each page is returned oldest first."
        ),
        parameters=[
            OpenApiParameter(
                name="page",
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                description="Zero-based page, counted from the newest message",
                required=False,
            ),
            OpenApiParameter(
                name="size",
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                description=f"Page size (default {MESSAGE_CONFIG.DEFAULT_PAGE_SIZE}, "
                f"max {MESSAGE_CONFIG.MAX_PAGE_SIZE})",
                required=False,
            ),
        ],
        responses={200: MessageSerializer(many=True)},
        tags=["Chat - Messages"],
    ),
    create=extend_schema(
        operation_id="send_message",
        summary="Send message",
        request=MessageCreateSerializer,
        responses={
            201: MessageSerializer,
            400: OpenApiResponse(description="Empty content or unsupported kind"),
            403: OpenApiResponse(description="Not a participant in this conversation"),
        },
        tags=["Chat - Messages"],
    ),
)
class ConversationMessageViewSet(viewsets.ViewSet):
    """Messages of one conversation (conversation_pk from the URL)."""

    permission_classes = [IsAuthenticated]

    def list(self, request, conversation_pk=None):
        result = MessageService.get_messages(
            int(conversation_pk),
            request.user.id,
            page=int_param(request, "page", 0),
            size=int_param(request, "size", MESSAGE_CONFIG.DEFAULT_PAGE_SIZE),
        )
        return result_response(result)

    def create(self, request, conversation_pk=None):
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = MessageService.send_message(
            int(conversation_pk),
            request.user.id,
            data["content"],
            message_type=data["message_type"],
            file_url=data["file_url"],
        )
        return result_response(result, status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="list_recent_messages",
        summary="Recent messages",
        parameters=[
            OpenApiParameter(
                name="limit",
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                description=f"Number of messages (default {MESSAGE_CONFIG.DEFAULT_RECENT_LIMIT})",
                required=False,
            ),
        ],
        responses={200: MessageSerializer(many=True)},
        tags=["Chat - Messages"],
    )
    def recent(self, request, conversation_pk=None):
        result = MessageService.get_recent_messages(
            int(conversation_pk),
            request.user.id,
            limit=int_param(request, "limit", MESSAGE_CONFIG.DEFAULT_RECENT_LIMIT),
        )
        return result_response(result)

    @extend_schema(
        operation_id="mark_conversation_read",
        summary="Mark all messages as read",
        request=None,
        responses={200: OpenApiTypes.OBJECT},
        tags=["Chat - Messages"],
    )
    def read(self, request, conversation_pk=None):
        return result_response(
            MessageService.mark_all_as_read(int(conversation_pk), request.user.id)
        )

    @extend_schema(
        operation_id="list_unread_messages",
        summary="Unread messages",
        responses={200: MessageSerializer(many=True)},
        tags=["Chat - Messages"],
    )
    def unread(self, request, conversation_pk=None):
        return result_response(
            MessageService.get_unread_messages(int(conversation_pk), request.user.id)
        )

    @extend_schema(
        operation_id="get_message_statistics",
        summary="Message counters for the conversation",
        responses={200: OpenApiTypes.OBJECT},
        tags=["Chat - Messages"],
    )
    def stats(self, request, conversation_pk=None):
        return result_response(
            MessageService.get_message_statistics(int(conversation_pk), request.user.id)
        )


@extend_schema_view(
    retrieve=extend_schema(
        operation_id="get_message",
        summary="Get message",
        responses={200: MessageSerializer},
        tags=["Chat - Messages"],
    ),
    destroy=extend_schema(
        operation_id="delete_message",
        summary="Delete message",
        description="Only the sender may delete; the message is kept as a placeholder.",
        responses={
            200: MessageSerializer,
            403: OpenApiResponse(description="Not the sender of this message"),
        },
        tags=["Chat - Messages"],
    ),
)
class MessageViewSet(viewsets.ViewSet):
    """Single messages by id, plus queries across the user's conversations."""

    permission_classes = [IsAuthenticated]

    def retrieve(self, request, pk=None):
        return result_response(MessageService.get_message(int(pk), request.user.id))

    def destroy(self, request, pk=None):
        return result_response(MessageService.delete_message(int(pk), request.user.id))

    @extend_schema(
        operation_id="mark_message_read",
        summary="Mark message as read",
        request=None,
        responses={200: MessageSerializer},
        tags=["Chat - Messages"],
    )
    def read(self, request, pk=None):
        return result_response(MessageService.mark_message_as_read(int(pk), request.user.id))

    @extend_schema(
        operation_id="search_messages",
        summary="Search messages",
        description=(
            "Case-insensitive content search across the user's conversations. "
            "A blank query returns no results."
        ),
        parameters=[
            OpenApiParameter(
                name="q",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                description="Search term",
                required=False,
            ),
            OpenApiParameter(
                name="limit",
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                description=f"Maximum results (default {MESSAGE_CONFIG.SEARCH_DEFAULT_LIMIT}, "
                f"max {MESSAGE_CONFIG.SEARCH_MAX_RESULTS})",
                required=False,
            ),
        ],
        responses={200: MessageSerializer(many=True)},
        tags=["Chat - Search"],
    )
    def search(self, request):
        result = MessageService.search_messages(
            request.user.id,
            request.query_params.get("q"),
            limit=int_param(request, "limit", MESSAGE_CONFIG.SEARCH_DEFAULT_LIMIT),
        )
        return result_response(result)

    @extend_schema(
        operation_id="count_unread_messages",
        summary="Total unread messages",
        responses={200: OpenApiTypes.OBJECT},
        tags=["Chat - Messages"],
    )
    def unread_count(self, request):
        result = MessageService.count_total_unread(request.user.id)
        if not result.success:
            return error_response(result)
        return Response({"unread_count": result.data})


# =============================================================================
# Presence Views
# =============================================================================


class OnlineUsersView(APIView):
    """
    Users connected to this process.

    GET /api/v1/chat/presence/online/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_online_users",
        summary="List online users",
        responses={200: OpenApiTypes.OBJECT},
        tags=["Chat - Presence"],
    )
    def get(self, request):
        return Response({"user_ids": sorted(presence_registry.get_online_users())})


class UserOnlineView(APIView):
    """
    Whether a single user is connected.

    GET /api/v1/chat/presence/online/{user_id}/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_user_online",
        summary="Is user online",
        responses={200: OpenApiTypes.OBJECT},
        tags=["Chat - Presence"],
    )
    def get(self, request, user_id):
        return Response(
            {"user_id": user_id, "online": presence_registry.is_user_online(user_id)}
        )


class PresenceStatsView(APIView):
    """GET /api/v1/chat/presence/stats/"""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_presence_stats",
        summary="Presence registry statistics",
        responses={200: OpenApiTypes.OBJECT},
        tags=["Chat - Presence"],
    )
    def get(self, request):
        return Response(presence_registry.get_stats())
