"""
Chat app for real-time messaging between platform users.

This app handles:
- Conversations and their participants
- Message sending, history, search and read receipts
- Presence tracking for connected users
- WebSocket delivery of chat events

Related apps:
    - authentication: User model and the UserDirectory lookup

WebSocket Support:
    Uses Django Channels for real-time communication.
    See consumers.py for the gateway, routing.py for the URL pattern.

Usage:
    from chat.services import ConversationService, MessageService

    # Create conversation
    result = ConversationService.create_conversation(
        subject="Algebra help",
        participant_ids=[tutor.id],
        creator_id=student.id,
    )

    # Send message
    result = MessageService.send_message(
        conversation_id=result.data["id"],
        sender_id=student.id,
        content="Hello!",
    )
"""
