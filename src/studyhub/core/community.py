"""Community features: announcements, testimonials, support chat, rooms."""

from __future__ import annotations

import structlog

from studyhub.core.entities import (
    Announcement,
    ChatRoom,
    CommunityMessage,
    Message,
    Testimonial,
    UserAccount,
    new_id,
)
from studyhub.db.local_store import LocalStore

logger = structlog.get_logger(__name__)

PRIORITIES = ("normal", "important", "urgent")

# Receiver id of messages sent to the support desk
ADMIN_INBOX = "admin"


class CommunityService:
    def __init__(self, store: LocalStore):
        self.store = store

    # -------------------------------------------------------------------------
    # Announcements
    # -------------------------------------------------------------------------

    def post_announcement(
        self, admin: UserAccount, title: str, content: str, priority: str = "normal"
    ) -> Announcement:
        if not admin.is_admin:
            raise PermissionError("Only admins can post announcements")
        if priority not in PRIORITIES:
            raise ValueError(f"Invalid priority: {priority}")

        announcement = Announcement(id=new_id(), title=title, content=content, priority=priority)
        self.store.upsert("announcements", announcement, prepend=True)
        logger.info("community.announcement_posted", id=announcement.id, priority=priority)
        return announcement

    def announcements(self) -> list[Announcement]:
        return sorted(
            self.store.get_all("announcements"), key=lambda a: a.timestamp, reverse=True
        )

    def delete_announcement(self, announcement_id: str) -> bool:
        return self.store.remove("announcements", announcement_id)

    # -------------------------------------------------------------------------
    # Testimonials
    # -------------------------------------------------------------------------

    def add_testimonial(self, user: UserAccount, content: str, rating: int) -> Testimonial:
        if not 1 <= rating <= 5:
            raise ValueError(f"Rating must be between 1 and 5, got {rating}")
        if not content.strip():
            raise ValueError("Testimonial content is empty")

        testimonial = Testimonial(
            id=new_id(),
            user_id=user.id,
            user_name=user.name or user.first_name,
            content=content.strip(),
            rating=rating,
            user_role=user.account_role.value if user.account_role else "Member",
        )
        self.store.upsert("testimonials", testimonial, prepend=True)
        return testimonial

    def testimonials(self) -> list[Testimonial]:
        return sorted(
            self.store.get_all("testimonials"), key=lambda t: t.timestamp, reverse=True
        )

    # -------------------------------------------------------------------------
    # Support messages
    # -------------------------------------------------------------------------

    def send_support_message(
        self, sender: UserAccount, content: str, receiver_id: str = ADMIN_INBOX
    ) -> Message:
        """Send a message to the support desk, or an admin reply to a user."""
        message = Message(
            id=new_id(),
            sender_id=sender.id,
            receiver_id=receiver_id,
            content=content,
            is_admin=sender.is_admin,
        )
        self.store.upsert("messages", message)
        logger.info(
            "community.support_message",
            sender_id=sender.id,
            receiver_id=receiver_id,
            is_admin=message.is_admin,
        )
        return message

    def support_messages(self, viewer: UserAccount) -> list[Message]:
        """Conversation visible to the viewer, oldest first.

        Users see only messages they sent or received; admins see all.
        """
        messages = self.store.get_all("messages")
        if not viewer.is_admin:
            messages = [
                m for m in messages if m.sender_id == viewer.id or m.receiver_id == viewer.id
            ]
        return sorted(messages, key=lambda m: m.timestamp)

    # -------------------------------------------------------------------------
    # Chat rooms
    # -------------------------------------------------------------------------

    def chat_rooms(self) -> list[ChatRoom]:
        return self.store.get_all("chat_rooms")

    def create_room(self, title: str, description: str = "", icon: str = "💬") -> ChatRoom:
        room = ChatRoom(id=new_id(), title=title, description=description, icon=icon)
        self.store.upsert("chat_rooms", room)
        return room

    def post_to_room(
        self,
        user: UserAccount,
        room_id: str,
        content: str,
        image_url: str | None = None,
        audio_url: str | None = None,
    ) -> CommunityMessage:
        if self.store.get("chat_rooms", room_id) is None:
            raise LookupError(f"Chat room not found: {room_id}")

        if user.is_admin:
            sender_role = "Admin"
        elif user.account_role is not None:
            sender_role = user.account_role.value
        else:
            sender_role = "Member"

        message = CommunityMessage(
            id=new_id(),
            room_id=room_id,
            sender_id=user.id,
            sender_name=user.name or user.first_name,
            content=content,
            sender_role=sender_role,
            image_url=image_url,
            audio_url=audio_url,
            is_official=user.is_admin,
        )
        self.store.upsert("community_messages", message)
        return message

    def room_messages(self, room_id: str) -> list[CommunityMessage]:
        messages = [m for m in self.store.get_all("community_messages") if m.room_id == room_id]
        return sorted(messages, key=lambda m: m.timestamp)
