"""Chat state for one client: REST pages, realtime pushes and optimistic sends merged into one view."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from rental_client.application.dto.message import Attachment, SendMessageDTO
from rental_client.application.exceptions import AppError, TransportError, ValidationError, error_message
from rental_client.application.observers import SubscriptionGroup
from rental_client.application.ports.clock import Clock, SystemClock
from rental_client.application.ports.messaging import MessagingApi
from rental_client.application.ports.realtime import RealtimeChannel
from rental_client.application.session import Session, SessionState
from rental_client.config import settings
from rental_client.domain.entities.conversation import Conversation
from rental_client.domain.entities.message import Message
from rental_client.domain.entities.typing_user import TypingUser
from rental_client.domain.events.conversations_loaded import ConversationsLoaded
from rental_client.domain.events.message_created import MessageCreated
from rental_client.domain.events.message_read import MessageRead
from rental_client.domain.events.typing_changed import UserStoppedTyping, UserTyping
from rental_client.domain.value_objects.enums import DeliveryState, MessageType
from rental_client.domain.value_objects.ids import ConversationId, MessageId
from rental_client.infrastructure.realtime import protocol
from rental_client.services import message_merge as merge
from rental_client.services.fallback_poller import FallbackPoller

logger = logging.getLogger(__name__)

# Error kinds: a success only clears an error of its own kind.
CONVERSATIONS = "conversations"
MESSAGES = "messages"
UNREAD = "unread"
SEND = "send"
READ = "read"
CREATE = "create"
REALTIME = "realtime"


@dataclass
class ChatState:
    conversations: list[Conversation] = field(default_factory=list)
    active_conversation_id: str | None = None
    messages: list[Message] = field(default_factory=list)
    page: int = 1
    has_more: bool = False
    typing_users: list[TypingUser] = field(default_factory=list)
    unread_count: int = 0
    is_loading: bool = False
    conversations_loading: bool = False
    is_connected: bool = False
    error: str | None = None
    error_kind: str | None = None


class ChatSync:
    """Consumer of the shared realtime channel plus the messaging REST API.

    Never connects or disconnects the transport. While it is down (and the
    user is signed in) a FallbackPoller re-fetches the conversation list and
    the newest page of the active conversation.
    """

    def __init__(
        self,
        session: Session,
        api: MessagingApi,
        channel: RealtimeChannel,
        *,
        clock: Clock | None = None,
        page_size: int | None = None,
        poll_interval: float | None = None,
        typing_stop_delay: float | None = None,
    ) -> None:
        self._session = session
        self._api = api
        self._channel = channel
        self._clock = clock or SystemClock()
        self._page_size = page_size or settings.MESSAGE_PAGE_SIZE
        self._typing_stop_delay = (
            typing_stop_delay if typing_stop_delay is not None else settings.TYPING_STOP_DELAY
        )
        self.state = ChatState()
        self.poller = FallbackPoller(self.poll_once, interval=poll_interval)

        self._epoch = 0
        self._read_requested: set[str] = set()
        self._typing = False
        self._stop_typing_task: asyncio.Task[None] | None = None
        self._subscriptions = SubscriptionGroup()

    # -- lifecycle ----------------------------------------------------------

    async def start(self) -> None:
        subs = self._subscriptions
        subs.add(self._session.subscribe(self._on_session_changed))
        subs.add(self._channel.on_connectivity(self._on_connectivity))
        subs.add(self._channel.subscribe(protocol.NEW_MESSAGE, self._on_new_message))
        subs.add(self._channel.subscribe(protocol.MESSAGE_READ, self._on_message_read))
        subs.add(self._channel.subscribe(protocol.USER_TYPING, self._on_user_typing))
        subs.add(self._channel.subscribe(protocol.USER_STOP_TYPING, self._on_user_stop_typing))
        subs.add(self._channel.subscribe(protocol.CONVERSATIONS_LOADED, self._on_conversations_loaded))
        subs.add(self._channel.subscribe(protocol.SERVER_ERROR, self._on_server_error))
        await self._on_connectivity(self._channel.is_connected)

    async def close(self) -> None:
        self._subscriptions.dispose()
        self._cancel_stop_typing()
        await self.poller.stop()

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def _user_id(self) -> str | None:
        user = self._session.user
        return user.id if user is not None else None

    # -- errors -------------------------------------------------------------

    def _fail(self, kind: str, exc: BaseException, fallback: str) -> None:
        self.state.error = error_message(exc, fallback)
        self.state.error_kind = kind
        logger.warning("Chat %s failed: %s", kind, self.state.error)

    def _succeed(self, kind: str) -> None:
        if self.state.error_kind == kind:
            self.state.error = None
            self.state.error_kind = None

    def clear_error(self) -> None:
        self.state.error = None
        self.state.error_kind = None

    # -- loading ------------------------------------------------------------

    async def load_conversations(self) -> None:
        self.state.conversations_loading = True
        try:
            conversations = await self._api.list_conversations()
        except AppError as exc:
            self._fail(CONVERSATIONS, exc, "Failed to load conversations")
            return
        finally:
            self.state.conversations_loading = False
        self.state.conversations = conversations
        self._succeed(CONVERSATIONS)

    async def load_messages(self, conversation_id: ConversationId, page: int = 1) -> None:
        """Load one page of the active conversation.

        The result is dropped when the user has navigated away in the meantime.
        """
        epoch = self._epoch
        self.state.is_loading = True
        try:
            items = await self._api.list_messages(
                conversation_id, page=page, limit=self._page_size,
            )
        except AppError as exc:
            if self._is_current(epoch, conversation_id):
                self.state.is_loading = False
                self._fail(MESSAGES, exc, "Failed to load messages")
            return
        if not self._is_current(epoch, conversation_id):
            logger.debug("Discarding stale page %d of %s", page, conversation_id)
            return
        self.state.is_loading = False
        self.state.messages = merge.merge_page(self.state.messages, items, page)
        self.state.page = page
        self.state.has_more = merge.has_more(items, self._page_size)
        self._succeed(MESSAGES)
        await self._mark_loaded_as_read()

    async def load_older_messages(self) -> None:
        cid = self.state.active_conversation_id
        if cid is None or not self.state.has_more or self.state.is_loading:
            return
        await self.load_messages(ConversationId(cid), self.state.page + 1)

    async def load_unread_count(self) -> None:
        try:
            count = await self._api.unread_count()
        except AppError as exc:
            self._fail(UNREAD, exc, "Failed to load unread count")
            return
        self.state.unread_count = count
        self._succeed(UNREAD)

    async def poll_once(self) -> None:
        """One degraded-mode refresh: the list plus the newest page of the open conversation."""
        await self.load_conversations()
        cid = self.state.active_conversation_id
        if cid is None:
            return
        epoch = self._epoch
        try:
            items = await self._api.list_messages(
                ConversationId(cid), page=1, limit=self._page_size,
            )
        except AppError as exc:
            if self._is_current(epoch, cid):
                self._fail(MESSAGES, exc, "Failed to load messages")
            return
        if not self._is_current(epoch, cid):
            return
        messages = self.state.messages
        for item in items:
            messages = merge.merge_incoming(messages, item)
        self.state.messages = messages
        self._succeed(MESSAGES)
        await self._mark_loaded_as_read()

    def _is_current(self, epoch: int, conversation_id: str) -> bool:
        return epoch == self._epoch and self.state.active_conversation_id == conversation_id

    # -- navigation ---------------------------------------------------------

    async def join_conversation(self, conversation_id: ConversationId) -> None:
        if self.state.active_conversation_id is not None:
            await self.leave_conversation()
        self._epoch += 1
        self.state.active_conversation_id = conversation_id
        await self._channel.join_conversation(conversation_id)
        await self.load_messages(conversation_id, page=1)

    async def leave_conversation(self) -> None:
        if self._typing and self.state.active_conversation_id is not None:
            await self._channel.emit(protocol.STOP_TYPING, self.state.active_conversation_id)
        self._cancel_stop_typing()
        self._typing = False
        self._epoch += 1
        self.state.active_conversation_id = None
        self.state.messages = []
        self.state.typing_users = []
        self.state.page = 1
        self.state.has_more = False
        self.state.is_loading = False
        self._read_requested = set()

    # -- sending ------------------------------------------------------------

    async def send_message(
        self,
        content: str,
        attachment: Attachment | None = None,
        reply_to_id: str | None = None,
    ) -> Message | None:
        """Optimistically append, then reconcile with the server copy.

        Returns the server copy, or None if nothing was delivered.
        """
        cid = self.state.active_conversation_id
        text = content.strip()
        if cid is None:
            self._fail(SEND, ValidationError("No conversation selected"), "")
            return None
        if not text and attachment is None:
            self._fail(SEND, ValidationError("Message cannot be empty"), "")
            return None

        local = self._local_message(cid, text, attachment, reply_to_id)
        epoch = self._epoch
        self.state.messages = merge.append_pending(self.state.messages, local)
        try:
            confirmed = await self._api.send_message(
                SendMessageDTO(
                    conversation_id=ConversationId(cid),
                    content=text,
                    reply_to_id=reply_to_id,
                    attachment=attachment,
                )
            )
        except AppError as exc:
            if epoch == self._epoch:
                self.state.messages = merge.mark_failed(self.state.messages, local.id)
                self._fail(SEND, exc, "Failed to send message")
            return None
        if epoch == self._epoch:
            self.state.messages = merge.reconcile_sent(self.state.messages, local.id, confirmed)
            self.state.conversations = merge.touch_conversation(self.state.conversations, confirmed)
            self._succeed(SEND)
        return confirmed

    def _local_message(
        self,
        conversation_id: str,
        text: str,
        attachment: Attachment | None,
        reply_to_id: str | None,
    ) -> Message:
        now = self._clock.now()
        user = self._session.user
        msg_type = MessageType.TEXT
        if attachment is not None:
            is_image = attachment.content_type.startswith("image/")
            msg_type = MessageType.IMAGE if is_image else MessageType.DOCUMENT
        return Message(
            id=merge.new_local_id(),
            conversation_id=conversation_id,
            sender_id=user.id if user else "",
            sender_name=user.name if user else None,
            content=text,
            type=msg_type,
            is_read=False,
            created_at=now,
            updated_at=now,
            reply_to_id=reply_to_id,
            delivery=DeliveryState.PENDING,
        )

    async def send_realtime(self, content: str, reply_to_id: str | None = None) -> bool:
        """Send through the socket; the server echoes it back as ``new-message``."""
        cid = self.state.active_conversation_id
        text = content.strip()
        if cid is None or not text:
            self._fail(SEND, ValidationError("Message cannot be empty"), "")
            return False
        payload = protocol.SendMessagePayload(
            conversation_id=cid, content=text, reply_to_id=reply_to_id,
        )
        if not await self._channel.emit(protocol.SEND_MESSAGE, payload.wire()):
            self._fail(SEND, TransportError("Not connected"), "Not connected to chat server")
            return False
        self._succeed(SEND)
        return True

    async def create_conversation(
        self,
        participant_ids: list[str],
        *,
        property_id: str | None = None,
        title: str | None = None,
    ) -> Conversation | None:
        if not participant_ids:
            self._fail(CREATE, ValidationError("Select at least one participant"), "")
            return None
        try:
            conversation = await self._api.create_conversation(
                participant_ids, property_id=property_id, title=title,
            )
        except AppError as exc:
            self._fail(CREATE, exc, "Failed to create conversation")
            return None
        others = [c for c in self.state.conversations if c.id != conversation.id]
        self.state.conversations = [conversation, *others]
        self._succeed(CREATE)
        return conversation

    # -- read state ---------------------------------------------------------

    async def mark_as_read(self, message_ids: list[MessageId]) -> None:
        cid = self.state.active_conversation_id
        if cid is None:
            return
        known_read = {m.id for m in self.state.messages if m.is_read}
        ids = [
            i for i in dict.fromkeys(message_ids)
            if i not in self._read_requested
            and i not in known_read
            and not i.startswith(merge.LOCAL_ID_PREFIX)
        ]
        if not ids:
            return
        epoch = self._epoch
        self._read_requested.update(ids)
        try:
            await self._api.mark_read(ConversationId(cid), [MessageId(i) for i in ids])
        except AppError as exc:
            if epoch == self._epoch:
                self._read_requested.difference_update(ids)
                self._fail(READ, exc, "Failed to mark messages as read")
            return
        if epoch != self._epoch:
            return
        self.state.messages = merge.apply_read(self.state.messages, ids, self._clock.now())
        self._succeed(READ)

    async def _mark_loaded_as_read(self) -> None:
        ids = merge.unread_from_others(self.state.messages, self._user_id, self._read_requested)
        if ids:
            await self.mark_as_read([MessageId(i) for i in ids])

    # -- typing -------------------------------------------------------------

    async def start_typing(self) -> None:
        cid = self.state.active_conversation_id
        if cid is None:
            return
        self._cancel_stop_typing()
        if not self._typing:
            self._typing = await self._channel.emit(protocol.TYPING, cid)

    async def stop_typing(self) -> None:
        """Emit ``stop-typing`` after the debounce unless typing resumes first."""
        cid = self.state.active_conversation_id
        if cid is None or not self._typing:
            return
        self._cancel_stop_typing()
        self._stop_typing_task = asyncio.create_task(
            self._emit_stop_typing(cid), name="chat-stop-typing",
        )

    async def _emit_stop_typing(self, conversation_id: str) -> None:
        await asyncio.sleep(self._typing_stop_delay)
        self._typing = False
        if self.state.active_conversation_id == conversation_id:
            await self._channel.emit(protocol.STOP_TYPING, conversation_id)

    def _cancel_stop_typing(self) -> None:
        task = self._stop_typing_task
        self._stop_typing_task = None
        if task is not None and not task.done():
            task.cancel()

    # -- realtime handlers --------------------------------------------------

    async def _on_new_message(self, event: MessageCreated) -> None:
        message = event.message
        self.state.conversations = merge.touch_conversation(self.state.conversations, message)
        if event.conversation_id != self.state.active_conversation_id:
            return
        self.state.messages = merge.merge_incoming(self.state.messages, message)
        self.state.typing_users = merge.remove_typing(self.state.typing_users, message.sender_id)

    async def _on_message_read(self, event: MessageRead) -> None:
        self.state.messages = merge.apply_read(
            self.state.messages, [event.message_id], event.read_at,
        )

    async def _on_user_typing(self, event: UserTyping) -> None:
        if self.state.active_conversation_id is None or event.user_id == self._user_id:
            return
        self.state.typing_users = merge.upsert_typing(
            self.state.typing_users, TypingUser(user_id=event.user_id, user_name=event.user_name),
        )

    async def _on_user_stop_typing(self, event: UserStoppedTyping) -> None:
        self.state.typing_users = merge.remove_typing(self.state.typing_users, event.user_id)

    async def _on_conversations_loaded(self, event: ConversationsLoaded) -> None:
        self.state.conversations = list(event.conversations)
        self._succeed(CONVERSATIONS)

    async def _on_server_error(self, message: str) -> None:
        self.state.error = message or "Chat server error"
        self.state.error_kind = REALTIME

    async def _on_connectivity(self, connected: bool) -> None:
        self.state.is_connected = connected
        await self.poller.update(
            authenticated=self._session.is_authenticated, connected=connected,
        )
        if connected:
            self._succeed(REALTIME)
            await self._channel.ensure_joined_conversations()
            cid = self.state.active_conversation_id
            if cid is not None:
                await self._channel.join_conversation(cid)

    async def _on_session_changed(self, state: SessionState) -> None:
        if not state.is_authenticated:
            await self.leave_conversation()
            self.state.conversations = []
            self.state.unread_count = 0
        await self.poller.update(
            authenticated=state.is_authenticated, connected=self._channel.is_connected,
        )
