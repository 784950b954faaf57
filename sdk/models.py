"""Pydantic data models for the Telegram Bot API.

Every class corresponds to a Bot API object.  The inbound side (``Update``
and the payloads of its 22 kinds) is modelled field-by-field for the parts the
dispatch layer and typical handlers read; the outbound side covers the reply
markups, payments and command shapes the client sends.

Everything reachable from an ``Update`` is frozen and its sequences are
tuples, so handlers sharing one update cannot change what the next one sees.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, Field


class Error(BaseModel):
    """Error body returned by the Bot API when ``ok`` is false."""

    ok: bool = False
    error_code: int
    description: str
    parameters: Optional["ResponseParameters"] = None

    model_config = {"populate_by_name": True}


class ResponseParameters(BaseModel):
    """Describes why a request was unsuccessful."""

    migrate_to_chat_id: Optional[int] = None
    retry_after: Optional[int] = None

    model_config = {"populate_by_name": True}


# ── Update and its kinds ─────────────────────────────────────────────────────


class UpdateKind(str, Enum):
    """The kind fields of an :class:`Update`, in dispatch declaration order."""

    MESSAGE = "message"
    EDITED_MESSAGE = "edited_message"
    CHANNEL_POST = "channel_post"
    EDITED_CHANNEL_POST = "edited_channel_post"
    BUSINESS_CONNECTION = "business_connection"
    BUSINESS_MESSAGE = "business_message"
    EDITED_BUSINESS_MESSAGE = "edited_business_message"
    BUSINESS_MESSAGES_DELETED = "business_messages_deleted"
    MESSAGE_REACTION = "message_reaction"
    MESSAGE_REACTION_COUNT = "message_reaction_count"
    INLINE_QUERY = "inline_query"
    CHOSEN_INLINE_RESULT = "chosen_inline_result"
    CALLBACK_QUERY = "callback_query"
    SHIPPING_QUERY = "shipping_query"
    PRE_CHECKOUT_QUERY = "pre_checkout_query"
    POLL = "poll"
    POLL_ANSWER = "poll_answer"
    MY_CHAT_MEMBER = "my_chat_member"
    CHAT_MEMBER = "chat_member"
    CHAT_JOIN_REQUEST = "chat_join_request"
    CHAT_BOOST = "chat_boost"
    REMOVED_CHAT_BOOST = "removed_chat_boost"


class Update(BaseModel):
    """An incoming update.

    Usually exactly one kind field is populated, but the protocol allows a few
    to coexist, so :attr:`kinds` reports every populated one.  Updates are
    frozen once parsed.
    """

    update_id: int
    message: Optional["Message"] = None
    edited_message: Optional["Message"] = None
    channel_post: Optional["Message"] = None
    edited_channel_post: Optional["Message"] = None
    business_connection: Optional["BusinessConnection"] = None
    business_message: Optional["Message"] = None
    edited_business_message: Optional["Message"] = None
    business_messages_deleted: Optional["BusinessMessagesDeleted"] = None
    message_reaction: Optional["MessageReactionUpdated"] = None
    message_reaction_count: Optional["MessageReactionCountUpdated"] = None
    inline_query: Optional["InlineQuery"] = None
    chosen_inline_result: Optional["ChosenInlineResult"] = None
    callback_query: Optional["CallbackQuery"] = None
    shipping_query: Optional["ShippingQuery"] = None
    pre_checkout_query: Optional["PreCheckoutQuery"] = None
    poll: Optional["Poll"] = None
    poll_answer: Optional["PollAnswer"] = None
    my_chat_member: Optional["ChatMemberUpdated"] = None
    chat_member: Optional["ChatMemberUpdated"] = None
    chat_join_request: Optional["ChatJoinRequest"] = None
    chat_boost: Optional["ChatBoostUpdated"] = None
    removed_chat_boost: Optional["ChatBoostRemoved"] = None

    model_config = {"populate_by_name": True, "frozen": True}

    @property
    def kinds(self) -> tuple[UpdateKind, ...]:
        """Every populated kind, in declaration order."""
        return tuple(kind for kind in UpdateKind if getattr(self, kind.value) is not None)

    @property
    def kind(self) -> Optional[UpdateKind]:
        """The first populated kind, or ``None`` for an unrecognised update."""
        kinds = self.kinds
        return kinds[0] if kinds else None

    def payload(self, kind: UpdateKind) -> Any:
        """Return the payload stored under *kind* (``None`` when absent)."""
        return getattr(self, UpdateKind(kind).value)


class WebhookInfo(BaseModel):
    """Contains information about the current status of a webhook."""

    url: str
    has_custom_certificate: bool
    pending_update_count: int
    ip_address: Optional[str] = None
    last_error_date: Optional[int] = None
    last_error_message: Optional[str] = None
    last_synchronization_error_date: Optional[int] = None
    max_connections: Optional[int] = None
    allowed_updates: Optional[List[str]] = None

    model_config = {"populate_by_name": True}


# ── Users, chats, messages ───────────────────────────────────────────────────


class User(BaseModel):
    """A Telegram user or bot."""

    id: int
    is_bot: bool
    first_name: str
    last_name: Optional[str] = None
    username: Optional[str] = None
    language_code: Optional[str] = None
    is_premium: Optional[bool] = None
    added_to_attachment_menu: Optional[bool] = None
    can_join_groups: Optional[bool] = None
    can_read_all_group_messages: Optional[bool] = None
    supports_inline_queries: Optional[bool] = None
    can_connect_to_business: Optional[bool] = None

    model_config = {"populate_by_name": True, "frozen": True}


class Chat(BaseModel):
    """A chat.  ``type`` is one of private, group, supergroup or channel."""

    id: int
    type: str
    title: Optional[str] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_forum: Optional[bool] = None

    model_config = {"populate_by_name": True, "frozen": True}


class ChatFullInfo(Chat):
    """Full information about a chat, as returned by ``getChat``."""

    bio: Optional[str] = None
    description: Optional[str] = None
    invite_link: Optional[str] = None
    slow_mode_delay: Optional[int] = None
    linked_chat_id: Optional[int] = None
    max_reaction_count: Optional[int] = None


class MessageEntity(BaseModel):
    """One special entity in a text message (hashtag, URL, bot command, …)."""

    type: str
    offset: int
    length: int
    url: Optional[str] = None
    user: Optional["User"] = None
    language: Optional[str] = None
    custom_emoji_id: Optional[str] = None

    model_config = {"populate_by_name": True, "frozen": True}


class PhotoSize(BaseModel):
    """One size of a photo or a file / sticker thumbnail."""

    file_id: str
    file_unique_id: str
    width: int
    height: int
    file_size: Optional[int] = None

    model_config = {"populate_by_name": True, "frozen": True}


class Document(BaseModel):
    """A general file."""

    file_id: str
    file_unique_id: str
    thumbnail: Optional["PhotoSize"] = None
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None

    model_config = {"populate_by_name": True, "frozen": True}


class Audio(Document):
    """An audio file to be treated as music."""

    duration: int
    performer: Optional[str] = None
    title: Optional[str] = None


class Voice(BaseModel):
    """A voice note."""

    file_id: str
    file_unique_id: str
    duration: int
    mime_type: Optional[str] = None
    file_size: Optional[int] = None

    model_config = {"populate_by_name": True, "frozen": True}


class Video(Document):
    """A video file."""

    width: int
    height: int
    duration: int


class Contact(BaseModel):
    """A phone contact."""

    phone_number: str
    first_name: str
    last_name: Optional[str] = None
    user_id: Optional[int] = None
    vcard: Optional[str] = None

    model_config = {"populate_by_name": True, "frozen": True}


class Location(BaseModel):
    """A point on the map."""

    latitude: float
    longitude: float
    horizontal_accuracy: Optional[float] = None

    model_config = {"populate_by_name": True, "frozen": True}


class Message(BaseModel):
    """A message.

    Also used for the ``message`` of a callback query; when that message is no
    longer accessible the API sends it with ``date == 0``.
    """

    message_id: int
    date: int
    chat: "Chat"
    message_thread_id: Optional[int] = None
    from_field: Optional["User"] = Field(None, alias="from")
    sender_chat: Optional["Chat"] = None
    business_connection_id: Optional[str] = None
    reply_to_message: Optional["Message"] = None
    via_bot: Optional["User"] = None
    edit_date: Optional[int] = None
    media_group_id: Optional[str] = None
    author_signature: Optional[str] = None
    text: Optional[str] = None
    entities: Optional[Tuple["MessageEntity", ...]] = None
    caption: Optional[str] = None
    caption_entities: Optional[Tuple["MessageEntity", ...]] = None
    audio: Optional["Audio"] = None
    document: Optional["Document"] = None
    photo: Optional[Tuple["PhotoSize", ...]] = None
    video: Optional["Video"] = None
    voice: Optional["Voice"] = None
    contact: Optional["Contact"] = None
    location: Optional["Location"] = None
    poll: Optional["Poll"] = None
    new_chat_members: Optional[Tuple["User", ...]] = None
    left_chat_member: Optional["User"] = None
    new_chat_title: Optional[str] = None
    migrate_to_chat_id: Optional[int] = None
    migrate_from_chat_id: Optional[int] = None
    successful_payment: Optional["SuccessfulPayment"] = None
    reply_markup: Optional["InlineKeyboardMarkup"] = None

    model_config = {"populate_by_name": True, "frozen": True}


class MessageId(BaseModel):
    """A unique message identifier."""

    message_id: int

    model_config = {"populate_by_name": True}


class File(BaseModel):
    """A file ready to be downloaded via ``file_path``."""

    file_id: str
    file_unique_id: str
    file_size: Optional[int] = None
    file_path: Optional[str] = None

    model_config = {"populate_by_name": True}


# ── Queries ──────────────────────────────────────────────────────────────────


class CallbackQuery(BaseModel):
    """An incoming callback query from an inline keyboard button."""

    id: str
    from_field: "User" = Field(..., alias="from")
    chat_instance: str
    message: Optional["Message"] = None
    inline_message_id: Optional[str] = None
    data: Optional[str] = None
    game_short_name: Optional[str] = None

    model_config = {"populate_by_name": True, "frozen": True}


class InlineQuery(BaseModel):
    """An incoming inline query."""

    id: str
    from_field: "User" = Field(..., alias="from")
    query: str
    offset: str
    chat_type: Optional[str] = None
    location: Optional["Location"] = None

    model_config = {"populate_by_name": True, "frozen": True}


class ChosenInlineResult(BaseModel):
    """A result of an inline query that was chosen by the user."""

    result_id: str
    from_field: "User" = Field(..., alias="from")
    query: str
    location: Optional["Location"] = None
    inline_message_id: Optional[str] = None

    model_config = {"populate_by_name": True, "frozen": True}


# ── Payments ─────────────────────────────────────────────────────────────────


class ShippingAddress(BaseModel):
    """A shipping address."""

    country_code: str
    state: str
    city: str
    street_line1: str
    street_line2: str
    post_code: str

    model_config = {"populate_by_name": True, "frozen": True}


class OrderInfo(BaseModel):
    """Information about an order."""

    name: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    shipping_address: Optional["ShippingAddress"] = None

    model_config = {"populate_by_name": True, "frozen": True}


class ShippingQuery(BaseModel):
    """An incoming shipping query."""

    id: str
    from_field: "User" = Field(..., alias="from")
    invoice_payload: str
    shipping_address: "ShippingAddress"

    model_config = {"populate_by_name": True, "frozen": True}


class PreCheckoutQuery(BaseModel):
    """An incoming pre-checkout query."""

    id: str
    from_field: "User" = Field(..., alias="from")
    currency: str
    total_amount: int
    invoice_payload: str
    shipping_option_id: Optional[str] = None
    order_info: Optional["OrderInfo"] = None

    model_config = {"populate_by_name": True, "frozen": True}


class SuccessfulPayment(BaseModel):
    """Basic information about a successful payment."""

    currency: str
    total_amount: int
    invoice_payload: str
    telegram_payment_charge_id: str
    provider_payment_charge_id: str
    shipping_option_id: Optional[str] = None
    order_info: Optional["OrderInfo"] = None

    model_config = {"populate_by_name": True, "frozen": True}


class LabeledPrice(BaseModel):
    """A portion of the price for goods or services."""

    label: str
    amount: int

    model_config = {"populate_by_name": True}


class ShippingOption(BaseModel):
    """One shipping option."""

    id: str
    title: str
    prices: List["LabeledPrice"]

    model_config = {"populate_by_name": True}


# ── Polls ────────────────────────────────────────────────────────────────────


class PollOption(BaseModel):
    """Information about one answer option in a poll."""

    text: str
    voter_count: int

    model_config = {"populate_by_name": True, "frozen": True}


class Poll(BaseModel):
    """Information about a poll."""

    id: str
    question: str
    options: Tuple["PollOption", ...]
    total_voter_count: int
    is_closed: bool
    is_anonymous: bool
    type: str
    allows_multiple_answers: bool
    correct_option_id: Optional[int] = None
    explanation: Optional[str] = None

    model_config = {"populate_by_name": True, "frozen": True}


class PollAnswer(BaseModel):
    """An answer of a user in a non-anonymous poll."""

    poll_id: str
    option_ids: Tuple[int, ...]
    voter_chat: Optional["Chat"] = None
    user: Optional["User"] = None

    model_config = {"populate_by_name": True, "frozen": True}


# ── Chat members, join requests, boosts ─────────────────────────────────────


class ChatMember(BaseModel):
    """One member of a chat.

    The API sends one of six status-specific shapes; the status-specific
    permission flags are kept as extra fields.
    """

    status: str
    user: "User"
    custom_title: Optional[str] = None
    is_anonymous: Optional[bool] = None
    until_date: Optional[int] = None

    model_config = {"populate_by_name": True, "frozen": True, "extra": "allow"}

    @property
    def is_admin(self) -> bool:
        """``True`` for chat creators and administrators."""
        return self.status in ("creator", "administrator")


class ChatInviteLink(BaseModel):
    """An invite link for a chat."""

    invite_link: str
    creator: "User"
    creates_join_request: bool
    is_primary: bool
    is_revoked: bool
    name: Optional[str] = None

    model_config = {"populate_by_name": True, "frozen": True}


class ChatMemberUpdated(BaseModel):
    """Changes in the status of a chat member."""

    chat: "Chat"
    from_field: "User" = Field(..., alias="from")
    date: int
    old_chat_member: "ChatMember"
    new_chat_member: "ChatMember"
    invite_link: Optional["ChatInviteLink"] = None
    via_join_request: Optional[bool] = None
    via_chat_folder_invite_link: Optional[bool] = None

    model_config = {"populate_by_name": True, "frozen": True}


class ChatJoinRequest(BaseModel):
    """A join request sent to a chat."""

    chat: "Chat"
    from_field: "User" = Field(..., alias="from")
    user_chat_id: int
    date: int
    bio: Optional[str] = None
    invite_link: Optional["ChatInviteLink"] = None

    model_config = {"populate_by_name": True, "frozen": True}


class ChatBoost(BaseModel):
    """A boost added to a chat or changed."""

    boost_id: str
    add_date: int
    expiration_date: int
    source: Dict[str, Any]

    model_config = {"populate_by_name": True, "frozen": True}


class ChatBoostUpdated(BaseModel):
    """A boost added to a chat or changed."""

    chat: "Chat"
    boost: "ChatBoost"

    model_config = {"populate_by_name": True, "frozen": True}


class ChatBoostRemoved(BaseModel):
    """A boost removed from a chat."""

    chat: "Chat"
    boost_id: str
    remove_date: int
    source: Dict[str, Any]

    model_config = {"populate_by_name": True, "frozen": True}


# ── Business accounts ───────────────────────────────────────────────────────


class BusinessConnection(BaseModel):
    """The connection of the bot with a business account."""

    id: str
    user: "User"
    user_chat_id: int
    date: int
    is_enabled: bool
    can_reply: Optional[bool] = None

    model_config = {"populate_by_name": True, "frozen": True}


class BusinessMessagesDeleted(BaseModel):
    """Messages deleted from a connected business account."""

    business_connection_id: str
    chat: "Chat"
    message_ids: Tuple[int, ...]

    model_config = {"populate_by_name": True, "frozen": True}


# ── Reactions ───────────────────────────────────────────────────────────────


class ReactionType(BaseModel):
    """A reaction: ``emoji``, ``custom_emoji`` or ``paid``."""

    type: str
    emoji: Optional[str] = None
    custom_emoji_id: Optional[str] = None

    model_config = {"populate_by_name": True, "frozen": True}


class ReactionCount(BaseModel):
    """A reaction added to a message along with the number of times it was added."""

    type: "ReactionType"
    total_count: int

    model_config = {"populate_by_name": True, "frozen": True}


class MessageReactionUpdated(BaseModel):
    """A change of a reaction on a message performed by a user."""

    chat: "Chat"
    message_id: int
    date: int
    old_reaction: Tuple["ReactionType", ...]
    new_reaction: Tuple["ReactionType", ...]
    user: Optional["User"] = None
    actor_chat: Optional["Chat"] = None

    model_config = {"populate_by_name": True, "frozen": True}


class MessageReactionCountUpdated(BaseModel):
    """Reaction changes on a message with anonymous reactions."""

    chat: "Chat"
    message_id: int
    date: int
    reactions: Tuple["ReactionCount", ...]

    model_config = {"populate_by_name": True, "frozen": True}


# ── Reply markup ────────────────────────────────────────────────────────────


class WebAppInfo(BaseModel):
    """A Web App to launch from a button."""

    url: str

    model_config = {"populate_by_name": True, "frozen": True}


class LoginUrl(BaseModel):
    """A parameter of the inline keyboard button used to automatically authorize a user."""

    url: str
    forward_text: Optional[str] = None
    bot_username: Optional[str] = None
    request_write_access: Optional[bool] = None

    model_config = {"populate_by_name": True, "frozen": True}


class SwitchInlineQueryChosenChat(BaseModel):
    """An inline button that switches the user to inline mode in a chosen chat."""

    query: Optional[str] = None
    allow_user_chats: Optional[bool] = None
    allow_bot_chats: Optional[bool] = None
    allow_group_chats: Optional[bool] = None
    allow_channel_chats: Optional[bool] = None

    model_config = {"populate_by_name": True, "frozen": True}


class CallbackGame(BaseModel):
    """Placeholder; holds no information."""

    model_config = {"populate_by_name": True, "frozen": True}


class InlineKeyboardButton(BaseModel):
    """One button of an inline keyboard.  Exactly one optional field must be used."""

    text: str
    url: Optional[str] = None
    callback_data: Optional[str] = None
    web_app: Optional["WebAppInfo"] = None
    login_url: Optional["LoginUrl"] = None
    switch_inline_query: Optional[str] = None
    switch_inline_query_current_chat: Optional[str] = None
    switch_inline_query_chosen_chat: Optional["SwitchInlineQueryChosenChat"] = None
    callback_game: Optional["CallbackGame"] = None
    pay: Optional[bool] = None

    model_config = {"populate_by_name": True, "frozen": True}


class InlineKeyboardMarkup(BaseModel):
    """An inline keyboard that appears right next to the message it belongs to."""

    inline_keyboard: List[List["InlineKeyboardButton"]]

    model_config = {"populate_by_name": True, "frozen": True}


class KeyboardButtonPollType(BaseModel):
    """Type of a poll allowed to be created from a keyboard button."""

    type: Optional[str] = None

    model_config = {"populate_by_name": True}


class KeyboardButtonRequestUsers(BaseModel):
    """Criteria used to request suitable users."""

    request_id: int
    user_is_bot: Optional[bool] = None
    user_is_premium: Optional[bool] = None
    max_quantity: Optional[int] = None

    model_config = {"populate_by_name": True}


class KeyboardButtonRequestChat(BaseModel):
    """Criteria used to request a suitable chat."""

    request_id: int
    chat_is_channel: bool
    chat_is_forum: Optional[bool] = None
    chat_has_username: Optional[bool] = None
    chat_is_created: Optional[bool] = None
    bot_is_member: Optional[bool] = None

    model_config = {"populate_by_name": True}


class KeyboardButton(BaseModel):
    """One button of a reply keyboard."""

    text: str
    request_users: Optional["KeyboardButtonRequestUsers"] = None
    request_chat: Optional["KeyboardButtonRequestChat"] = None
    request_contact: Optional[bool] = None
    request_location: Optional[bool] = None
    request_poll: Optional["KeyboardButtonPollType"] = None
    web_app: Optional["WebAppInfo"] = None

    model_config = {"populate_by_name": True}


class ReplyKeyboardMarkup(BaseModel):
    """A custom keyboard with reply options."""

    keyboard: List[List["KeyboardButton"]]
    is_persistent: Optional[bool] = None
    resize_keyboard: Optional[bool] = None
    one_time_keyboard: Optional[bool] = None
    input_field_placeholder: Optional[str] = None
    selective: Optional[bool] = None

    model_config = {"populate_by_name": True}


class ReplyKeyboardRemove(BaseModel):
    """Asks clients to remove the custom keyboard."""

    remove_keyboard: bool = True
    selective: Optional[bool] = None

    model_config = {"populate_by_name": True}


class ForceReply(BaseModel):
    """Asks clients to display a reply interface to the user."""

    force_reply: bool = True
    input_field_placeholder: Optional[str] = None
    selective: Optional[bool] = None

    model_config = {"populate_by_name": True}


ReplyMarkup = Union[InlineKeyboardMarkup, ReplyKeyboardMarkup, ReplyKeyboardRemove, ForceReply]


# ── Commands ────────────────────────────────────────────────────────────────


class BotCommand(BaseModel):
    """A bot command shown in the client's command menu."""

    command: str
    description: str

    model_config = {"populate_by_name": True}

