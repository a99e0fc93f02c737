"""Team chat enums and permission bits."""

from enum import Enum, IntFlag


class ChannelType(str, Enum):
    TEXT = "text"
    VOICE = "voice"
    ANNOUNCEMENT = "announcement"
    FORUM = "forum"


# Channel types that accept messages
MESSAGEABLE_CHANNEL_TYPES = {ChannelType.TEXT.value, ChannelType.ANNOUNCEMENT.value}


class MessageType(str, Enum):
    DEFAULT = "default"
    REPLY = "reply"
    THREAD_STARTER = "thread_starter"


class ChatPermission(IntFlag):
    """Role permission bits (Discord-compatible layout)."""

    CREATE_INVITE = 1 << 0
    KICK_MEMBERS = 1 << 1
    BAN_MEMBERS = 1 << 2
    ADMINISTRATOR = 1 << 3
    MANAGE_CHANNELS = 1 << 4
    MANAGE_SERVER = 1 << 5
    VIEW_CHANNEL = 1 << 10
    SEND_MESSAGES = 1 << 11
    MANAGE_MESSAGES = 1 << 13
    CONNECT = 1 << 20


# @everyone gets view + connect by default (1049600)
DEFAULT_ROLE_PERMISSIONS = int(ChatPermission.VIEW_CHANNEL | ChatPermission.CONNECT)
DEFAULT_ROLE_NAME = "@everyone"
DEFAULT_ROLE_COLOR = "#99AAB5"
DEFAULT_THREAD_ARCHIVE_MINUTES = 1440
