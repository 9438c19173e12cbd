"""Bridge contract — every operation allowed across the process boundary.

The contract is fixed at import time.  Transports consult it to reject
unknown channels and kind mismatches, so no caller can invent a channel
name at runtime.  A new host-crossing operation must be added here first.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType

from lumina.bridge.errors import UnknownChannelError


class ChannelKind(StrEnum):
    """How a channel is invoked."""

    REQUEST = "request"
    FIRE = "fire"
    SUBSCRIPTION = "subscription"


class Channel(StrEnum):
    """Wire names of every bridge channel."""

    # Assistant
    OLLAMA_STATUS = "ollama:status"
    OLLAMA_MODELS = "ollama:models"
    OLLAMA_STREAM_PROMPT = "ollama:stream-prompt"
    OLLAMA_CHUNK = "ollama:chunk"
    OLLAMA_ERROR = "ollama:error"

    # System
    SETTINGS_LOAD = "settings:load"
    SETTINGS_SAVE = "settings:save"
    SYSTEM_SAVE_FILE = "system:save-file"

    # Projects
    PROJECT_LIST = "project:list"
    PROJECT_CREATE = "project:create"
    PROJECT_ADD_FILES = "project:add-files"
    PROJECT_ADD_FOLDER = "project:add-folder"
    PROJECT_ADD_URL = "project:add-url"
    PROJECT_UPDATE_SETTINGS = "project:update-settings"
    PROJECT_DELETE = "project:delete"

    # Sessions
    SESSION_SAVE = "session:save"
    SESSION_LIST = "session:list"
    SESSION_LOAD = "session:load"
    SESSION_DELETE = "session:delete"
    SESSION_RENAME = "session:rename"

    # Advanced
    PROJECT_GENERATE_GRAPH = "project:generate-graph"
    AGENT_DEEP_RESEARCH = "agent:deep-research"
    GIT_STATUS = "git:status"
    GIT_DIFF = "git:diff"

    # Dispatch targets
    COMMAND_RUN = "command:run"
    OS_OPEN_PATH = "os:openPath"
    OS_OPEN_APP = "os:openApp"


# Terminates one ``ollama:chunk`` stream.
STREAM_DONE = "[DONE]"


@dataclass(frozen=True)
class ChannelSpec:
    """Shape of one bridge channel."""

    channel: Channel
    kind: ChannelKind
    summary: str


def _spec(channel: Channel, kind: ChannelKind, summary: str) -> tuple[Channel, ChannelSpec]:
    return channel, ChannelSpec(channel=channel, kind=kind, summary=summary)


_REQ = ChannelKind.REQUEST
_FIRE = ChannelKind.FIRE
_SUB = ChannelKind.SUBSCRIPTION

CONTRACT: MappingProxyType[Channel, ChannelSpec] = MappingProxyType(
    dict(
        [
            _spec(Channel.OLLAMA_STATUS, _REQ, "endpoint URL -> reachable"),
            _spec(Channel.OLLAMA_MODELS, _REQ, "endpoint URL -> model names"),
            _spec(
                Channel.OLLAMA_STREAM_PROMPT,
                _FIRE,
                "{prompt, model, contextFiles, systemPrompt, settings} -> chunks",
            ),
            _spec(Channel.OLLAMA_CHUNK, _SUB, "response text chunks, '[DONE]' terminates"),
            _spec(Channel.OLLAMA_ERROR, _SUB, "assistant stream error messages"),
            _spec(Channel.SETTINGS_LOAD, _REQ, "-> settings object"),
            _spec(Channel.SETTINGS_SAVE, _REQ, "settings object -> ack"),
            _spec(Channel.SYSTEM_SAVE_FILE, _REQ, "{content, filename} -> file path"),
            _spec(Channel.PROJECT_LIST, _REQ, "-> project descriptors"),
            _spec(Channel.PROJECT_CREATE, _REQ, "{id, name, root?} -> project descriptor"),
            _spec(Channel.PROJECT_ADD_FILES, _REQ, "{projectId, paths} -> project files"),
            _spec(Channel.PROJECT_ADD_FOLDER, _REQ, "project id -> project files"),
            _spec(Channel.PROJECT_ADD_URL, _REQ, "{projectId, url} -> project files"),
            _spec(
                Channel.PROJECT_UPDATE_SETTINGS,
                _REQ,
                "{id, systemPrompt} -> project descriptor",
            ),
            _spec(Channel.PROJECT_DELETE, _REQ, "project id -> ack"),
            _spec(Channel.SESSION_SAVE, _REQ, "{id, title, messages, date} -> ack"),
            _spec(Channel.SESSION_LIST, _REQ, "-> session summaries"),
            _spec(Channel.SESSION_LOAD, _REQ, "session id -> session"),
            _spec(Channel.SESSION_DELETE, _REQ, "session id -> ack"),
            _spec(Channel.SESSION_RENAME, _REQ, "{id, title} -> ack"),
            _spec(Channel.PROJECT_GENERATE_GRAPH, _REQ, "project id -> artifact descriptor"),
            _spec(Channel.AGENT_DEEP_RESEARCH, _REQ, "{projectId, url} -> artifact descriptor"),
            _spec(Channel.GIT_STATUS, _REQ, "project id -> status payload"),
            _spec(Channel.GIT_DIFF, _REQ, "project id -> diff payload"),
            _spec(Channel.COMMAND_RUN, _REQ, "command id -> ack"),
            _spec(Channel.OS_OPEN_PATH, _REQ, "path -> ack"),
            _spec(Channel.OS_OPEN_APP, _REQ, "app name -> ack"),
        ]
    )
)


def spec_for(channel: Channel | str) -> ChannelSpec:
    """Resolve a channel (enum member or wire name) to its spec.

    Raises:
        UnknownChannelError: If the name is not in the contract.
    """
    try:
        resolved = Channel(channel)
    except ValueError:
        msg = f"Unknown bridge channel: {channel!r}"
        raise UnknownChannelError(msg) from None
    return CONTRACT[resolved]


def channels_of_kind(kind: ChannelKind) -> list[ChannelSpec]:
    """All channel specs of one kind, in declaration order."""
    return [spec for spec in CONTRACT.values() if spec.kind is kind]
