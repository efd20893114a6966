"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters. These are the "ports" in
hexagonal architecture.
"""

from guild_audio.application.interfaces.cache_store import CacheStore
from guild_audio.application.interfaces.media_resolver import AudioResource, MediaResolver
from guild_audio.application.interfaces.voice_transport import (
    AudioDevice,
    DeviceStateListener,
    TransportStateListener,
    VoiceGateway,
    VoiceTransport,
)

__all__ = [
    "AudioResource",
    "MediaResolver",
    "CacheStore",
    "AudioDevice",
    "VoiceTransport",
    "VoiceGateway",
    "DeviceStateListener",
    "TransportStateListener",
]
