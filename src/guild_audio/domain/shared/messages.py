"""Centralized message constants for error messages, log templates, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Discord ID Validation Errors
    INVALID_GUILD_ID = "Guild ID must be positive"
    INVALID_CHANNEL_ID = "Channel ID must be positive"

    # Audio/Stream Errors
    NO_URL_IN_INFO_DICT = "No URL found in info dict"
    NO_STREAM_URL_FOR_SONG = "No stream URL found for {title}"

    # Configuration Errors
    INVALID_CACHE_URL = "Cache URL must start with sqlite://"
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"
    DISCORD_TOKEN_REQUIRED = "DISCORD_TOKEN environment variable is required"

    # Voice Errors
    CHANNEL_NOT_FOUND = "Voice channel {channel_id} not found in guild {guild_id}"
    GUILD_NOT_FOUND = "Guild {guild_id} not found"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Database Lifecycle
    DATABASE_INITIALIZED = "Database initialized at %s"
    DATABASE_CLOSED = "Database manager closed"

    # Cache Operations
    CACHE_HIT = "Cache hit for '%s'"
    CACHE_MISS = "Cache miss for '%s'"
    CACHE_STORED = "Cached '%s' for %ds"
    CACHE_ENTRY_CORRUPT = "Discarding unreadable cache entry '%s': %r"
    CACHE_EXPIRED_PRUNED = "Pruned %d expired cache entries"
    CACHE_EVICTED = "Evicted %d cache entries over capacity"

    # Session Lifecycle
    SESSION_CREATED = "Created session for guild %s in channel %s"
    SESSION_REUSED = "Reusing session for guild %s"
    SESSION_REMOVED = "Removed session for guild %s"
    SESSION_DESTROYED = "Session for guild %s destroyed: %s"
    REGISTRY_SHUTDOWN = "Shutting down %d sessions"
    REGISTRY_SHUTDOWN_FAILED = "Failed to shut down session for guild %s: %r"

    # Connection State Machine
    CONNECTION_STATE_CHANGED = "Connection for guild %s: %s -> %s"
    CONNECTION_READY_DEADLINE_STARTED = "Guild %s must reach READY within %ss"
    CONNECTION_READY_DEADLINE_EXPIRED = "Guild %s did not reach READY within %ss, destroying"
    CONNECTION_RECOVERY_WAIT = "Guild %s closed with code %s, waiting %ss for reconnect"
    CONNECTION_RECOVERY_EXPIRED = "Guild %s did not reconnect within %ss"
    CONNECTION_REJOIN = "Rejoining voice for guild %s (attempt %d/%d)"
    CONNECTION_REJOIN_EXHAUSTED = "Guild %s exhausted %d rejoin attempts"
    CONNECTION_REJOIN_FAILED = "Rejoin request for guild %s failed: %r"
    CONNECTION_TIMEOUT = "Voice connection for guild %s not ready after %ss"
    CONNECTION_DESTROY_FAILED = "Failed to destroy transport for guild %s: %r"
    CONNECTION_HANDLER_FAILED = "Connection reaction for guild %s failed"

    # Voice/Transport Operations
    VOICE_CONNECTED = "Connected to voice channel %s in %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_MOVED = "Moved to voice channel %s in guild %s"
    VOICE_KICKED = "Removed from voice in guild %s"
    VOICE_CONNECTION_TIMEOUT = "Timeout connecting to channel %s"
    VOICE_NO_PERMISSION = "No permission to connect to channel %s"
    VOICE_CLIENT_ERROR = "Client error connecting: %r"
    VOICE_STALE_CLEANUP = "Found stale voice client in guild %s, cleaning up"
    VOICE_DISCONNECT_FAILED = "Error disconnecting voice client in guild %s: %r"
    VOICE_SELF_DEAFEN_FAILED = "Failed to self-deafen in guild %s: %r"
    VOICE_PLAYER_ERROR = "Audio player error in guild %s: %s"

    # Playback Operations
    PLAYBACK_STARTED = "Started playing '%s' in guild %s"
    PLAYBACK_STOPPED = "Stopped playback in guild %s"
    PLAYBACK_PAUSED = "Paused playback in guild %s"
    PLAYBACK_RESUMED = "Resumed playback in guild %s"
    PLAYBACK_QUEUE_EXHAUSTED = "Queue exhausted in guild %s"
    PLAYBACK_IDLE_IGNORED = "Ignoring idle notification in guild %s, advance in flight"
    PLAYBACK_ADVANCE_ABANDONED = "Abandoned in-flight advance in guild %s after stop"
    PLAYBACK_SONGS_ADDED = "Added %d songs to queue in guild %s (queue length %d)"
    PLAYBACK_JUMPED = "Jumped to '%s' in guild %s"
    PLAYBACK_REMOVED = "Removed '%s' from queue in guild %s"
    PLAYBACK_SHUFFLED = "Shuffled %d songs in guild %s"
    PLAYBACK_RESOURCE_FAILED = "Failed to create audio resource for '%s' (attempt %d/%d): %s"
    PLAYBACK_SKIPPING_SONG = "Skipping '%s' in guild %s after %d failed attempts"

    # Resolution
    ROUTER_CLASSIFIED = "Classified query %r as %s"
    ROUTER_PLAYLIST_FALLBACK = "Playlist lookup failed for %r, falling back to single item: %s"
    RESOLVER_REGISTERED = "Registered resolver for platform %s"
    RESOLVER_EXTRACT_FAILED = "yt-dlp extraction failed for %s: %r"
    RESOLVER_SKIPPED_ENTRY = "Skipping unavailable playlist entry %s: %s"
    RESOLVER_RESOLVED = "Resolved %s '%s' on %s"

    # Play Query Handler
    PLAY_QUERY_RECEIVED = "Play query from %s in guild %s: %r"
    PLAY_QUERY_VOICE_ERROR = "Voice error for guild %s: %s"
    PLAY_QUERY_NOT_FOUND = "Nothing found for %r in guild %s: %s"
    PLAY_QUERY_FAILED = "Play query failed in guild %s: %s"

    # Bot Lifecycle
    BOT_STARTING = "Starting guild-audio bot ({environment})"
    BOT_STARTING_RUN = "Connecting to Discord"
    BOT_STOPPED = "Bot stopped"
    BOT_KEYBOARD_INTERRUPT = "Interrupted, shutting down"
    BOT_FATAL_ERROR = "Fatal error: %s"
    BOT_SETUP_FAILED = "Failed to initialize container: %s"
    BOT_READY = "Logged in as %s (id=%s) in %d guilds"
    BOT_GUILD_REMOVED = "Removed from guild %s, ending its voice session"
    BOT_SHUTDOWN_STARTED = "Shutting down bot"
    BOT_SHUTDOWN_TIMEOUT = "Graceful shutdown did not finish within %ss"
    BOT_CONTAINER_SHUTDOWN_ERROR = "Error shutting down container: %s"
    BOT_SHUTDOWN_COMPLETE = "Bot shutdown complete"
    CONTAINER_INITIALIZED = "Container initialized"
    CONTAINER_SHUTDOWN = "Container shut down"

    # Event Bus
    EVENT_SUBSCRIBED = "Subscribed handler to: %s"
    EVENT_UNSUBSCRIBED = "Unsubscribed handler from %s"
    EVENT_NO_HANDLERS = "No handlers for %s"
    EVENT_PUBLISHING = "Publishing %s to %d handlers"
    EVENT_HANDLER_FAILED = "Error in handler for %s: %s"
    EVENT_HANDLERS_CLEARED = "Cleared all event handlers"

    # Event Log
    EVENT_TRACK_STARTED = "[guild %s] now playing '%s' from %s (requested by %s)"
    EVENT_TRACK_FAILED = "[guild %s] gave up on '%s' after %d attempts: %s"
    EVENT_QUEUE_EXHAUSTED = "[guild %s] queue finished after '%s'"
    EVENT_SESSION_DESTROYED = "[guild %s] session ended (%s)"

    # Startup
    LOGGING_CONFIG_LOADED = "Loaded logging configuration from %s"
    LOGGING_CONFIG_FALLBACK = "Could not load logging configuration from %s: %r"


class UserMessages:
    """User-facing messages returned by command handlers."""

    JOIN_VOICE_CHANNEL = "You need to join a voice channel first"
    FAIL_TO_JOIN_VOICE_CHANNEL = "Failed to join voice channel"
    CONNECTION_LOST = "Lost the voice connection, please try again"
    SONG_NOT_FOUND = "Song not found"
    PLAYLIST_NOT_FOUND = "Playlist not found"
    SEARCH_NOT_FOUND = "No results found for: {query}"
    FAIL_TO_RESOLVE = "Could not load that: {reason}"

    QUEUED_SONG = "Queued **{title}** by {author} ({duration})"
    QUEUED_PLAYLIST = "Queued playlist **{title}** by {author} ({count} songs, {duration})"
