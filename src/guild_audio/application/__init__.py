"""
Application Layer

Contains use cases, command handlers, and application services.
This layer orchestrates domain objects and infrastructure to fulfill use cases.

Structure:
- commands/: inbound command handlers (PlayQueryHandler)
- services/: connection state machine, playback engine, routing, sessions
- interfaces/: Port interfaces for infrastructure adapters
"""
