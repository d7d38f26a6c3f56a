"""Application layer for pgpgate.

This layer orchestrates message handling without spawning processes itself.
All engine side effects are delegated to adapters via port interfaces.
"""

__all__ = [
    "MessageReport",
    "MessageService",
]

from pgpgate.app.message_service import MessageReport, MessageService
