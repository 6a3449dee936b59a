"""
Chat transport port.

Architecture:
- Adapters normalize platform messages into InboundMessage
- IMBridge runs one poll loop per adapter: dedup, authorization, routing
- Handlers talk to the download engine and return CommandResult
- Formatting turns results into chat text
"""

from .bridge import IMBridge

__all__ = ["IMBridge"]
