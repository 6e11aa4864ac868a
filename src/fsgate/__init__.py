"""fsgate - filesystem and archive gateway.

A thin request surface over filesystem operations plus an asyncio archive
engine that packs trees into tar.gz / zip containers and unpacks them with
POSIX metadata restored.
"""

__version__ = "0.3.0"
