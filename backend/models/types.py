"""Shared type definitions for type checking.

Uses NewType for IDs to provide compile-time type safety - prevents mixing
different ID types (e.g., passing UserID where BookID expected).

Uses TypeAlias for complex types that are purely structural.
"""

from typing import NewType, TypeAlias

# ID types using NewType for type safety
UserID = NewType("UserID", str)
BookID = NewType("BookID", str)
ChatID = NewType("ChatID", str)
MessageID = NewType("MessageID", str)
JobID = NewType("JobID", str)

# Structural aliases
GenreTags: TypeAlias = list[str]
