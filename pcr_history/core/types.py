"""Shared type aliases for readability and contract enforcement."""
from __future__ import annotations

from datetime import datetime
from typing import Callable, NewType, TypeAlias

Symbol = NewType("Symbol", str)
EpochMillis = NewType("EpochMillis", int)

Clock: TypeAlias = Callable[[], datetime]
