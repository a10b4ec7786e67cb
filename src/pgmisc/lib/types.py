"""Stable domain identifier newtypes."""

from typing import NewType

ProcessId = NewType("ProcessId", int)
SignalNumber = NewType("SignalNumber", int)
TimelineId = NewType("TimelineId", int)
Lsn = NewType("Lsn", int)
