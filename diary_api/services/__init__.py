from .entries import EntryService
from .gate import EntryGate, Verification
from .membership import JoinResult, MembershipService
from .status import EntryStatus, StatusReporter

__all__ = [
    "EntryGate",
    "EntryService",
    "EntryStatus",
    "JoinResult",
    "MembershipService",
    "StatusReporter",
    "Verification",
]
