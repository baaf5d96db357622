# MIT License
# Copyright (c) 2025 Hashborn

from enum import Enum

class DelegationKind(str, Enum):
    DIRECT = "DIRECT"     # Caller-authenticated delegate()
    SIGNED = "SIGNED"     # Offline-signed delegate_by_signature()

class EventType(str, Enum):
    WEIGHT_CHANGED = "weight_changed"
    DELEGATE_CHANGED = "delegate_changed"
    DELEGATION_AUTHORIZED = "delegation_authorized"
    AUTHORIZATION_REJECTED = "authorization_rejected"
    TIME_ADVANCED = "time_advanced"

class LedgerError(Exception):
    pass

# --- Arithmetic domain violations ---

class WeightOverflowError(LedgerError):
    pass

class WeightUnderflowError(LedgerError):
    pass

class RangeError(LedgerError):
    pass

# --- Queries ---

class NotYetDeterminedError(LedgerError):
    pass

# --- Signed delegation ---

class AuthorizationError(LedgerError):
    reason = "invalid_authorization"

class InvalidSignatureError(AuthorizationError):
    reason = "invalid_signature"

class InvalidSequenceError(AuthorizationError):
    reason = "invalid_sequence"

class ExpiredAuthorizationError(AuthorizationError):
    reason = "signature_expired"
