# MIT License
# Copyright (c) 2025 Hashborn

from ecdsa import SigningKey, VerifyingKey, SECP256k1 # type: ignore
from ecdsa.util import sigencode_string_canonize, sigdecode_string # type: ignore
import os
import hashlib
from typing import Optional

SECP256K1_N = SECP256k1.order

def generate_private_key() -> bytes:
    """Generates a random 32-byte private key."""
    return os.urandom(32)

def public_key_from_private(priv_bytes: bytes) -> bytes:
    """Returns uncompressed 65-byte public key (0x04 || X || Y) from private key."""
    sk = SigningKey.from_string(priv_bytes, curve=SECP256k1)
    vk = sk.get_verifying_key()
    return vk.to_string("uncompressed")

def sign_recoverable(message_hash: bytes, priv_bytes: bytes) -> bytes:
    """
    Signs a 32-byte digest. Returns 65-byte (r || s || v) signature with
    low-s normalization and v in {27, 28}.
    """
    sk = SigningKey.from_string(priv_bytes, curve=SECP256k1)
    rs = sk.sign_digest_deterministic(message_hash, hashfunc=hashlib.sha256, sigencode=sigencode_string_canonize)
    own_key = sk.get_verifying_key().to_string("uncompressed")

    # Recovery id is the index of our own key among the recovery candidates
    candidates = VerifyingKey.from_public_key_recovery_with_digest(
        rs, message_hash, curve=SECP256k1, sigdecode=sigdecode_string
    )
    for recovery_id, candidate in enumerate(candidates):
        if candidate.to_string("uncompressed") == own_key:
            return rs + bytes([27 + recovery_id])
    raise ValueError("Unable to determine recovery id for signature")

def recover_public_key(message_hash: bytes, signature: bytes) -> Optional[bytes]:
    """
    Recovers the uncompressed public key that produced a 65-byte signature.
    Returns None for any malformed or unrecoverable signature.
    """
    if len(message_hash) != 32 or len(signature) != 65:
        return None

    v = signature[64]
    if v in (27, 28):
        v -= 27
    if v not in (0, 1):
        return None

    r = int.from_bytes(signature[:32], 'big')
    s = int.from_bytes(signature[32:64], 'big')
    if not (0 < r < SECP256K1_N and 0 < s < SECP256K1_N):
        return None

    try:
        candidates = VerifyingKey.from_public_key_recovery_with_digest(
            signature[:64], message_hash, curve=SECP256k1, sigdecode=sigdecode_string
        )
        return candidates[v].to_string("uncompressed")
    except Exception:
        return None
