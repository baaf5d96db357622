# MIT License
# Copyright (c) 2025 Hashborn

import hashlib
from typing import List
from Crypto.Hash import keccak  # type: ignore

def sha256(data: bytes) -> bytes:
    """Returns SHA256 hash of bytes."""
    return hashlib.sha256(data).digest()

def keccak256(data: bytes) -> bytes:
    """Returns the original Keccak-256 hash (not NIST SHA3-256) used by typed-data signing."""
    h = keccak.new(digest_bits=256)
    h.update(data)
    return h.digest()

def merkle_root(hashes: List[bytes]) -> bytes:
    """Calculates Merkle Root for a list of hashes."""
    if not hashes:
        return b'\x00' * 32

    if len(hashes) == 1:
        return hashes[0]

    new_level = []
    for i in range(0, len(hashes), 2):
        left = hashes[i]
        right = hashes[i+1] if i+1 < len(hashes) else left
        new_level.append(sha256(left + right))

    return merkle_root(new_level)
