# MIT License
# Copyright (c) 2025 Hashborn

import bech32 # type: ignore
from .hash import keccak256
from typing import Tuple, Optional

DEFAULT_PREFIX = "vote"
ADDRESS_LENGTH = 20

def account_id_from_pubkey(pub_bytes: bytes) -> bytes:
    """Returns the 20-byte account id: last 20 bytes of keccak256(X || Y)."""
    if len(pub_bytes) == 65 and pub_bytes[0] == 4:
        pub_bytes = pub_bytes[1:]
    if len(pub_bytes) != 64:
        raise ValueError("Expected uncompressed secp256k1 public key")
    return keccak256(pub_bytes)[-ADDRESS_LENGTH:]

def encode_address(account_id: bytes, prefix: str = DEFAULT_PREFIX) -> str:
    """Encodes a 20-byte account id as a Bech32 address."""
    if len(account_id) != ADDRESS_LENGTH:
        raise ValueError(f"Account id must be {ADDRESS_LENGTH} bytes")

    # Convert to 5-bit words
    five_bit_r = bech32.convertbits(account_id, 8, 5)
    if five_bit_r is None:
        raise ValueError("Error converting to bech32 words")

    return bech32.bech32_encode(prefix, five_bit_r)

def address_from_pubkey(pub_bytes: bytes, prefix: str = DEFAULT_PREFIX) -> str:
    """Creates Bech32 address from public key."""
    return encode_address(account_id_from_pubkey(pub_bytes), prefix)

def decode_address(addr: str) -> Tuple[str, bytes]:
    """Decodes Bech32 address to (prefix, account_id_bytes)."""
    hrp, data = bech32.bech32_decode(addr)
    if hrp is None or data is None:
        raise ValueError("Invalid bech32 address")

    decoded = bech32.convertbits(data, 5, 8, False)
    if decoded is None or len(decoded) != ADDRESS_LENGTH:
        raise ValueError("Error converting from bech32 words")

    return hrp, bytes(decoded)

def null_address(prefix: str = DEFAULT_PREFIX) -> str:
    """The null identity: Bech32 encoding of 20 zero bytes."""
    return encode_address(b'\x00' * ADDRESS_LENGTH, prefix)

def is_null_address(addr: Optional[str]) -> bool:
    if not addr:
        return True
    try:
        _, account_id = decode_address(addr)
    except ValueError:
        return False
    return account_id == b'\x00' * ADDRESS_LENGTH

def is_valid_address(addr: str, expected_prefix: Optional[str] = None) -> bool:
    try:
        hrp, _ = decode_address(addr)
        if expected_prefix and hrp != expected_prefix:
            return False
        return True
    except ValueError:
        return False

NULL_ACCOUNT = null_address()
