# MIT License
# Copyright (c) 2025 Hashborn

"""
Typed structured-data digests for offline delegation signatures.

Byte layout follows EIP-712 so that signatures produced by standard
wallet tooling verify here:

    digest = keccak256(0x19 0x01 || domainSeparator || structHash)

Every field is ABI-encoded as a 32-byte big-endian word; strings are
replaced by their keccak256 hash and addresses are left-padded.
"""

from .hash import keccak256
from .addresses import decode_address

DOMAIN_TYPE = "EIP712Domain(string name,uint256 chainId,address verifyingContract)"
DELEGATION_TYPE = "Delegation(address delegatee,uint256 nonce,uint256 expiry)"

DOMAIN_TYPEHASH = keccak256(DOMAIN_TYPE.encode("utf-8"))
DELEGATION_TYPEHASH = keccak256(DELEGATION_TYPE.encode("utf-8"))


def encode_uint256(value: int) -> bytes:
    if value < 0 or value >= 2**256:
        raise ValueError(f"uint256 out of range: {value}")
    return value.to_bytes(32, 'big')


def encode_address_word(addr: str) -> bytes:
    _, account_id = decode_address(addr)
    return account_id.rjust(32, b'\x00')


def domain_separator(name: str, chain_id: int, ledger_address: str) -> bytes:
    return keccak256(
        DOMAIN_TYPEHASH
        + keccak256(name.encode("utf-8"))
        + encode_uint256(chain_id)
        + encode_address_word(ledger_address)
    )


def delegation_struct_hash(delegatee: str, nonce: int, expiry: int) -> bytes:
    return keccak256(
        DELEGATION_TYPEHASH
        + encode_address_word(delegatee)
        + encode_uint256(nonce)
        + encode_uint256(expiry)
    )


def delegation_digest(separator: bytes, delegatee: str, nonce: int, expiry: int) -> bytes:
    """Final 32-byte digest the signer signs."""
    return keccak256(b"\x19\x01" + separator + delegation_struct_hash(delegatee, nonce, expiry))
