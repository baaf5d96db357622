# MIT License
# Copyright (c) 2025 Hashborn

from pydantic import BaseModel, Field
from typing import Optional
from .common import DelegationKind
from ..crypto.keys import sign_recoverable
from ..crypto.typed_data import domain_separator, delegation_digest
from ..config.params import NetworkConfig

class DelegateChanged(BaseModel):
    delegator: str
    from_delegate: str
    to_delegate: str

class SignedDelegation(BaseModel):
    """An offline-signed delegation request, as submitted by any third party."""
    delegatee: str
    nonce: int = Field(..., ge=0, description="Signer's sequence number at signing time")
    expiry: int = Field(..., ge=0, description="Unix timestamp after which the signature is void")
    signature: str = Field(default="", description="65-byte r || s || v signature, hex encoded")

    def digest(self, config: NetworkConfig) -> bytes:
        separator = domain_separator(config.domain_name, config.chain_id, config.ledger_address)
        return delegation_digest(separator, self.delegatee, self.nonce, self.expiry)

    def sign(self, priv_key_bytes: bytes, config: NetworkConfig):
        """Signs the delegation for the ledger described by config."""
        self.signature = sign_recoverable(self.digest(config), priv_key_bytes).hex()

    def signature_bytes(self) -> bytes:
        sig = self.signature[2:] if self.signature.startswith("0x") else self.signature
        return bytes.fromhex(sig)

class DelegationReceipt(BaseModel):
    delegator: str
    from_delegate: str
    to_delegate: str
    amount: int
    kind: DelegationKind
    time_index: int
    nonce: Optional[int] = None
