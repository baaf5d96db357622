# MIT License
# Copyright (c) 2025 Hashborn

"""
Delegation authorization.

Two ways to change a delegate: a direct call where the caller is the
delegator, and an offline-signed request that anyone can submit. Signed
requests are bound to this ledger through the typed-data domain separator,
replay-protected through per-signer sequence numbers, and time-limited by
an expiry timestamp.
"""

from typing import Dict, Optional, Protocol
import logging
from .clock import BlockClock
from .events import EventBus
from .votes import VoteLedger
from ...protocol.types.common import (
    DelegationKind, EventType, AuthorizationError,
    InvalidSignatureError, InvalidSequenceError, ExpiredAuthorizationError,
)
from ...protocol.types.delegation import DelegationReceipt
from ...protocol.crypto.keys import recover_public_key
from ...protocol.crypto.addresses import address_from_pubkey, is_null_address, DEFAULT_PREFIX
from ...protocol.crypto.typed_data import domain_separator, delegation_digest
from ...protocol.config.params import NetworkConfig

logger = logging.getLogger(__name__)


class SignatureVerifier(Protocol):
    def recover(self, digest: bytes, signature: bytes) -> Optional[str]:
        """Returns the signing account, or None if no account can be recovered."""
        ...


class Secp256k1Verifier:
    """Recovers the signer from a 65-byte secp256k1 signature."""

    def __init__(self, prefix: str = DEFAULT_PREFIX):
        self.prefix = prefix

    def recover(self, digest: bytes, signature: bytes) -> Optional[str]:
        pub = recover_public_key(digest, signature)
        if pub is None:
            return None
        return address_from_pubkey(pub, prefix=self.prefix)


class DelegationAuthorization:
    def __init__(self, votes: VoteLedger, clock: BlockClock, config: NetworkConfig,
                 verifier: Optional[SignatureVerifier] = None, bus: Optional[EventBus] = None,
                 sequences: Dict[str, int] = None):
        self.votes = votes
        self.clock = clock
        self.config = config
        self.verifier = verifier or Secp256k1Verifier(config.bech32_prefix_acc)
        self.bus = bus
        # account -> next expected sequence number
        self._sequences: Dict[str, int] = sequences if sequences is not None else {}
        self.domain_separator = domain_separator(config.domain_name, config.chain_id, config.ledger_address)

    def sequence_of(self, account: str) -> int:
        return self._sequences.get(account, 0)

    def sequences(self) -> Dict[str, int]:
        return dict(self._sequences)

    def digest_for(self, delegatee: str, sequence_number: int, expiry: int) -> bytes:
        return delegation_digest(self.domain_separator, delegatee, sequence_number, expiry)

    def delegate(self, requester: str, delegatee: Optional[str]) -> DelegationReceipt:
        if is_null_address(delegatee):
            delegatee = requester
        return self._apply(requester, delegatee, DelegationKind.DIRECT)

    def delegate_by_signature(self, delegatee: str, sequence_number: int, expiry: int,
                              signature: bytes) -> DelegationReceipt:
        signatory = None
        try:
            # Both are uint256 words in the signed digest
            if not 0 <= sequence_number < 2**256:
                raise InvalidSequenceError(f"delegate_by_signature: invalid nonce {sequence_number}")
            if expiry < 0:
                raise ExpiredAuthorizationError(
                    f"delegate_by_signature: signature expired at {expiry} (now {self.clock.timestamp})"
                )

            digest = self.digest_for(delegatee, sequence_number, expiry)
            signatory = self.verifier.recover(digest, signature)
            if is_null_address(signatory):
                raise InvalidSignatureError("delegate_by_signature: invalid signature")
            expected = self.sequence_of(signatory)
            if sequence_number != expected:
                raise InvalidSequenceError(
                    f"delegate_by_signature: invalid nonce {sequence_number} for {signatory} (expected {expected})"
                )
            if self.clock.timestamp > expiry:
                raise ExpiredAuthorizationError(
                    f"delegate_by_signature: signature expired at {expiry} (now {self.clock.timestamp})"
                )
        except AuthorizationError as e:
            logger.warning(f"Rejected signed delegation to {delegatee}: {e}")
            if self.bus:
                self.bus.emit(EventType.AUTHORIZATION_REJECTED.value, reason=e.reason, signatory=signatory)
            raise

        # Apply first; the sequence number is only consumed if the delegation lands
        receipt = self._apply(signatory, delegatee, DelegationKind.SIGNED, nonce=sequence_number)
        self._sequences[signatory] = expected + 1
        logger.info(f"Accepted signed delegation from {signatory} (nonce {sequence_number}) to {delegatee}")
        return receipt

    def _apply(self, delegator: str, delegatee: str, kind: DelegationKind,
               nonce: Optional[int] = None) -> DelegationReceipt:
        previous, current, amount = self.votes.on_delegate_change(delegator, delegatee)
        receipt = DelegationReceipt(
            delegator=delegator,
            from_delegate=previous,
            to_delegate=current,
            amount=amount,
            kind=kind,
            time_index=self.clock.height,
            nonce=nonce,
        )
        if self.bus:
            self.bus.emit(EventType.DELEGATION_AUTHORIZED.value, receipt=receipt)
        return receipt
