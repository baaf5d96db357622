# MIT License
# Copyright (c) 2025 Hashborn

from typing import Dict, Optional
import logging
from .events import EventBus
from ...protocol.types.common import EventType
from ...protocol.types.delegation import DelegateChanged
from ...protocol.crypto.addresses import is_null_address

logger = logging.getLogger(__name__)


class DelegationGraph:
    """Who currently represents whom. An account without an entry represents itself."""

    def __init__(self, bus: Optional[EventBus] = None, delegates: Dict[str, str] = None):
        self.bus = bus
        self._delegates: Dict[str, str] = delegates if delegates is not None else {}

    def delegate_of(self, account: str) -> str:
        return self._delegates.get(account, account)

    def explicit_delegations(self) -> Dict[str, str]:
        """Only the accounts that delegate to someone other than themselves."""
        return dict(self._delegates)

    def set_delegate(self, account: str, new_delegate: Optional[str]) -> str:
        """
        Points account at new_delegate and returns the previous delegate.
        Delegating to the null identity means delegating to self.
        """
        if is_null_address(new_delegate):
            new_delegate = account

        previous = self.delegate_of(account)
        if new_delegate == account:
            self._delegates.pop(account, None)
        else:
            self._delegates[account] = new_delegate

        if self.bus:
            self.bus.emit(
                EventType.DELEGATE_CHANGED.value,
                event=DelegateChanged(delegator=account, from_delegate=previous, to_delegate=new_delegate),
            )
        return previous
