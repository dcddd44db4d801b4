"""Account approval states and the gate callers check before using the engine."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class AccountStateError(Exception):
    """Raised on an illegal transition or when the account gate is closed."""


class AccountState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    PENDING_APPROVAL = "pending_approval"
    ACTIVE = "active"


class Account(BaseModel):
    """
    An account's position in the approval flow.

    unauthenticated -> pending_approval -> active, with sign-out from any
    signed-in state. Approval is an admin action and only applies to a
    pending account. Transitions return a new Account.
    """
    model_config = ConfigDict(frozen=True)

    user_id: str
    state: AccountState = AccountState.UNAUTHENTICATED

    def sign_in(self, approved: bool) -> "Account":
        if self.state != AccountState.UNAUTHENTICATED:
            raise AccountStateError(f"Cannot sign in from state '{self.state.value}'")
        target = AccountState.ACTIVE if approved else AccountState.PENDING_APPROVAL
        return self.model_copy(update={'state': target})

    def approve(self) -> "Account":
        if self.state != AccountState.PENDING_APPROVAL:
            raise AccountStateError(f"Cannot approve an account in state '{self.state.value}'")
        return self.model_copy(update={'state': AccountState.ACTIVE})

    def sign_out(self) -> "Account":
        if self.state == AccountState.UNAUTHENTICATED:
            raise AccountStateError("Account is not signed in")
        return self.model_copy(update={'state': AccountState.UNAUTHENTICATED})

    @property
    def is_active(self) -> bool:
        return self.state == AccountState.ACTIVE


def require_active(account: Account) -> Account:
    """Return the account if it may use the engine, otherwise raise."""
    if not account.is_active:
        raise AccountStateError(
            f"Account {account.user_id!r} is {account.state.value}; engine access requires an active account"
        )
    return account
