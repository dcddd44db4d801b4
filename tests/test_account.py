"""Unit tests for the account approval state machine."""

import pytest

from attendance_intel.account import Account, AccountState, AccountStateError, require_active


def test_unapproved_sign_in_waits_for_approval():
    account = Account(user_id='u1').sign_in(approved=False)
    assert account.state == AccountState.PENDING_APPROVAL
    assert not account.is_active

    account = account.approve()
    assert account.state == AccountState.ACTIVE
    assert require_active(account) is account


def test_approved_sign_in_is_active():
    account = Account(user_id='u1').sign_in(approved=True)
    assert account.is_active


def test_sign_out_returns_to_unauthenticated():
    for approved in (True, False):
        account = Account(user_id='u1').sign_in(approved=approved).sign_out()
        assert account.state == AccountState.UNAUTHENTICATED


def test_transitions_return_new_accounts():
    original = Account(user_id='u1')
    original.sign_in(approved=True)
    assert original.state == AccountState.UNAUTHENTICATED


def test_illegal_transitions():
    with pytest.raises(AccountStateError):
        Account(user_id='u1').approve()
    with pytest.raises(AccountStateError):
        Account(user_id='u1').sign_out()
    with pytest.raises(AccountStateError):
        Account(user_id='u1', state=AccountState.ACTIVE).approve()
    with pytest.raises(AccountStateError):
        Account(user_id='u1', state=AccountState.PENDING_APPROVAL).sign_in(approved=True)


def test_require_active_rejects_other_states():
    for state in (AccountState.UNAUTHENTICATED, AccountState.PENDING_APPROVAL):
        with pytest.raises(AccountStateError):
            require_active(Account(user_id='u1', state=state))
