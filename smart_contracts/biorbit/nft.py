"""
Non-fungible token ledger capability.

Keeps ERC-721 shaped bookkeeping in Box storage: owner, metadata URI and
single-token approval per token id, a balance per holder and an operator flag
per (owner, operator) pair. Token ids are chosen by the caller of ``mint``.

Box namespaces:
    owner_<id>                  → Account
    uri_<id>                    → arc4.String
    approved_<id>               → Account
    balance_<address>           → UInt64
    operator_<owner><operator>  → arc4.Bool
"""

from algopy import Account, BoxMap, Bytes, Global, Txn, UInt64, arc4, subroutine

from smart_contracts.biorbit.structs import Approval, ApprovalForAll, Transfer


@subroutine
def exists(token_id: UInt64) -> bool:
    owners = BoxMap(UInt64, Account, key_prefix=b"owner_")
    return token_id in owners


@subroutine
def owner_of(token_id: UInt64) -> Account:
    owners = BoxMap(UInt64, Account, key_prefix=b"owner_")
    assert token_id in owners, "unknown token"
    return owners[token_id]


@subroutine
def balance_of(owner: Account) -> UInt64:
    balances = BoxMap(Account, UInt64, key_prefix=b"balance_")
    return balances.get(owner, default=UInt64(0))


@subroutine
def token_uri(token_id: UInt64) -> arc4.String:
    uris = BoxMap(UInt64, arc4.String, key_prefix=b"uri_")
    assert token_id in uris, "unknown token"
    return uris[token_id]


@subroutine
def get_approved(token_id: UInt64) -> Account:
    assert exists(token_id), "unknown token"
    approvals = BoxMap(UInt64, Account, key_prefix=b"approved_")
    return approvals.get(token_id, default=Global.zero_address)


@subroutine
def is_approved_for_all(owner: Account, operator: Account) -> bool:
    operators = BoxMap(Bytes, arc4.Bool, key_prefix=b"operator_")
    return owner.bytes + operator.bytes in operators


@subroutine
def is_approved_or_owner(spender: Account, token_id: UInt64) -> bool:
    owner = owner_of(token_id)
    return (
        spender == owner
        or get_approved(token_id) == spender
        or is_approved_for_all(owner, spender)
    )


@subroutine
def _adjust_balance(holder: Account, increase: bool) -> None:
    balances = BoxMap(Account, UInt64, key_prefix=b"balance_")
    current = balances.get(holder, default=UInt64(0))
    if increase:
        balances[holder] = current + 1
    elif current == 1:
        del balances[holder]
    else:
        balances[holder] = current - 1


@subroutine
def mint(to: Account, token_id: UInt64, uri: arc4.String) -> None:
    assert to != Global.zero_address, "mint to the zero address"
    assert not exists(token_id), "token already minted"

    owners = BoxMap(UInt64, Account, key_prefix=b"owner_")
    uris = BoxMap(UInt64, arc4.String, key_prefix=b"uri_")
    owners[token_id] = to
    uris[token_id] = uri
    _adjust_balance(to, True)

    arc4.emit(
        Transfer(
            sender=arc4.Address(Global.zero_address),
            receiver=arc4.Address(to),
            token_id=arc4.UInt64(token_id),
        )
    )


@subroutine
def transfer(sender: Account, receiver: Account, token_id: UInt64) -> None:
    """Move ``token_id`` from ``sender`` to ``receiver`` without an approval check."""
    assert owner_of(token_id) == sender, "transfer from incorrect owner"
    assert receiver != Global.zero_address, "transfer to the zero address"

    approvals = BoxMap(UInt64, Account, key_prefix=b"approved_")
    if token_id in approvals:
        del approvals[token_id]

    _adjust_balance(sender, False)
    _adjust_balance(receiver, True)
    owners = BoxMap(UInt64, Account, key_prefix=b"owner_")
    owners[token_id] = receiver

    arc4.emit(
        Transfer(
            sender=arc4.Address(sender),
            receiver=arc4.Address(receiver),
            token_id=arc4.UInt64(token_id),
        )
    )


@subroutine
def transfer_from(sender: Account, receiver: Account, token_id: UInt64) -> None:
    assert is_approved_or_owner(Txn.sender, token_id), "not owner nor approved"
    transfer(sender, receiver, token_id)


@subroutine
def approve(approved: Account, token_id: UInt64) -> None:
    owner = owner_of(token_id)
    assert approved != owner, "approval to current owner"
    assert Txn.sender == owner or is_approved_for_all(owner, Txn.sender), (
        "not owner nor approved for all"
    )

    approvals = BoxMap(UInt64, Account, key_prefix=b"approved_")
    approvals[token_id] = approved
    arc4.emit(
        Approval(
            owner=arc4.Address(owner),
            approved=arc4.Address(approved),
            token_id=arc4.UInt64(token_id),
        )
    )


@subroutine
def set_approval_for_all(operator: Account, approved: bool) -> None:
    assert operator != Txn.sender, "approve to caller"

    operators = BoxMap(Bytes, arc4.Bool, key_prefix=b"operator_")
    key = Txn.sender.bytes + operator.bytes
    if approved:
        operators[key] = arc4.Bool(True)
    elif key in operators:
        del operators[key]

    arc4.emit(
        ApprovalForAll(
            owner=arc4.Address(Txn.sender),
            operator=arc4.Address(operator),
            approved=arc4.Bool(approved),
        )
    )
