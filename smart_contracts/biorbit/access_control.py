"""
Role membership capability.

Members are stored one box per (role, account) pair under
``role_<role><32-byte address>``; the box exists exactly while the account
holds the role. ``DEFAULT_ADMIN_ROLE`` administers every role.
"""

from algopy import Account, BoxMap, Bytes, Txn, arc4, subroutine

from smart_contracts.biorbit.structs import RoleGranted, RoleRevoked

DEFAULT_ADMIN_ROLE = b"DEFAULT_ADMIN_ROLE"
ADMIN_ROLE = b"ADMIN_ROLE"


@subroutine
def has_role(role: Bytes, account: Account) -> bool:
    members = BoxMap(Bytes, arc4.Bool, key_prefix=b"role_")
    return role + account.bytes in members


@subroutine
def check_role(role: Bytes, account: Account) -> None:
    assert has_role(role, account), "missing role"


@subroutine
def grant_role(role: Bytes, account: Account) -> None:
    if has_role(role, account):
        return
    members = BoxMap(Bytes, arc4.Bool, key_prefix=b"role_")
    members[role + account.bytes] = arc4.Bool(True)
    arc4.emit(
        RoleGranted(
            role=arc4.DynamicBytes(role),
            account=arc4.Address(account),
            sender=arc4.Address(Txn.sender),
        )
    )


@subroutine
def revoke_role(role: Bytes, account: Account) -> None:
    if not has_role(role, account):
        return
    members = BoxMap(Bytes, arc4.Bool, key_prefix=b"role_")
    del members[role + account.bytes]
    arc4.emit(
        RoleRevoked(
            role=arc4.DynamicBytes(role),
            account=arc4.Address(account),
            sender=arc4.Address(Txn.sender),
        )
    )
