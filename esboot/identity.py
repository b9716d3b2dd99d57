"""
Process identity and target service account.
"""
import grp
import os
import pwd
from dataclasses import dataclass

from esboot.errors import AccountNotFoundError


PRIVILEGED_UID = 0


@dataclass(frozen=True)
class ContainerIdentity:
    """Effective identity the bootstrap is running under."""
    euid: int
    egid: int

    @property
    def is_privileged(self) -> bool:
        return self.euid == PRIVILEGED_UID

    @classmethod
    def current(cls) -> 'ContainerIdentity':
        """Read the effective identity of this process."""
        return cls(euid=os.geteuid(), egid=os.getegid())


@dataclass(frozen=True)
class TargetAccount:
    """Unprivileged user/group pair the service runs as."""
    user: str
    group: str
    uid: int
    gid: int
    home: str = "/"
    shell: str = "/bin/sh"

    def owns(self, uid: int, gid: int) -> bool:
        """Check whether a uid/gid pair already matches this account."""
        return uid == self.uid and gid == self.gid


def resolve_account(user: str, group: str) -> TargetAccount:
    """
    Look up the service account in the system account databases.

    Args:
        user: User name (e.g. 'elasticsearch')
        group: Group name (e.g. 'elasticsearch')

    Returns:
        TargetAccount with numeric ids

    Raises:
        AccountNotFoundError: If the user or group does not exist
    """
    try:
        pw = pwd.getpwnam(user)
    except KeyError:
        raise AccountNotFoundError("user", user) from None

    try:
        gr = grp.getgrnam(group)
    except KeyError:
        raise AccountNotFoundError("group", group) from None

    return TargetAccount(
        user=user,
        group=group,
        uid=pw.pw_uid,
        gid=gr.gr_gid,
        home=pw.pw_dir or "/",
        shell=pw.pw_shell or "/bin/sh",
    )
