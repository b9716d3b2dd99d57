"""
Terminal handoff to the delegate executable.

The delegate replaces this process via exec: it keeps the pid, the standard
streams and the signal disposition, and nothing of the bootstrap survives.
"""
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Mapping, NoReturn, Optional, Tuple

from esboot.config import BootstrapConfig
from esboot.errors import DelegateLaunchError
from esboot.identity import TargetAccount


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Delegate:
    """Downstream executable plus its fixed arguments."""
    path: Path
    args: Tuple[str, ...] = ()

    @classmethod
    def from_config(cls, config: BootstrapConfig) -> 'Delegate':
        return cls(path=Path(config.delegate_path), args=tuple(config.delegate_args))

    @property
    def argv(self) -> List[str]:
        return [str(self.path), *self.args]

    def validate(self):
        """
        Check the delegate can be exec'd.

        Raises:
            DelegateLaunchError: If the path is missing, not a file, or not executable
        """
        if not self.path.exists():
            raise DelegateLaunchError(self.path, "no such file")
        if not self.path.is_file():
            raise DelegateLaunchError(self.path, "not a regular file")
        if not os.access(self.path, os.X_OK):
            raise DelegateLaunchError(self.path, "not executable")


def drop_privileges(
    account: TargetAccount,
    initgroups: Callable[[str, int], None] = os.initgroups,
    setgid: Callable[[int], None] = os.setgid,
    setuid: Callable[[int], None] = os.setuid,
):
    """
    Switch the process to account's identity.

    Order matters: supplementary groups and gid can only be changed while
    still root, so uid goes last.

    Raises:
        OSError: If any identity change is refused
    """
    initgroups(account.user, account.gid)
    setgid(account.gid)
    setuid(account.uid)


def _flush_output():
    for name in (None, "esboot"):
        for handler in logging.getLogger(name).handlers:
            handler.flush()
    sys.stdout.flush()
    sys.stderr.flush()


class Launcher:
    """Performs the exec-based handoff."""

    def __init__(
        self,
        execve: Callable[[str, List[str], Dict[str, str]], None] = os.execve,
        initgroups: Callable[[str, int], None] = os.initgroups,
        setgid: Callable[[int], None] = os.setgid,
        setuid: Callable[[int], None] = os.setuid,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self._execve = execve
        self._initgroups = initgroups
        self._setgid = setgid
        self._setuid = setuid
        self.environ = os.environ if environ is None else environ

    def build_environment(self, account: Optional[TargetAccount]) -> Dict[str, str]:
        """Environment for the delegate: inherited, with identity vars reset when switching user."""
        env = dict(self.environ)
        if account is not None:
            env['HOME'] = account.home
            env['USER'] = account.user
            env['LOGNAME'] = account.user
            env['SHELL'] = account.shell
        return env

    def launch(self, delegate: Delegate, account: Optional[TargetAccount] = None) -> NoReturn:
        """
        Replace the current process with the delegate. Never returns.

        Args:
            delegate: Executable and fixed arguments
            account: Identity to switch to first, or None to keep the current one

        Raises:
            DelegateLaunchError: If the delegate is not runnable, the identity
                switch is refused, or exec fails
        """
        delegate.validate()
        env = self.build_environment(account)

        if account is not None:
            try:
                drop_privileges(account, self._initgroups, self._setgid, self._setuid)
            except OSError as e:
                raise DelegateLaunchError(
                    delegate.path,
                    f"cannot switch to {account.user}:{account.group}: {e.strerror or e}"
                ) from e
            logger.info(f"Handing off to {' '.join(delegate.argv)} as {account.user}")
        else:
            logger.info(f"Handing off to {' '.join(delegate.argv)}")

        _flush_output()
        try:
            self._execve(str(delegate.path), delegate.argv, env)
        except OSError as e:
            raise DelegateLaunchError(delegate.path, e.strerror or str(e)) from e

        # Only reachable with a substituted execve
        raise DelegateLaunchError(delegate.path, "exec returned without replacing the process")
