"""
Entrypoint bootstrapper.

Start -> {REPAIR_AND_HANDOFF | DIRECT_HANDOFF} -> replaced by the delegate.

Both branches end in an exec; the only way out of run() is an exception
raised before the handoff.
"""
import logging
from enum import Enum
from typing import Callable, NoReturn, Optional

from esboot.config import BootstrapConfig
from esboot.handoff import Delegate, Launcher
from esboot.identity import ContainerIdentity, TargetAccount, resolve_account
from esboot.ownership import OwnershipRepairer


logger = logging.getLogger(__name__)


class Branch(str, Enum):
    """Startup path chosen from the effective identity."""
    REPAIR_AND_HANDOFF = "repair_and_handoff"
    DIRECT_HANDOFF = "direct_handoff"


def select_branch(identity: ContainerIdentity) -> Branch:
    """
    Choose the startup path. Pure: depends on the effective uid only.

    Examples:
        >>> select_branch(ContainerIdentity(euid=0, egid=0))
        <Branch.REPAIR_AND_HANDOFF: 'repair_and_handoff'>

        >>> select_branch(ContainerIdentity(euid=1000, egid=1000))
        <Branch.DIRECT_HANDOFF: 'direct_handoff'>
    """
    if identity.is_privileged:
        return Branch.REPAIR_AND_HANDOFF
    return Branch.DIRECT_HANDOFF


class Bootstrapper:
    """Prepares the data volume and hands off to the search engine entrypoint."""

    def __init__(
        self,
        config: BootstrapConfig,
        launcher: Optional[Launcher] = None,
        account_resolver: Callable[[str, str], TargetAccount] = resolve_account,
        repairer_factory: Callable[[TargetAccount], OwnershipRepairer] = OwnershipRepairer,
    ):
        """
        Initialize bootstrapper.

        Args:
            config: Data directory, account names and delegate
            launcher: Performs the exec (default: real os.execve)
            account_resolver: Maps user/group names to a TargetAccount
            repairer_factory: Builds the ownership repairer for an account
        """
        self.config = config
        self.delegate = Delegate.from_config(config)
        self.launcher = launcher or Launcher()
        self._resolve_account = account_resolver
        self._repairer_factory = repairer_factory

    def run(self, identity: Optional[ContainerIdentity] = None) -> NoReturn:
        """
        Execute the bootstrap. Never returns normally.

        Args:
            identity: Effective identity (read from the process once if None)

        Raises:
            AccountNotFoundError: Target user/group missing (privileged branch)
            OwnershipRepairError: Data directory could not be re-owned
            DelegateLaunchError: Delegate could not be exec'd
        """
        if identity is None:
            identity = ContainerIdentity.current()

        branch = select_branch(identity)
        logger.info(f"Starting as uid={identity.euid} gid={identity.egid}: {branch.value}")

        if branch is Branch.REPAIR_AND_HANDOFF:
            account = self._resolve_account(self.config.user, self.config.group)
            self._repairer_factory(account).repair(self.config.data_dir)
            self.launcher.launch(self.delegate, account)
        else:
            self.launcher.launch(self.delegate)
