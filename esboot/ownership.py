"""
Recursive ownership repair for the index data volume.

Bind mounts keep the host's uid/gid, so the data directory is handed to the
service account before the search engine starts. A symlinked data
directory is resolved first; below it the walk never follows symlinks and
stops at the first failure, with no partial success.
"""
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, List, Tuple

from esboot.errors import OwnershipRepairError
from esboot.identity import TargetAccount


logger = logging.getLogger(__name__)


@dataclass
class RepairReport:
    """Outcome of a repair pass."""
    root: Path
    visited: int = 0
    changed: int = 0  # entries whose owner differed before the pass


def _raise(error: OSError):
    raise error


def walk_entries(root: Path) -> Iterator[Path]:
    """
    Yield root and every entry beneath it, parents before children.

    Symlinked directories are yielded but not descended into. Listing
    errors are raised, never skipped.
    """
    root = Path(root)
    yield root
    for dirpath, dirnames, filenames in os.walk(root, topdown=True, onerror=_raise, followlinks=False):
        parent = Path(dirpath)
        for name in sorted(dirnames) + sorted(filenames):
            yield parent / name


class OwnershipRepairer:
    """Applies a target account's ownership to a directory tree."""

    def __init__(
        self,
        account: TargetAccount,
        chown: Callable[[str, int, int], None] = os.lchown,
        stat: Callable[[str], os.stat_result] = os.lstat,
    ):
        """
        Initialize repairer.

        Args:
            account: Account that must own every entry
            chown: Ownership syscall (lchown so links are not followed)
            stat: Metadata syscall (lstat for the same reason)
        """
        self.account = account
        self._chown = chown
        self._stat = stat

    def _apply(self, path: Path, report: RepairReport):
        try:
            st = self._stat(str(path))
            differs = not self.account.owns(st.st_uid, st.st_gid)
            # Always issue the call, like chown -R: a read-only mount fails here
            # even when the owner already matches.
            self._chown(str(path), self.account.uid, self.account.gid)
        except OSError as e:
            raise OwnershipRepairError(path, e) from e

        report.visited += 1
        if differs:
            report.changed += 1
            logger.debug(f"chown {self.account.uid}:{self.account.gid} {path}")

    def repair(self, root: Path) -> RepairReport:
        """
        Set ownership of root and everything beneath it.

        Idempotent: a second pass leaves the tree as the first one did.

        Raises:
            OwnershipRepairError: On the first entry that cannot be re-owned
                or a directory that cannot be listed
        """
        # Symlinked root: re-own the target, as chown -R does for its argument
        root = Path(root).resolve()
        report = RepairReport(root=root)

        try:
            for path in walk_entries(root):
                self._apply(path, report)
        except OwnershipRepairError:
            raise
        except OSError as e:
            raise OwnershipRepairError(Path(e.filename or root), e) from e

        logger.info(
            f"Ownership of {root} set to {self.account.user}:{self.account.group} "
            f"({report.changed} of {report.visited} entries changed)"
        )
        return report


def find_mismatched(
    root: Path,
    account: TargetAccount,
    stat: Callable[[str], os.stat_result] = os.lstat,
) -> List[Tuple[Path, int, int]]:
    """
    List entries under root not owned by account. Read-only.

    Returns:
        List of (path, uid, gid) for every mismatched entry

    Raises:
        OSError: If root or a directory beneath it cannot be read
    """
    mismatched = []
    for path in walk_entries(Path(root).resolve()):
        st = stat(str(path))
        if not account.owns(st.st_uid, st.st_gid):
            mismatched.append((path, st.st_uid, st.st_gid))
    return mismatched
