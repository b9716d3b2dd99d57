#!/usr/bin/env python3
"""
esbootctl - operator CLI for the search container bootstrap

Shows what the entrypoint would do and checks data volume ownership. Can
also run the ownership repair on its own, without the handoff.
"""
import argparse
import sys
from pathlib import Path
from typing import Optional

from esboot.bootstrapper import Branch, select_branch
from esboot.config import BootstrapConfig, load_config
from esboot.errors import AccountNotFoundError, ConfigError, OwnershipRepairError
from esboot.handoff import Delegate
from esboot.identity import ContainerIdentity, resolve_account
from esboot.ownership import OwnershipRepairer, find_mismatched


class BootstrapCLI:
    """Operator commands against a loaded configuration."""

    def __init__(self, config: BootstrapConfig, identity: Optional[ContainerIdentity] = None):
        self.config = config
        self.identity = identity or ContainerIdentity.current()

    def plan(self) -> int:
        """Show configuration and the branch this identity would take."""
        delegate = Delegate.from_config(self.config)
        branch = select_branch(self.identity)

        print("Bootstrap Plan")
        print("=" * 50)
        print(f"Identity:  uid={self.identity.euid} gid={self.identity.egid}")
        print(f"Branch:    {branch.value}")
        print(f"Data dir:  {self.config.data_dir}")
        print(f"Account:   {self.config.user}:{self.config.group}")
        print(f"Delegate:  {' '.join(delegate.argv)}")

        if branch is Branch.REPAIR_AND_HANDOFF:
            print(f"\nWill chown -R {self.config.user}:{self.config.group} {self.config.data_dir}, "
                  f"then exec as {self.config.user}")
        else:
            print("\nWill exec directly (no ownership changes)")
        return 0

    def audit(self, data_dir: Path) -> int:
        """List entries not owned by the target account."""
        try:
            account = resolve_account(self.config.user, self.config.group)
        except AccountNotFoundError as e:
            print(f"❌ {e}", file=sys.stderr)
            return 2

        try:
            mismatched = find_mismatched(data_dir, account)
        except OSError as e:
            print(f"❌ Cannot read {data_dir}: {e}", file=sys.stderr)
            return 2

        if not mismatched:
            print(f"✅ Every entry under {data_dir} is owned by {account.user}:{account.group}")
            return 0

        print(f"Entries not owned by {account.user}:{account.group} ({len(mismatched)})")
        print("=" * 80)
        for path, uid, gid in mismatched:
            print(f"  {uid}:{gid}  {path}")
        return 1

    def repair(self, data_dir: Path) -> int:
        """Run the ownership repair only."""
        if not self.identity.is_privileged:
            print("❌ repair requires root", file=sys.stderr)
            return 2

        try:
            account = resolve_account(self.config.user, self.config.group)
        except AccountNotFoundError as e:
            print(f"❌ {e}", file=sys.stderr)
            return 2

        try:
            report = OwnershipRepairer(account).repair(data_dir)
        except OwnershipRepairError as e:
            print(f"❌ {e}", file=sys.stderr)
            return 1

        print(f"✅ {report.changed} of {report.visited} entries changed under {data_dir}")
        return 0


def main(argv=None):
    """Run esbootctl."""
    parser = argparse.ArgumentParser(
        prog="esbootctl",
        description="Search container bootstrap operator CLI"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML config file (default: $ESBOOT_CONFIG or /etc/esboot/bootstrap.yaml)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("plan", help="Show what the entrypoint would do")

    audit_parser = subparsers.add_parser("audit", help="List entries with wrong ownership")
    audit_parser.add_argument("--data-dir", type=Path, help="Override configured data directory")

    repair_parser = subparsers.add_parser("repair", help="Repair ownership without handing off")
    repair_parser.add_argument("--data-dir", type=Path, help="Override configured data directory")

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"❌ Error loading config: {e}", file=sys.stderr)
        sys.exit(2)

    cli = BootstrapCLI(config)

    if args.command == "plan":
        sys.exit(cli.plan())
    elif args.command == "audit":
        sys.exit(cli.audit(args.data_dir or config.data_dir))
    elif args.command == "repair":
        sys.exit(cli.repair(args.data_dir or config.data_dir))


if __name__ == "__main__":
    main()
