"""
Command-line interface for the port-forward manager
"""

import argparse
import logging
import sys
from typing import List, Optional

import yaml

from .config import Config, DEFAULT_CONFIG_PATH
from .console import setup_logging
from .dispatcher import CommandDispatcher
from .environment import InstanceLock
from .exceptions import EnvironmentCheckError, InvalidIntentError, PortForwardError
from .manager import PortForwardManager
from .models import AddressFamily, ForwardingIntent
from .validators import validate_port


logger = logging.getLogger(__name__)


class ForwardCLI:
    """Non-interactive commands plus the interactive menu"""

    def __init__(self, manager: PortForwardManager):
        self.manager = manager

    def menu(self):
        """Run the interactive menu"""
        self.manager.ensure_prerequisites()
        return CommandDispatcher(self.manager).run()

    def add(self, family: str, local_port: str, remote: str, remote_port: Optional[str] = None):
        """Add one forward without prompting"""
        intent = parse_intent(family, local_port, remote, remote_port)
        self.manager.ensure_prerequisites()
        rules = self.manager.add_forward(intent)
        print(f"✓ Added {len(rules)} rules: port {intent.local_port} -> {rules[0].destination}")
        return 0

    def clear(self, assume_yes: bool = False):
        """Delete the forwarding table"""
        if not assume_yes:
            try:
                answer = input("Really clear all forwarding rules? [y/N]: ").strip()
            except EOFError:
                print()
                answer = ""
            if answer not in ("y", "Y"):
                print("Clear cancelled")
                return 0
        if self.manager.clear_all():
            print("✓ Forwarding rules cleared")
        else:
            print("Nothing to clear")
        return 0

    def list_rules(self):
        """Print the live ruleset"""
        sys.stdout.write(self.manager.ruleset())
        return 0

    def backups(self):
        """List ruleset backups"""
        backups = self.manager.list_backups()
        if not backups:
            print("No backups found")
            return 0

        print(f"Ruleset backups ({len(backups)}):")
        for path in backups:
            print(f"  - {path}")
        return 0

    def restore(self, backup_path: str):
        """Load a backup into the kernel and persist it"""
        self.manager.restore(backup_path)
        print(f"✓ Restored ruleset from {backup_path}")
        return 0

    def prereqs(self):
        """Enable forwarding and BBR kernel settings"""
        appended = self.manager.ensure_prerequisites()
        if appended:
            print(f"✓ Added {len(appended)} kernel settings")
        else:
            print("Kernel prerequisites already satisfied")
        return 0


def parse_intent(family: str, local_port: str, remote: str,
                 remote_port: Optional[str] = None) -> ForwardingIntent:
    """Turn raw command-line values into an intent, rejecting bad ports"""
    if not validate_port(local_port):
        raise InvalidIntentError('local_port', local_port)
    if remote_port in (None, ''):
        remote_port = local_port
    if not validate_port(remote_port):
        raise InvalidIntentError('remote_port', remote_port)
    return ForwardingIntent(
        family=AddressFamily.parse(family),
        local_port=int(local_port),
        remote_address=remote,
        remote_port=int(remote_port),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='nft-forward',
        description='nftables port forwarding manager (IPv4/IPv6, TCP+UDP)',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  nft-forward                      # interactive menu
  nft-forward add ipv4 8080 10.0.0.5
  nft-forward add ipv6 443 2001:db8::1 8443
  nft-forward clear -y
  nft-forward list
  nft-forward backups
  nft-forward restore /etc/nftables.conf.bak_2026-01-01_12:00:00
        """
    )

    parser.add_argument('-c', '--config', default=DEFAULT_CONFIG_PATH,
                        help='Path to configuration file')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Show debug output, including external commands')

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    subparsers.add_parser('menu', help='Interactive menu (default)')

    add_parser = subparsers.add_parser('add', help='Add a port forward')
    add_parser.add_argument('family', choices=[f.value for f in AddressFamily], help='Address family')
    add_parser.add_argument('local_port', help='Local listening port')
    add_parser.add_argument('remote', help='Remote address')
    add_parser.add_argument('remote_port', nargs='?', default=None,
                            help='Remote port (defaults to the local port)')

    clear_parser = subparsers.add_parser('clear', help='Delete all forwarding rules')
    clear_parser.add_argument('-y', '--yes', action='store_true', help='Do not ask for confirmation')

    subparsers.add_parser('list', help='Show the live ruleset')
    subparsers.add_parser('backups', help='List ruleset backups')

    restore_parser = subparsers.add_parser('restore', help='Restore a ruleset backup')
    restore_parser.add_argument('backup', help='Backup file to restore')

    subparsers.add_parser('prereqs', help='Enable IP forwarding and BBR')

    return parser


def run_command(cli: ForwardCLI, args: argparse.Namespace) -> int:
    command = args.command or 'menu'
    if command == 'menu':
        return cli.menu()
    elif command == 'add':
        return cli.add(args.family, args.local_port, args.remote, args.remote_port)
    elif command == 'clear':
        return cli.clear(args.yes)
    elif command == 'list':
        return cli.list_rules()
    elif command == 'backups':
        return cli.backups()
    elif command == 'restore':
        return cli.restore(args.backup)
    elif command == 'prereqs':
        return cli.prereqs()
    return 1


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = Config(args.config)
    except (yaml.YAMLError, OSError) as e:
        print(f"Error loading config {args.config}: {e}", file=sys.stderr)
        return 1

    setup_logging(config, verbose=args.verbose)
    if not config.loaded_from_file:
        logger.debug(f"No config file at {args.config}, using defaults")
    manager = PortForwardManager.from_config(config)

    try:
        manager.check_environment()
        with InstanceLock(config.get('general.lock_file', '/run/nft-forward.lock')):
            return run_command(ForwardCLI(manager), args)
    except EnvironmentCheckError as e:
        logger.error(str(e))
        return 1
    except PortForwardError as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        print()
        return 130


if __name__ == '__main__':
    sys.exit(main())
