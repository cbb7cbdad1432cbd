"""
Interactive menu driving the port-forward manager
"""

import logging
import sys
from typing import Callable, Optional

from .console import heading, prompt_until_valid
from .exceptions import PortForwardError
from .models import AddressFamily, ForwardingIntent
from .validators import validate_address, validate_port


MENU_TITLE = "=== nftables port forwarding manager ==="
MENU_OPTIONS = [
    ("1", "Add IPv4 port forward"),
    ("2", "Add IPv6 port forward"),
    ("3", "Clear all forwarding rules"),
    ("4", "Show current rules"),
    ("0", "Exit"),
]


class CommandDispatcher:
    """
    Menu state machine: every option runs to completion and returns to
    the idle menu, except exit. Input comes from read(prompt) so the
    loop can be driven by scripted answers.
    """

    def __init__(self, manager, read: Callable[[str], str] = input, out=None, color: Optional[bool] = None):
        self.manager = manager
        self.read = read
        self.out = out or sys.stdout
        self.color = color if color is not None else (hasattr(self.out, 'isatty') and self.out.isatty())
        self.logger = logging.getLogger(__name__)

        self.actions = {
            "1": lambda: self.add_forward(AddressFamily.IPV4),
            "2": lambda: self.add_forward(AddressFamily.IPV6),
            "3": self.clear_all,
            "4": self.show_rules,
        }

    def _print(self, text: str = "") -> None:
        self.out.write(f"{text}\n")

    def print_menu(self) -> None:
        self._print()
        self._print(heading(MENU_TITLE, self.color))
        for key, label in MENU_OPTIONS:
            self._print(f"{key}. {label}")
        self._print(heading("=" * len(MENU_TITLE), self.color))

    def run(self) -> int:
        """Loop until exit is chosen or input ends; returns the exit code"""
        while True:
            self.print_menu()
            try:
                choice = self.read("Choose an option [0-4]: ").strip()
            except EOFError:
                self._print()
                self.logger.info("Input closed, exiting")
                return 0
            if not self.dispatch(choice):
                return 0

    def dispatch(self, choice: str) -> bool:
        """Run one menu option; returns False when the session should end"""
        if choice == "0":
            self.logger.info("Exiting")
            return False

        action = self.actions.get(choice)
        if action is None:
            self.logger.error("Invalid option, please try again")
            return True

        try:
            action()
        except EOFError:
            self._print()
            self.logger.warning("Input closed, operation cancelled")
            return False
        except PortForwardError as e:
            self.logger.error(str(e))
        return True

    def prompt_intent(self, family: AddressFamily) -> ForwardingIntent:
        local_port = prompt_until_valid(
            self.read,
            "Local listening port [1-65535]: ",
            validate_port,
            "Invalid port number, please try again",
        )
        remote_address = prompt_until_valid(
            self.read,
            f"Remote {family.label} address: ",
            lambda value: validate_address(family, value, strict=self.manager.strict),
            f"Invalid {family.label} address, please try again",
        )
        remote_port = prompt_until_valid(
            self.read,
            f"Remote port [Enter for {local_port}]: ",
            validate_port,
            "Invalid port number, please try again",
            default=local_port,
        )
        return ForwardingIntent(
            family=family,
            local_port=int(local_port),
            remote_address=remote_address,
            remote_port=int(remote_port),
        )

    def add_forward(self, family: AddressFamily) -> None:
        intent = self.prompt_intent(family)
        self.manager.add_forward(intent)
        self.show_rules()

    def clear_all(self) -> None:
        self.logger.warning("This removes every forwarding rule created by this tool (IPv4 and IPv6)!")
        answer = self.read("Really clear? [y/N]: ").strip()
        if answer not in ("y", "Y"):
            self.logger.info("Clear cancelled")
            return
        self.manager.clear_all()

    def show_rules(self) -> None:
        self._print()
        self._print(heading("=== Current nftables ruleset ===", self.color))
        self.out.write(self.manager.ruleset())
        forwards = self.manager.forwards()
        total = sum(len(rules) for rules in forwards.values())
        self._print(heading(f"--- Managed forwarding rules: {total} ---", self.color))
        for chain, rules in forwards.items():
            for rule in rules:
                self._print(f"  {chain}: {rule}")
        self._print(heading("=" * 32, self.color))
        self._print()
