"""
Error types raised by the port-forwarding manager
"""

from typing import List, Optional


class PortForwardError(Exception):
    """Base class for all errors raised by nftforward"""


class EnvironmentCheckError(PortForwardError):
    """Startup requirement not met (privileges, firewall engine, lock)"""


class InvalidIntentError(PortForwardError):
    """A forwarding intent field failed validation"""

    def __init__(self, field: str, value):
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field}: {value!r}")


class CommandError(PortForwardError):
    """An external command failed or could not be started"""

    def __init__(self, cmd: List[str], returncode: int, stderr: str = ""):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = (stderr or "").strip()
        message = f"Command failed ({returncode}): {' '.join(self.cmd)}"
        if self.stderr:
            message += f": {self.stderr}"
        super().__init__(message)


class RuleInstallError(PortForwardError):
    """Installing the rule-set of a forwarding intent failed"""

    def __init__(self, applied: List, cause: Optional[Exception] = None):
        self.applied = list(applied)
        self.cause = cause
        super().__init__(f"Rule installation failed ({len(self.applied)} rules applied): {cause}")


class PersistenceError(PortForwardError):
    """Writing the persisted ruleset, its backup or the sysctl file failed"""
