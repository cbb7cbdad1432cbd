"""
Input validation for ports and addresses

The default checks are syntactic only: an IPv4 literal is four groups of
1-3 digits (999.999.999.999 passes) and an IPv6 literal is 2-8 colon
separated groups of 0-4 hex digits. strict=True additionally requires a
real address as understood by the ipaddress module.
"""

import ipaddress
import re

from .models import AddressFamily


PORT_RE = re.compile(r'[0-9]+')
IPV4_RE = re.compile(r'([0-9]{1,3}\.){3}[0-9]{1,3}')
IPV6_RE = re.compile(r'([0-9a-fA-F]{0,4}:){2,7}[0-9a-fA-F]{0,4}')

MIN_PORT = 1
MAX_PORT = 65535


def validate_port(value) -> bool:
    """True iff value is a base-10 integer literal in [1, 65535]"""
    if isinstance(value, bool):
        return False
    text = str(value)
    if not PORT_RE.fullmatch(text):
        return False
    return MIN_PORT <= int(text) <= MAX_PORT


def validate_address(family: AddressFamily, value: str, strict: bool = False) -> bool:
    """Check the textual form of an address for the given family"""
    if not isinstance(value, str):
        return False

    if family is AddressFamily.IPV4:
        if not IPV4_RE.fullmatch(value):
            return False
        if strict:
            return _is_address(ipaddress.IPv4Address, value)
        return True

    if family is AddressFamily.IPV6:
        if not IPV6_RE.fullmatch(value):
            return False
        if strict:
            return _is_address(ipaddress.IPv6Address, value)
        return True

    return False


def _is_address(address_type, value: str) -> bool:
    try:
        address_type(value)
    except ValueError:
        return False
    return True
