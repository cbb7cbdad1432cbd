"""
Interactive nftables port-forwarding manager
"""

__version__ = "1.0.0"
