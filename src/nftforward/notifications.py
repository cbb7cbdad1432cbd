"""
Discord notifications for forwarding changes
"""

import logging
import socket
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List

import requests

from .models import ForwardingRule


class AlertLevel(Enum):
    """Alert severity levels"""
    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"


class DiscordNotifier:
    """Send notifications to Discord via webhooks"""

    def __init__(self, config):
        self.config = config
        self.logger = logging.getLogger(__name__)

        self.enabled = self.config.get('notifications.discord.enabled', False)
        self.webhook_url = self.config.get('notifications.discord.webhook_url', '')
        self.username = self.config.get('notifications.discord.username', 'nft-forward')

    def _get_color(self, level: AlertLevel) -> int:
        """Get Discord embed color based on alert level"""
        colors = {
            AlertLevel.INFO: 0x3498db,
            AlertLevel.WARNING: 0xf39c12,
            AlertLevel.SUCCESS: 0x2ecc71,
        }
        return colors.get(level, 0x95a5a6)

    def _embed(self, title: str, description: str, level: AlertLevel, fields: List[Dict] = None) -> Dict:
        return {
            "title": title,
            "description": description,
            "color": self._get_color(level),
            "fields": fields or [],
            "footer": {"text": f"nft-forward on {socket.gethostname()}"},
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    def _send_webhook(self, embed: Dict) -> bool:
        """Send message to Discord webhook"""
        if not self.enabled or not self.webhook_url:
            return False

        payload = {"username": self.username, "embeds": [embed]}
        try:
            response = requests.post(self.webhook_url, json=payload, timeout=10)
        except requests.RequestException as e:
            self.logger.warning(f"Error sending Discord notification: {e}")
            return False

        if response.status_code in (200, 204):
            self.logger.debug("Discord notification sent successfully")
            return True

        self.logger.warning(f"Discord webhook failed: {response.status_code} - {response.text}")
        return False

    def notify_forward_added(self, rules: List[ForwardingRule]) -> bool:
        if not rules:
            return False
        first = rules[0]
        fields = [
            {"name": "Local port", "value": str(first.local_port), "inline": True},
            {"name": "Destination", "value": f"`{first.destination}`", "inline": True},
            {"name": "Rules", "value": "\n".join(f"`{rule.describe()}`" for rule in rules), "inline": False},
        ]
        embed = self._embed(
            f"{first.address_family.label} port forward added",
            f"Port {first.local_port} now forwards to {first.destination} (TCP and UDP).",
            AlertLevel.SUCCESS,
            fields,
        )
        return self._send_webhook(embed)

    def notify_rules_cleared(self, table: str) -> bool:
        embed = self._embed(
            "Port forwards cleared",
            f"Table `{table}` and all of its forwarding rules were deleted.",
            AlertLevel.WARNING,
        )
        return self._send_webhook(embed)

    def notify_ruleset_restored(self, backup_path: str) -> bool:
        embed = self._embed(
            "Ruleset restored",
            f"The live ruleset was replaced with `{backup_path}`.",
            AlertLevel.INFO,
        )
        return self._send_webhook(embed)
