import os
import logging
import requests

from .observation import Observation

logger = logging.getLogger(__name__)


class SlackNotifier:
    """This class is used to send pool alerts to a Slack channel."""

    def __init__(self, webhook_url: str = None):
        """
        Initializes the SlackNotifier with a webhook URL.

        Params:
            webhook_url: The Slack webhook URL

        Raises:
            ValueError: If the Slack webhook URL is not provided
        """
        self.webhook_url = webhook_url or os.getenv("SLACK_WEBHOOK_URL")
        if not self.webhook_url:
            raise ValueError("Slack webhook URL not provided")

    def send_notification(self, message: str) -> bool:
        """Send a notification to Slack.

        Params:
            message: The formatted message to send

        Returns:
            bool: True if the message was sent successfully
        """
        try:
            response = requests.post(
                self.webhook_url, json={"text": message}, timeout=10
            )
            response.raise_for_status()
            logger.info("Successfully sent Slack notification")
            return True

        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to send Slack notification: {str(e)}")
            return False

    def format_kicked_out_message(self, pool_id: str, observation: Observation) -> str:
        """Format a kick-out alert for the pool.

        Params:
            pool_id: The pool account id
            observation: The observation that reported the kick-out

        Returns:
            str: Formatted message ready to send to Slack
        """
        message_parts = [
            "🚨 *Pool Kicked Out*",
            f"*Pool:* `{pool_id}`",
            f"*Epoch start:* `{observation.epoch_start_height}`",
            f"*Block:* `{observation.latest_block_height}`",
            f"*Current stake:* `{observation.current_stake}`",
            f"*Next stake:* `{observation.next_stake}`",
        ]
        return "\n".join(message_parts)

    def format_rpc_failure_message(self, pool_id: str, observation: Observation) -> str:
        return "\n".join(
            [
                "⚠️ *Node RPC Unavailable*",
                f"*Pool:* `{pool_id}`",
                f"*Error:* `{observation.error}`",
            ]
        )

    def format_recovery_message(self, pool_id: str, observation: Observation) -> str:
        return "\n".join(
            [
                "✅ *Node RPC Recovered*",
                f"*Pool:* `{pool_id}`",
                f"*Block:* `{observation.latest_block_height}`",
            ]
        )
