"""
Pool Monitor Service

A service that polls a NEAR node's RPC interface and tracks a staking pool's
block production and stake across epochs.

Components:
- monitor: Polling loop producing one observation per tick
- observation: Observation value and epoch helpers
- rpc: JSON-RPC client for the node
- notification: Slack integration
- config: Environment settings
- service: Metrics, alerting and the main entry point
"""

from .monitor import Monitor, Ticker
from .observation import Observation
from .rpc import NearRpcClient, RpcError
from .notification import SlackNotifier

__version__ = "0.1.0"
__all__ = ["Monitor", "Ticker", "Observation", "NearRpcClient", "RpcError", "SlackNotifier"]
