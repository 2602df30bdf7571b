import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)


class RpcError(Exception):
    """Raised when a JSON-RPC call to the node fails."""


class RpcResponseError(RpcError):
    """Raised when the node answers with a payload we cannot read."""


@dataclass(frozen=True)
class StatusResponse:
    chain_id: str
    latest_block_height: int


@dataclass(frozen=True)
class CurrentValidator:
    account_id: str
    stake: int
    num_produced_blocks: int
    num_expected_blocks: int


@dataclass(frozen=True)
class NextValidator:
    account_id: str
    stake: int


@dataclass(frozen=True)
class KickedOutValidator:
    account_id: str
    reason: Any = None


@dataclass(frozen=True)
class ValidatorsResponse:
    epoch_start_height: int
    current_validators: List[CurrentValidator]
    next_validators: List[NextValidator]
    prev_epoch_kickout: List[KickedOutValidator]


def parse_stake(stake: str) -> int:
    """Parse a stake amount sent by the node as a decimal string."""
    try:
        return int(stake)
    except (TypeError, ValueError) as e:
        raise RpcResponseError(f"Invalid stake amount: {stake!r}") from e


class NearRpcClient:
    """Minimal JSON-RPC client for the node endpoints the monitor needs."""

    def __init__(self, url: str, timeout: int = 10):
        """
        Params:
            url: The node's JSON-RPC endpoint
            timeout: Seconds to wait for each HTTP request
        """
        self.url = url
        self.timeout = timeout

    def fetch(self, method: str, params: Optional[List[Any]] = None) -> Dict[str, Any]:
        """Call a JSON-RPC method and return its ``result`` member.

        Params:
            method: The RPC method name, e.g. "status" or "validators"
            params: Positional parameters for the method

        Returns:
            Dict: The decoded ``result`` object

        Raises:
            RpcError: If the request fails or the node returns an error
        """
        payload = {
            "jsonrpc": "2.0",
            "id": "dontcare",
            "method": method,
            "params": params if params is not None else [],
        }

        try:
            response = requests.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise RpcError(f"RPC call {method} failed: {str(e)}") from e
        except ValueError as e:
            raise RpcResponseError(f"RPC call {method} returned invalid JSON") from e

        if not isinstance(data, dict):
            raise RpcResponseError(f"RPC call {method} returned a non-object body")

        if "error" in data:
            raise RpcError(f"RPC call {method} returned an error: {data['error']}")

        if "result" not in data:
            raise RpcResponseError(f"RPC call {method} returned no result")

        return data["result"]

    def status(self) -> StatusResponse:
        result = self.fetch("status", [])
        try:
            return StatusResponse(
                chain_id=result["chain_id"],
                latest_block_height=int(result["sync_info"]["latest_block_height"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise RpcResponseError(f"Unexpected status response: {str(e)}") from e

    def validators(self, height: int) -> ValidatorsResponse:
        """Fetch the validator set as seen at ``height``."""
        result = self.fetch("validators", [height])
        try:
            return ValidatorsResponse(
                epoch_start_height=int(result["epoch_start_height"]),
                current_validators=[
                    CurrentValidator(
                        account_id=v["account_id"],
                        stake=parse_stake(v["stake"]),
                        num_produced_blocks=int(v["num_produced_blocks"]),
                        num_expected_blocks=int(v["num_expected_blocks"]),
                    )
                    for v in result["current_validators"]
                ],
                next_validators=[
                    NextValidator(
                        account_id=v["account_id"], stake=parse_stake(v["stake"])
                    )
                    for v in result["next_validators"]
                ],
                prev_epoch_kickout=[
                    KickedOutValidator(account_id=v["account_id"], reason=v.get("reason"))
                    for v in result.get("prev_epoch_kickout") or []
                ],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise RpcResponseError(f"Unexpected validators response: {str(e)}") from e
