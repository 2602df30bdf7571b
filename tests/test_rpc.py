import pytest
from unittest.mock import Mock, patch
from prometheus_client import Gauge
from pool_monitor.rpc import NearRpcClient, RpcError, RpcResponseError, parse_stake
import requests

STATUS_RESULT = {
    "chain_id": "mainnet",
    "sync_info": {"latest_block_height": 1000, "syncing": False},
}

VALIDATORS_RESULT = {
    "epoch_start_height": 900,
    "current_validators": [
        {
            "account_id": "pool.near",
            "stake": "1000000",
            "num_produced_blocks": 95,
            "num_expected_blocks": 100,
        }
    ],
    "next_validators": [{"account_id": "pool.near", "stake": "2000000"}],
    "prev_epoch_kickout": [
        {"account_id": "slow.near", "reason": {"NotEnoughBlocks": {"produced": 1}}}
    ],
}


@pytest.fixture
def client():
    return NearRpcClient("http://rpc.test", timeout=5)


def test_fetch_posts_json_rpc_request(client):
    with patch("requests.post") as mock_post:
        mock_post.return_value.json.return_value = {"jsonrpc": "2.0", "result": {"a": 1}}

        result = client.fetch("validators", [1000])

        assert result == {"a": 1}
        mock_post.assert_called_once_with(
            "http://rpc.test",
            json={
                "jsonrpc": "2.0",
                "id": "dontcare",
                "method": "validators",
                "params": [1000],
            },
            timeout=5,
        )


def test_fetch_request_failure(client):
    with patch("requests.post") as mock_post:
        mock_post.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(RpcError):
            client.fetch("status")


def test_fetch_rpc_error_member(client):
    with patch("requests.post") as mock_post:
        mock_post.return_value.json.return_value = {
            "jsonrpc": "2.0",
            "error": {"code": -32000, "message": "Server error"},
        }

        with pytest.raises(RpcError, match="Server error"):
            client.fetch("status")


def test_fetch_invalid_json(client):
    with patch("requests.post") as mock_post:
        mock_post.return_value.json.side_effect = ValueError("no json")

        with pytest.raises(RpcResponseError):
            client.fetch("status")


@pytest.mark.parametrize("body", [None, 42, ["result"]])
def test_fetch_non_object_body(client, body):
    """Test that a JSON body that is not an object is a response error."""
    with patch("requests.post") as mock_post:
        mock_post.return_value.json.return_value = body

        with pytest.raises(RpcResponseError):
            client.fetch("status")


def test_monitor_survives_null_body():
    """Test that a null body becomes a failure observation instead of a crash."""
    from pool_monitor.monitor import Monitor

    monitor = Monitor(NearRpcClient("http://rpc.test"), "pool.near", interval=60)
    with patch("requests.post") as mock_post:
        mock_post.return_value.json.return_value = None

        result = monitor.poll(Mock(spec=Gauge))

    assert isinstance(result.error, RpcResponseError)


def test_status(client):
    with patch("requests.post") as mock_post:
        mock_post.return_value.json.return_value = {"result": STATUS_RESULT}

        status = client.status()

        assert status.chain_id == "mainnet"
        assert status.latest_block_height == 1000
        assert mock_post.call_args.kwargs["json"]["params"] == []


def test_validators(client):
    with patch("requests.post") as mock_post:
        mock_post.return_value.json.return_value = {"result": VALIDATORS_RESULT}

        validators = client.validators(1000)

        assert validators.epoch_start_height == 900
        assert validators.current_validators[0].account_id == "pool.near"
        assert validators.current_validators[0].stake == 1000000
        assert validators.current_validators[0].num_produced_blocks == 95
        assert validators.next_validators[0].stake == 2000000
        assert validators.prev_epoch_kickout[0].account_id == "slow.near"


def test_validators_malformed_stake(client):
    result = dict(VALIDATORS_RESULT)
    result["next_validators"] = [{"account_id": "pool.near", "stake": "lots"}]
    with patch("requests.post") as mock_post:
        mock_post.return_value.json.return_value = {"result": result}

        with pytest.raises(RpcResponseError):
            client.validators(1000)


def test_validators_missing_key(client):
    with patch("requests.post") as mock_post:
        mock_post.return_value.json.return_value = {"result": {"epoch_start_height": 1}}

        with pytest.raises(RpcResponseError):
            client.validators(1000)


def test_parse_stake_large_amount():
    assert parse_stake("1000000000000000000000000") == 10**24
