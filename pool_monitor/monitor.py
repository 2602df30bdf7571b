import time
import queue
import logging
import threading
from typing import Callable, Optional

from prometheus_client import Gauge

from .observation import Observation, epoch_length_for, production_ratio
from .rpc import NearRpcClient, RpcError

logger = logging.getLogger(__name__)

# Production ratio (percent) above which the pool is reported near the kick-out threshold
KICK_OUT_THRESHOLD = 90.0


class Ticker:
    """Fixed-rate timer.

    Intervals that elapse while the caller is busy are coalesced: the next
    ``wait`` returns immediately once, then the regular cadence resumes.
    """

    def __init__(self, interval: float, clock: Callable[[], float] = time.monotonic):
        self.interval = interval
        self._clock = clock
        self._next_tick = clock() + interval

    def wait(self, stop_event: threading.Event) -> bool:
        """Block until the next tick.

        Returns:
            bool: False if stop was requested before the tick fired
        """
        timeout = max(0.0, self._next_tick - self._clock())
        if stop_event.wait(timeout):
            return False

        missed = int((self._clock() - self._next_tick) // self.interval)
        self._next_tick += (max(missed, 0) + 1) * self.interval
        return True


class Monitor:
    """Polls the node and reports on a single staking pool."""

    def __init__(self, client: NearRpcClient, pool_id: str, interval: float):
        """Initialize the monitor.

        Params:
            client: Shared RPC client used for the status and validators calls
            pool_id: Account id of the pool to track
            interval: Seconds between poll cycles

        Raises:
            ValueError: If the interval is not positive
        """
        if interval <= 0:
            raise ValueError(f"Poll interval must be positive, got {interval}")
        self.client = client
        self.pool_id = pool_id
        self.interval = interval
        self.last_observation: Optional[Observation] = None

    def poll(self, threshold_gauge: Gauge) -> Observation:
        """Run one poll cycle and return its observation.

        The threshold gauge is set to the pool's production ratio when the pool
        is among the current validators, and left alone otherwise.
        """
        logger.info("Starting watch rpc")
        try:
            status = self.client.status()
        except RpcError as e:
            logger.error(f"Failed to fetch node status: {str(e)}")
            return self._record(Observation.failure(e))

        epoch_length = epoch_length_for(status.chain_id)
        if epoch_length is None:
            logger.warning(f"Unknown chain id {status.chain_id}, epoch length unresolved")

        block_height = status.latest_block_height

        try:
            validators = self.client.validators(block_height)
        except RpcError as e:
            logger.error(f"Failed to fetch validators at {block_height}: {str(e)}")
            return self._record(Observation.failure(e))

        current_stake = 0
        for v in validators.current_validators:
            if v.account_id != self.pool_id:
                continue
            ratio = production_ratio(v.num_produced_blocks, v.num_expected_blocks)
            if ratio > KICK_OUT_THRESHOLD:
                logger.info(f"Kicked out threshold: {ratio:f}")
            threshold_gauge.set(ratio)
            current_stake = v.stake

        next_stake = 0
        for v in validators.next_validators:
            if v.account_id == self.pool_id:
                next_stake = v.stake

        kicked_out = False
        for v in validators.prev_epoch_kickout:
            if v.account_id == self.pool_id:
                kicked_out = True
                logger.warning(f"Pool {self.pool_id} was kicked out: {v.reason}")

        return self._record(
            Observation(
                latest_block_height=block_height,
                epoch_start_height=validators.epoch_start_height,
                epoch_length=epoch_length,
                current_stake=current_stake,
                next_stake=next_stake,
                kicked_out=kicked_out,
            )
        )

    def run(
        self,
        stop_event: threading.Event,
        output: queue.Queue,
        threshold_gauge: Gauge,
    ) -> None:
        """Poll on every tick and push each observation to ``output``.

        ``output.put`` blocks, so a consumer that stops reading stalls the loop.
        Returns once ``stop_event`` is set; a cycle already running completes first.
        """
        ticker = Ticker(self.interval)
        logger.info(f"Subscribed for updates every {self.interval} seconds")

        while not stop_event.is_set():
            if not ticker.wait(stop_event):
                break
            output.put(self.poll(threshold_gauge))

        logger.info(f"Stopped monitoring {self.pool_id}")

    def _record(self, observation: Observation) -> Observation:
        self.last_observation = observation
        return observation
