import queue
import logging
import threading
from logging.config import dictConfig
from typing import Optional

from prometheus_client import Gauge, start_http_server

from .config import load_settings
from .monitor import Monitor
from .notification import SlackNotifier
from .observation import Observation
from .rpc import NearRpcClient

# Configure logging
logging_config = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'json': {
            '()': 'pythonjsonlogger.jsonlogger.JsonFormatter',
            'format': '%(asctime)s %(levelname)s %(name)s %(message)s'
        }
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'json'
        }
    },
    'root': {
        'handlers': ['console'],
        'level': 'INFO'
    }
}

dictConfig(logging_config)
logger = logging.getLogger(__name__)

THRESHOLD_GAUGE = Gauge(
    "warchest_threshold", "Blocks produced as a percentage of blocks expected"
)
CURRENT_STAKE_GAUGE = Gauge("warchest_current_stake", "Pool stake in the current epoch")
NEXT_STAKE_GAUGE = Gauge("warchest_next_stake", "Pool stake in the next epoch")
BLOCK_HEIGHT_GAUGE = Gauge("warchest_latest_block_height", "Latest synced block height")
BLOCKS_LEFT_GAUGE = Gauge("warchest_blocks_left", "Blocks left in the current epoch")
KICKED_OUT_GAUGE = Gauge(
    "warchest_kicked_out", "1 if the pool was kicked out in the previous epoch"
)
RPC_UP_GAUGE = Gauge("warchest_rpc_up", "1 if the last poll of the node succeeded")


class ObservationHandler:
    """Publishes observations as metrics and sends Slack alerts on state changes."""

    def __init__(self, pool_id: str, notifier: Optional[SlackNotifier] = None):
        self.pool_id = pool_id
        self.notifier = notifier
        self._rpc_failing: Optional[bool] = None
        self._kicked_out_epoch: Optional[int] = None

    def handle(self, observation: Observation) -> None:
        if not observation.ok:
            RPC_UP_GAUGE.set(0)
            logger.error(f"Poll failed for {self.pool_id}: {observation.error}")
            if not self._rpc_failing:
                self._notify(
                    lambda n: n.format_rpc_failure_message(self.pool_id, observation)
                )
            self._rpc_failing = True
            return

        RPC_UP_GAUGE.set(1)
        CURRENT_STAKE_GAUGE.set(observation.current_stake)
        NEXT_STAKE_GAUGE.set(observation.next_stake)
        BLOCK_HEIGHT_GAUGE.set(observation.latest_block_height)
        KICKED_OUT_GAUGE.set(1 if observation.kicked_out else 0)
        if observation.blocks_left is not None:
            BLOCKS_LEFT_GAUGE.set(observation.blocks_left)

        logger.info(
            f"Block {observation.latest_block_height}, epoch start "
            f"{observation.epoch_start_height}, blocks left {observation.blocks_left}, "
            f"current stake {observation.current_stake}, next stake {observation.next_stake}"
        )

        if self._rpc_failing:
            self._notify(lambda n: n.format_recovery_message(self.pool_id, observation))
        self._rpc_failing = False

        # One kick-out alert per epoch
        if observation.kicked_out and self._kicked_out_epoch != observation.epoch_start_height:
            self._notify(lambda n: n.format_kicked_out_message(self.pool_id, observation))
            self._kicked_out_epoch = observation.epoch_start_height

    def _notify(self, format_message) -> None:
        if self.notifier is None:
            return
        self.notifier.send_notification(format_message(self.notifier))


def main():
    logger.info("Starting pool monitor service...")

    # Initialize components
    try:
        settings = load_settings()
        client = NearRpcClient(settings.rpc_url, timeout=settings.rpc_timeout)
        notifier = None
        if settings.slack_webhook_url:
            notifier = SlackNotifier(settings.slack_webhook_url)
        monitor = Monitor(client, settings.pool_id, settings.repeat_time)
        handler = ObservationHandler(settings.pool_id, notifier)
        start_http_server(settings.metrics_port)
        logger.info("Successfully initialized all components")
    except Exception as e:
        logger.error(f"Failed to initialize components: {str(e)}")
        raise

    stop_event = threading.Event()
    # Single slot so a stalled consumer holds the monitor back
    results = queue.Queue(maxsize=1)
    worker = threading.Thread(
        target=monitor.run,
        args=(stop_event, results, THRESHOLD_GAUGE),
        name="monitor",
        daemon=True,
    )
    worker.start()

    try:
        while True:
            try:
                observation = results.get(timeout=1)
            except queue.Empty:
                if not worker.is_alive():
                    raise RuntimeError("Monitor thread stopped unexpectedly")
                continue
            handler.handle(observation)

    except KeyboardInterrupt:
        logger.info("Shutting down pool monitor service...")
    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}", exc_info=True)
        raise
    finally:
        stop_event.set()


if __name__ == "__main__":
    main()
