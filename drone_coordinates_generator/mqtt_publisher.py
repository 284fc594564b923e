"""
MQTT transport for broadcasting readings.
"""

import json
import time
import threading
from typing import Any, Dict, Optional
import paho.mqtt.client as mqtt

from .config import ServiceConfig
from .error_handling import PublishError, ValidationError, retry_on_exception, error_context
from .logging_config import ServiceLogger
from .models import Reading


logger = ServiceLogger.get_logger(__name__)

# Names missing from the installed paho release are skipped
PUBLISH_ERROR_MESSAGES = {
    getattr(mqtt, name): text
    for name, text in (
        ("MQTT_ERR_NO_CONN", "Not connected to broker"),
        ("MQTT_ERR_QUEUE_SIZE", "Message queue is full"),
        ("MQTT_ERR_PAYLOAD_SIZE", "Payload too large"),
        ("MQTT_ERR_MALFORMED_UTF8", "Topic contains malformed UTF-8"),
        ("MQTT_ERR_INVAL", "Invalid input parameters"),
    )
    if hasattr(mqtt, name)
}


class MQTTPublisher:
    """
    MQTT publisher with connection management.

    Messages are published without the retain flag, so a subscriber only
    sees readings published after it subscribed. Publishing never waits for
    delivery; once connected, reconnection after a drop is left to the
    paho network loop.
    """

    def __init__(self, config: ServiceConfig):
        """
        Initialize MQTT publisher.

        Args:
            config: Service configuration containing MQTT settings
        """
        self.config = config
        self.client: Optional[mqtt.Client] = None
        self.connected = False
        self.connection_attempts = 0
        self.shutdown_requested = False
        self.loop_running = False
        self.connection_lock = threading.Lock()

        self.stats = self._empty_statistics()

        if not config.offline_mode:
            try:
                self._setup_mqtt_client()
                logger.info(f"MQTT publisher initialized for {config.mqtt_host}:{config.mqtt_port}")
            except Exception as e:
                logger.error(f"Failed to initialize MQTT publisher: {e}")
                raise PublishError(f"MQTT publisher initialization failed: {e}")

    @staticmethod
    def _empty_statistics() -> Dict[str, int]:
        return {
            'connection_attempts': 0,
            'successful_connections': 0,
            'connection_failures': 0,
            'publish_attempts': 0,
            'publish_successes': 0,
            'publish_failures': 0,
            'disconnections': 0,
            'inbound_messages': 0,
            'inbound_rejected': 0
        }

    def _setup_mqtt_client(self) -> None:
        """Setup MQTT client with connection callbacks."""
        with error_context("MQTT client setup", logger):
            client_id = self.config.client_id
            if not client_id:
                client_id = f"drone_coords_{int(time.time())}"

            self.client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=client_id)

            self.client.on_connect = self._on_connect
            self.client.on_disconnect = self._on_disconnect
            self.client.on_publish = self._on_publish
            self.client.on_message = self._on_message
            self.client.on_log = self._on_log

            self.client.reconnect_delay_set(min_delay=1, max_delay=120)

            logger.debug(f"MQTT client created with ID: {client_id}")

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        """Callback for when the client receives a CONNACK response from the server."""
        with self.connection_lock:
            if reason_code == 0:
                self.connected = True
                self.connection_attempts = 0
                self.stats['successful_connections'] += 1
                logger.info(f"Connected to MQTT broker at {self.config.mqtt_host}:{self.config.mqtt_port}")
            else:
                self.connected = False
                self.stats['connection_failures'] += 1
                logger.error(f"Failed to connect to MQTT broker: {reason_code}")
                return

        # Subscriptions do not survive a reconnect with a clean session
        inbound_topic = self.config.mqtt_inbound_topic
        if inbound_topic:
            client.subscribe(inbound_topic, qos=self.config.mqtt_qos)
            logger.info(f"Listening for inbound coordinates on {inbound_topic}")

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        """Callback for when the client disconnects from the broker."""
        with self.connection_lock:
            self.connected = False
            self.stats['disconnections'] += 1

            if reason_code != 0:
                logger.warning(f"Unexpected disconnection from MQTT broker: {reason_code}")
                if not self.shutdown_requested:
                    logger.info("Will attempt to reconnect...")
            else:
                logger.info("Disconnected from MQTT broker")

    def _on_publish(self, client, userdata, mid, reason_code=None, properties=None):
        """Callback for when a message has left the client."""
        logger.debug(f"Message published with message ID: {mid}")

    def _on_message(self, client, userdata, message):
        """Log coordinates sent to the inbound topic by clients."""
        self.stats['inbound_messages'] += 1
        try:
            record = json.loads(message.payload.decode('utf-8'))
            if not isinstance(record, dict):
                raise ValidationError("Inbound payload must be a JSON object")
            reading = Reading.from_dict(record)
        except (UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            self.stats['inbound_rejected'] += 1
            logger.warning(f"Dropping malformed coordinate on {message.topic}: {e}")
            return

        logger.info(
            f"Received coordinate: {reading.id} ({reading.latitude}, {reading.longitude}) "
            f"in {reading.region} with threat level {reading.threat_level.value}"
        )

    def _on_log(self, client, userdata, level, buf):
        """Callback for MQTT client logging."""
        if level == mqtt.MQTT_LOG_ERR:
            logger.error(f"MQTT client error: {buf}")
        elif level == mqtt.MQTT_LOG_WARNING:
            logger.warning(f"MQTT client warning: {buf}")
        else:
            logger.debug(f"MQTT client: {buf}")

    def connect(self, timeout_s: Optional[float] = None) -> bool:
        """
        Start paho's network loop and wait for the broker to accept us.

        The connection itself is made by the background loop, which keeps
        retrying with the reconnect delay after this call gives up. A broker
        that comes up later is therefore picked up without calling again.

        Args:
            timeout_s: Seconds to wait per attempt (defaults to the config)

        Returns:
            True if connected (or offline), False if aborted by shutdown

        Raises:
            PublishError: If the broker has not accepted the connection
                after all attempts
        """
        if self.config.offline_mode or not self.client:
            return True

        if timeout_s is None:
            timeout_s = self.config.mqtt_connect_timeout_s

        with self.connection_lock:
            if self.connected:
                return True
            # A stopped publisher can be started again
            self.shutdown_requested = False
            start_loop = not self.loop_running
            self.loop_running = True

        if start_loop:
            logger.info(f"Connecting to MQTT broker at {self.config.mqtt_host}:{self.config.mqtt_port}")
            try:
                self.client.connect_async(self.config.mqtt_host, self.config.mqtt_port, 60)
                self.client.loop_start()
            except Exception as e:
                self.loop_running = False
                raise PublishError(f"Connection failed: {e}", error_code="CONNECTION_ERROR")

        return self._wait_for_connection(timeout_s)

    @retry_on_exception(
        max_attempts=3,
        delay_seconds=1.0,
        backoff_multiplier=2.0,
        exceptions=(PublishError,),
        logger=logger
    )
    def _wait_for_connection(self, timeout_s: float) -> bool:
        self.stats['connection_attempts'] += 1
        self.connection_attempts += 1

        start_time = time.time()
        while not self.connected and (time.time() - start_time) < timeout_s and not self.shutdown_requested:
            time.sleep(0.1)

        if self.shutdown_requested:
            logger.info("Connection aborted due to shutdown request")
            return False

        if not self.connected:
            raise PublishError("Connection timeout", error_code="CONNECTION_TIMEOUT")

        return True

    def disconnect(self) -> None:
        """Stop the network loop and disconnect without waiting for queued messages."""
        with error_context("MQTT disconnect", logger, reraise=False):
            self.shutdown_requested = True

            if self.client:
                try:
                    logger.info("Disconnecting from MQTT broker...")
                    self.client.disconnect()
                    self.client.loop_stop()
                    logger.info("MQTT client disconnected")
                except Exception as e:
                    logger.error(f"Error during MQTT disconnect: {e}")
                finally:
                    self.connected = False
                    self.loop_running = False

    def publish(self, topic: str, message: Dict[str, Any]) -> bool:
        """
        Publish one message as compact JSON.

        Args:
            topic: Destination topic
            message: JSON-serializable record

        Returns:
            True if the message was handed to the broker connection (or
            printed in offline mode), False otherwise
        """
        if self.shutdown_requested:
            logger.debug("Publish aborted due to shutdown request")
            return False

        self.stats['publish_attempts'] += 1

        if not topic or not topic.strip():
            logger.error("Cannot publish: topic is empty")
            self.stats['publish_failures'] += 1
            return False

        try:
            message_json = json.dumps(message, separators=(',', ':'), ensure_ascii=False)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to serialize message to JSON: {e}")
            self.stats['publish_failures'] += 1
            return False

        if self.config.offline_mode:
            print(message_json, flush=True)
            self.stats['publish_successes'] += 1
            return True

        if not self.connected:
            logger.warning(f"Cannot publish to {topic}: not connected to MQTT broker")
            self.stats['publish_failures'] += 1
            return False

        result = self.client.publish(
            topic=topic,
            payload=message_json,
            qos=self.config.mqtt_qos,
            retain=False
        )

        if result.rc == mqtt.MQTT_ERR_SUCCESS:
            self.stats['publish_successes'] += 1
            logger.debug(f"Published message to {topic} (QoS: {self.config.mqtt_qos})")
            return True

        error_msg = PUBLISH_ERROR_MESSAGES.get(result.rc, f"Unknown error code {result.rc}")
        logger.error(f"Failed to publish message to {topic}: {error_msg}")
        self.stats['publish_failures'] += 1
        return False

    def get_statistics(self) -> Dict[str, int]:
        """
        Get publisher statistics.

        Returns:
            Dictionary containing connection and publish statistics
        """
        return self.stats.copy()

