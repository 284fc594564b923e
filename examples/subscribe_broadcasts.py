#!/usr/bin/env python3
"""
Listen to the coordinate broadcast and print every reading received.

Only readings published after this client subscribes are shown; the
broadcaster does not retain messages.

Usage:
    python examples/subscribe_broadcasts.py --host localhost --count 5
"""

import argparse
import json
import sys

import paho.mqtt.client as mqtt

from drone_coordinates_generator import BROADCAST_TOPIC, Reading


def main() -> int:
    parser = argparse.ArgumentParser(description="Print readings from the coordinate broadcast")
    parser.add_argument("--host", default="localhost", help="MQTT broker hostname")
    parser.add_argument("--port", type=int, default=1883, help="MQTT broker port")
    parser.add_argument("--topic", default=BROADCAST_TOPIC, help="Broadcast topic")
    parser.add_argument("--count", type=int, default=0, help="Stop after N readings (0 = forever)")
    args = parser.parse_args()

    received = {"count": 0}

    def on_connect(client, userdata, flags, reason_code, properties=None):
        if reason_code != 0:
            print(f"Connection refused: {reason_code}", file=sys.stderr)
            client.disconnect()
            return
        print(f"Connected to {args.host}:{args.port}, subscribing to {args.topic}")
        client.subscribe(args.topic)

    def on_message(client, userdata, message):
        reading = Reading.from_dict(json.loads(message.payload))
        received["count"] += 1
        print(f"[{received['count']}] {reading.id} {reading.region} "
              f"({reading.latitude:.5f}, {reading.longitude:.5f}) "
              f"{reading.threat_level.value} at {message.topic}")
        if args.count and received["count"] >= args.count:
            client.disconnect()

    client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)
    client.on_connect = on_connect
    client.on_message = on_message
    client.connect(args.host, args.port, 60)

    try:
        client.loop_forever()
    except KeyboardInterrupt:
        client.disconnect()

    return 0


if __name__ == "__main__":
    sys.exit(main())
