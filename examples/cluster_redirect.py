"""Lifecycle events and MOVED redirect handling.

Creates a client, reports its connection lifecycle, and shows where a
command would have to be re-sent when a cluster node answers ``MOVED``.

Prerequisites:
    pip install rcc-redis-adapter

    # Start a Redis server (or a cluster node) on 127.0.0.1:6379
    redis-server
"""

import logging
import time

import redis

from rcc_redis_adapter import create_client, is_moved_error, resolve_host_and_port

logger = logging.getLogger("cluster_redirect")


def add_event_listeners(client, desc):
    host, port = client.resolve_host_and_port()
    start = time.monotonic()

    def elapsed_ms():
        return int((time.monotonic() - start) * 1000)

    client.add_event_listeners(
        on_connect=lambda: logger.info("Client %s (%s:%s) CONNECTED after %d ms", desc, host, port, elapsed_ms()),
        on_ready=lambda: logger.info("Client %s (%s:%s) READY after %d ms", desc, host, port, elapsed_ms()),
        on_reconnecting=lambda: logger.info("Client %s (%s:%s) RECONNECTING", desc, host, port),
        on_error=lambda err: logger.error("Client %s (%s:%s) hit error %s", desc, host, port, err),
        on_client_error=lambda err: logger.error("Client %s (%s:%s) hit client error %s", desc, host, port, err),
        on_end=lambda: logger.info("Client %s (%s:%s) CLOSED", desc, host, port),
    )


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(message)s")

    client = create_client({"host": "127.0.0.1", "port": 6379, "decode_responses": True})
    add_event_listeners(client, "primary")

    try:
        client.set("KEY", "VALUE")
        print(f"KEY = {client.get('KEY')}")
    except redis.exceptions.ResponseError as err:
        if not is_moved_error(err):
            raise
        host, port = resolve_host_and_port(err)
        print(f"KEY lives on {host}:{port}; re-send the command there")
    except redis.exceptions.ConnectionError:
        print("No Redis server reachable")
    finally:
        client.close()


if __name__ == "__main__":
    main()
