"""
Chain Subscription - ERC-721 Transfer logs over a JSON-RPC websocket.

Subscribes with eth_subscribe("logs") filtered on the contract and
the Transfer topic, and yields decoded TransferEvents.

Reconnection policy: fixed delay between attempts, bounded number of
consecutive failed attempts. A confirmed subscription resets the
counter. Exhaustion raises SubscriptionError; the subscription is
then dead and must be restarted by the caller.
"""

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Callable, Optional

import aiohttp

from poap_feed.exceptions import DecodeError, FetchError, SubscriptionError
from poap_feed.models import Network, TransferEvent


logger = logging.getLogger(__name__)


# keccak256("Transfer(address,address,uint256)")
TRANSFER_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"

SUBSCRIBE_REQUEST_ID = 1


def _topic_to_address(topic: str) -> str:
    """Indexed address topics are left-padded to 32 bytes."""
    return "0x" + topic[-40:].lower()


def decode_transfer_log(log: dict[str, Any], network: Network) -> TransferEvent:
    """
    Decode a raw Transfer log.

    Raises:
        DecodeError: If the log is not an indexed ERC-721 Transfer
    """
    try:
        topics = log["topics"]
        if len(topics) < 4 or topics[0].lower() != TRANSFER_TOPIC:
            raise DecodeError(
                "Not an ERC-721 Transfer log",
                network=network.value,
                raw_log=log,
            )

        block = log.get("blockNumber")
        return TransferEvent(
            token_id=str(int(topics[3], 16)),
            from_address=_topic_to_address(topics[1]),
            to_address=_topic_to_address(topics[2]),
            transaction_hash=log["transactionHash"],
            network=network,
            block_number=int(block, 16) if block else None,
            removed=bool(log.get("removed", False)),
        )
    except DecodeError:
        raise
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise DecodeError(
            f"Malformed log: {e}",
            network=network.value,
            raw_log=log,
            original_error=e,
        )


class TransferSubscription:
    """
    Long-lived Transfer log subscription for one network.

    Usage:
        subscription = TransferSubscription(Network.XDAI, ws_url, contract)
        async for event in subscription.events():
            ...
    """

    DEFAULT_RECONNECT_ATTEMPTS = 20
    DEFAULT_RECONNECT_DELAY = 5.0
    HEARTBEAT_SECONDS = 30.0

    def __init__(
        self,
        network: Network,
        ws_url: str,
        contract_address: str,
        reconnect_attempts: int = DEFAULT_RECONNECT_ATTEMPTS,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
        on_connected: Optional[Callable[[str], None]] = None,
        on_changed: Optional[Callable[[dict[str, Any]], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.network = network
        self.contract_address = contract_address
        self._ws_url = ws_url
        self._reconnect_attempts = reconnect_attempts
        self._reconnect_delay = reconnect_delay
        self._on_connected = on_connected
        self._on_changed = on_changed
        self._on_error = on_error
        self._session = session
        self._owns_session = session is None

        self._failures = 0
        self._subscription_id: Optional[str] = None

    @property
    def subscription_id(self) -> Optional[str]:
        return self._subscription_id

    def _subscribe_request(self) -> dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "id": SUBSCRIBE_REQUEST_ID,
            "method": "eth_subscribe",
            "params": [
                "logs",
                {
                    "address": self.contract_address,
                    "topics": [TRANSFER_TOPIC],
                },
            ],
        }

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def events(self) -> AsyncIterator[TransferEvent]:
        """
        Yield transfer events until the subscription dies.

        Raises:
            SubscriptionError: After exhausting reconnect attempts
        """
        while True:
            try:
                async for event in self._stream():
                    yield event
                error: Exception = FetchError(
                    "Websocket closed by remote",
                    component="subscription",
                    request_url=self._ws_url,
                )
            except (aiohttp.ClientError, asyncio.TimeoutError, FetchError) as e:
                error = e

            self._subscription_id = None
            self._emit_error(error)

            self._failures += 1
            if self._failures > self._reconnect_attempts:
                raise SubscriptionError(
                    f"Gave up after {self._reconnect_attempts} reconnect attempts",
                    network=self.network.value,
                    attempts=self._reconnect_attempts,
                    original_error=error,
                )

            logger.warning(
                f"[{self.network.value}] Reconnecting in {self._reconnect_delay:.0f}s "
                f"(attempt {self._failures}/{self._reconnect_attempts})"
            )
            await asyncio.sleep(self._reconnect_delay)

    async def _stream(self) -> AsyncIterator[TransferEvent]:
        """One websocket connection: subscribe, then relay logs."""
        session = await self._get_session()

        async with session.ws_connect(self._ws_url, heartbeat=self.HEARTBEAT_SECONDS) as ws:
            await ws.send_json(self._subscribe_request())

            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    try:
                        data = json.loads(msg.data)
                    except ValueError:
                        logger.debug(f"[{self.network.value}] Ignoring non-JSON message")
                        continue
                    event = self._handle_message(data)
                    if event is not None:
                        yield event
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    raise ws.exception() or aiohttp.ClientError("Websocket error")
                elif msg.type in (aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSED):
                    break

    def _handle_message(self, data: Any) -> Optional[TransferEvent]:
        """Route one JSON-RPC message; returns an event to yield, if any."""
        if not isinstance(data, dict):
            logger.debug(f"[{self.network.value}] Ignoring non-object message")
            return None

        if data.get("id") == SUBSCRIBE_REQUEST_ID:
            if "error" in data:
                raise FetchError(
                    f"eth_subscribe rejected: {data['error']}",
                    component="subscription",
                    request_url=self._ws_url,
                )
            self._subscription_id = str(data.get("result"))
            self._failures = 0
            if self._on_connected:
                self._on_connected(self._subscription_id)
            return None

        if data.get("method") != "eth_subscription":
            return None

        params = data.get("params")
        log = params.get("result") if isinstance(params, dict) else None
        if not isinstance(log, dict):
            logger.debug(f"[{self.network.value}] Ignoring notification without a log object")
            return None

        if log.get("removed"):
            if self._on_changed:
                self._on_changed(log)
            return None

        try:
            return decode_transfer_log(log, self.network)
        except DecodeError as e:
            logger.debug(f"[{self.network.value}] Skipping log: {e}")
            return None

    def _emit_error(self, error: Exception) -> None:
        if self._on_error:
            self._on_error(error)
        else:
            logger.error(f"[{self.network.value}] Subscription error: {error}")

    async def close(self) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            self._session = None
