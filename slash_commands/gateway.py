"""Discord gateway connection.

Keeps one websocket session to the Discord gateway open, sends heartbeats,
identifies the bot and forwards every dispatch event to a callback. Lost
connections are re-established with exponential backoff; close codes that
mean the bot cannot connect at all stop the loop with a GatewayError.
"""
import asyncio
import json
import platform
import random
from typing import Callable, Optional

import aiohttp

from .errors import GatewayError
from .observability import get_logger

logger = get_logger('discord-gateway')

OP_DISPATCH = 0
OP_HEARTBEAT = 1
OP_IDENTIFY = 2
OP_RECONNECT = 7
OP_INVALID_SESSION = 9
OP_HELLO = 10
OP_HEARTBEAT_ACK = 11

# Authentication failed, invalid shard, sharding required, invalid API version,
# invalid intents, disallowed intents
FATAL_CLOSE_CODES = {4004, 4010, 4011, 4012, 4013, 4014}

# Close code used when dropping a connection whose heartbeats go unanswered
ZOMBIE_CLOSE_CODE = 4000

INITIAL_RECONNECT_DELAY = 5
MAX_RECONNECT_DELAY = 300


class GatewayConnection:
    """Websocket session delivering raw gateway events to ``on_dispatch(event_type, data)``."""

    def __init__(self, token: str, url: str, intents: int, on_dispatch: Callable[[str, dict], None]):
        self.token = token
        self.url = url
        self.intents = intents
        self.on_dispatch = on_dispatch
        self.sequence: Optional[int] = None
        self.running = False
        self.session: Optional[aiohttp.ClientSession] = None
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._heartbeat_task: Optional[asyncio.Task] = None
        self._heartbeat_acked = True

    async def run(self):
        """Connect and keep the connection alive until close() is called.

        Raises:
            GatewayError: if the gateway closes with a fatal close code.
        """
        self.session = aiohttp.ClientSession()
        self.running = True
        reconnect_delay = INITIAL_RECONNECT_DELAY

        try:
            while self.running:
                try:
                    logger.info("Gateway connecting", url=self.url)
                    async with self.session.ws_connect(self.url) as ws:
                        self._ws = ws
                        self.sequence = None
                        logger.info("Gateway connected")
                        reconnect_delay = INITIAL_RECONNECT_DELAY
                        await self._receive(ws)

                    if ws.close_code in FATAL_CLOSE_CODES:
                        raise GatewayError(ws.close_code)
                    logger.info("Gateway connection closed", close_code=ws.close_code)
                except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                    logger.error("Gateway connection failed", error=e)
                finally:
                    await self._stop_heartbeat()
                    self._ws = None

                if self.running:
                    logger.info("Gateway reconnecting", delay_seconds=reconnect_delay)
                    await asyncio.sleep(reconnect_delay)
                    reconnect_delay = min(reconnect_delay * 2, MAX_RECONNECT_DELAY)
        finally:
            self.running = False
            await self.session.close()

    async def close(self):
        """Stop the connection loop and close the socket."""
        self.running = False
        if self._ws is not None and not self._ws.closed:
            await self._ws.close()

    async def _receive(self, ws):
        async for msg in ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                try:
                    payload = json.loads(msg.data)
                except json.JSONDecodeError:
                    logger.warning("Invalid gateway payload", data=msg.data[:100])
                    continue
                if not await self._handle_payload(ws, payload):
                    break
            elif msg.type == aiohttp.WSMsgType.ERROR:
                logger.error("Gateway websocket error", error=ws.exception())
                break

    async def _handle_payload(self, ws, payload: dict) -> bool:
        """Handle one gateway payload. Returns False when the socket must be reopened."""
        op = payload.get('op')
        if payload.get('s') is not None:
            self.sequence = payload['s']

        if op == OP_DISPATCH:
            self.on_dispatch(payload.get('t'), payload.get('d'))
        elif op == OP_HELLO:
            interval = payload['d']['heartbeat_interval'] / 1000
            self._start_heartbeat(ws, interval)
            await self._identify(ws)
        elif op == OP_HEARTBEAT:
            await self._send_heartbeat(ws)
        elif op == OP_HEARTBEAT_ACK:
            self._heartbeat_acked = True
            logger.debug("Gateway heartbeat acknowledged", sequence=self.sequence)
        elif op in (OP_RECONNECT, OP_INVALID_SESSION):
            logger.info("Gateway requested reconnect", op=op)
            await ws.close()
            return False
        return True

    async def _identify(self, ws):
        await ws.send_json({
            'op': OP_IDENTIFY,
            'd': {
                'token': self.token,
                'intents': self.intents,
                'properties': {
                    'os': platform.system().lower(),
                    'browser': 'slash-commands',
                    'device': 'slash-commands',
                },
            },
        })

    async def _send_heartbeat(self, ws):
        await ws.send_json({'op': OP_HEARTBEAT, 'd': self.sequence})

    def _start_heartbeat(self, ws, interval: float):
        if self._heartbeat_task is not None:
            self._heartbeat_task.cancel()
        self._heartbeat_acked = True
        self._heartbeat_task = asyncio.create_task(self._heartbeat_loop(ws, interval))

    async def _heartbeat_loop(self, ws, interval: float):
        # First beat is jittered so reconnecting clients do not beat in step
        await asyncio.sleep(interval * random.random())
        while not ws.closed:
            if not self._heartbeat_acked:
                # No ACK since the last beat: the connection is a zombie
                logger.warning("Gateway heartbeat not acknowledged, reconnecting", sequence=self.sequence)
                await ws.close(code=ZOMBIE_CLOSE_CODE)
                break
            self._heartbeat_acked = False
            try:
                await self._send_heartbeat(ws)
            except ConnectionResetError:
                break
            await asyncio.sleep(interval)

    async def _stop_heartbeat(self):
        task, self._heartbeat_task = self._heartbeat_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
