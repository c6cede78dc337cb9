"""Discord client: REST calls, raw gateway events and the bot's application identity."""
import asyncio
import inspect
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional

import requests

from .config import Config
from .errors import InvalidArgumentError, NotReadyError
from .gateway import GatewayConnection
from .observability import get_logger

logger = get_logger('discord-client')


class DiscordClient:
    """Bot-token authenticated client for the Discord REST API and gateway."""

    def __init__(
        self,
        token: str,
        application_id: Optional[str] = None,
        api_base_url: str = Config.DISCORD_API_BASE_URL,
        gateway_url: str = Config.DISCORD_GATEWAY_URL,
        intents: int = Config.DISCORD_INTENTS,
        timeout: float = Config.DISCORD_REQUEST_TIMEOUT,
    ):
        if not token:
            raise InvalidArgumentError("A Discord bot token is required.")
        self.token = token
        self.api_base_url = api_base_url.rstrip('/')
        self.gateway_url = gateway_url
        self.intents = intents
        self.timeout = timeout
        self.user: Optional[Dict[str, Any]] = None
        self._application_id = application_id
        self._listeners: Dict[str, List[Callable[[Any], Any]]] = defaultdict(list)
        self._ready = asyncio.Event()
        self._gateway: Optional[GatewayConnection] = None
        self._gateway_task: Optional[asyncio.Task] = None
        self._pending: set = set()

        self.on('READY', self._handle_ready)

    @property
    def application_id(self) -> str:
        """Id of the application the bot belongs to."""
        if not self._application_id:
            raise NotReadyError("Application id is not known until the gateway is ready.")
        return self._application_id

    # --- REST ---

    def _build_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bot {self.token}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, route: str, json: Any = None) -> Any:
        url = f"{self.api_base_url}/{route.lstrip('/')}"
        logger.debug(f"Discord {method} {route}", method=method, route=route)

        response = requests.request(
            method, url, headers=self._build_headers(), json=json, timeout=self.timeout
        )
        if not response.ok:
            logger.warning(
                f"Discord {method} {route} returned {response.status_code}",
                status_code=response.status_code,
                response_text=response.text[:200]
            )
        response.raise_for_status()

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def request(self, method: str, route: str, json: Any = None) -> Any:
        """Call a REST route relative to the API base URL.

        Args:
            method: HTTP method
            route: Route such as ``applications/123/commands``
            json: Request body, sent as JSON

        Returns:
            The decoded JSON response, or None for an empty response.

        Raises:
            requests.HTTPError: for non-2xx responses.
            requests.RequestException: for transport failures.
        """
        return await asyncio.to_thread(self._request, method, route, json)

    # --- Gateway events ---

    def on(self, event_type: str, callback: Callable[[Any], Any]):
        """Call ``callback(payload)`` for every gateway event of ``event_type``."""
        self._listeners[event_type].append(callback)

    def listener_count(self, event_type: str) -> int:
        return len(self._listeners.get(event_type, ()))

    def emit(self, event_type: str, payload: Any):
        """Deliver a gateway event to its listeners, in registration order.

        Awaitables returned by listeners are scheduled as tasks on the running loop.
        """
        for listener in list(self._listeners.get(event_type, ())):
            try:
                result = listener(payload)
            except Exception as e:
                logger.error("Gateway event listener failed", error=e, event_type=event_type)
                continue
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._pending.add(task)
                task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task):
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Gateway event handler failed", error=task.exception())

    def _handle_ready(self, payload: dict):
        self.user = payload.get('user') or {}
        application = payload.get('application') or {}
        if not self._application_id:
            self._application_id = application.get('id') or self.user.get('id')
        logger.info(
            "Connected to Discord. Bot is ready.",
            user=self.user.get('username'),
            application_id=self._application_id
        )
        self._ready.set()

    # --- Lifecycle ---

    async def login(self):
        """Open the gateway connection in the background."""
        if self._gateway_task is not None:
            return
        self._gateway = GatewayConnection(self.token, self.gateway_url, self.intents, self.emit)
        self._gateway_task = asyncio.create_task(self._gateway.run())

    async def wait_until_ready(self):
        """Wait for the gateway READY event.

        Raises:
            GatewayError: if the gateway stops with a fatal close code first.
            NotReadyError: if login() was not called or the gateway stopped first.
        """
        if self._gateway_task is None:
            raise NotReadyError("Call login() before waiting for the client to be ready.")
        ready = asyncio.ensure_future(self._ready.wait())
        done, _ = await asyncio.wait({ready, self._gateway_task}, return_when=asyncio.FIRST_COMPLETED)
        if ready not in done:
            ready.cancel()
            self._gateway_task.result()
            raise NotReadyError("Gateway stopped before the client was ready.")

    async def wait_closed(self):
        """Wait until the gateway connection stops for good."""
        if self._gateway_task is not None:
            await self._gateway_task

    async def close(self):
        """Close the gateway connection."""
        if self._gateway is not None:
            await self._gateway.close()
        if self._gateway_task is not None:
            self._gateway_task.cancel()
            await asyncio.gather(self._gateway_task, return_exceptions=True)
