from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import urlsplit

import websockets
from websockets.asyncio.server import ServerConnection
from websockets.datastructures import Headers
from websockets.http11 import Request, Response

from contracts.ui_protocol import EVENT_COMMAND_RESULT, EVENT_ERROR, EVENT_HELLO

from .config import UIServerConfig
from .events import CommandDecodeError, StickyEventStore, decode_command, make_event

CommandHandler = Callable[[dict[str, Any]], dict[str, Any]]


class UIServer:
    """Websocket server on a background event loop.

    Pushes timer events to every connected client, replays sticky events on
    connect, and turns client messages into command handler calls.
    """

    def __init__(
        self,
        config: UIServerConfig,
        logger: Optional[logging.Logger] = None,
        *,
        command_handler: Optional[CommandHandler] = None,
    ):
        self._config = config
        self._logger = logger or logging.getLogger("ui_server")
        self._command_handler = command_handler
        self._thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._shutdown: Optional[asyncio.Event] = None
        self._ready = threading.Event()
        self._startup_error: Optional[BaseException] = None
        self._clients: set[ServerConnection] = set()
        self._sticky = StickyEventStore()

    @property
    def is_running(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and self._startup_error is None
        )

    def set_command_handler(self, handler: CommandHandler) -> None:
        self._command_handler = handler

    def start(self, timeout_seconds: float = 5.0) -> None:
        if self.is_running:
            self._logger.warning("UI server is already running")
            return

        self._startup_error = None
        self._ready.clear()
        self._thread = threading.Thread(
            target=self._thread_main,
            daemon=True,
            name="ui-server",
        )
        self._thread.start()

        if not self._ready.wait(timeout_seconds):
            raise RuntimeError(f"UI server did not start within {timeout_seconds:.1f}s")
        if self._startup_error is not None:
            raise RuntimeError(f"UI server startup failed: {self._startup_error}")

    def stop(self, timeout_seconds: float = 5.0) -> None:
        thread = self._thread
        if thread is None:
            return

        loop, shutdown = self._loop, self._shutdown
        if loop is not None and shutdown is not None:
            with contextlib.suppress(RuntimeError):
                loop.call_soon_threadsafe(shutdown.set)

        thread.join(timeout=timeout_seconds)
        if thread.is_alive():
            self._logger.error("UI server thread did not stop within %.1fs", timeout_seconds)
        self._thread = None

    def publish(self, event_type: str, **payload: Any) -> None:
        message = make_event(event_type, **payload)
        # Cached before the running check so clients connecting later still get it.
        self._sticky.remember(event_type, message)

        loop = self._loop
        if not self.is_running or loop is None:
            return
        try:
            future = asyncio.run_coroutine_threadsafe(self._broadcast(message), loop)
        except RuntimeError:
            return
        future.add_done_callback(self._log_broadcast_failure)

    def _log_broadcast_failure(self, future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            self._logger.warning("Broadcast failed: %s", error)

    def _thread_main(self) -> None:
        try:
            asyncio.run(self._serve())
        except Exception as error:
            self._startup_error = error
            self._logger.error("UI server failed: %s", error, exc_info=True)
        finally:
            self._loop = None
            self._shutdown = None
            # Unblocks start() when binding failed.
            self._ready.set()

    async def _serve(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._shutdown = asyncio.Event()
        async with websockets.serve(
            self._handle_client,
            host=self._config.host,
            port=self._config.port,
            process_request=self._process_request,
            logger=self._logger,
        ):
            self._logger.info(
                "UI server listening on ws://%s:%d%s",
                self._config.host,
                self._config.port,
                self._config.websocket_path,
            )
            self._ready.set()
            await self._shutdown.wait()
            await self._send_all(
                lambda client: client.close(code=1001, reason="Server shutting down")
            )
            self._clients.clear()

    async def _handle_client(self, websocket: ServerConnection) -> None:
        request = websocket.request
        if request is None or urlsplit(request.path).path != self._config.websocket_path:
            await websocket.close(code=1008, reason="Invalid websocket path")
            return

        self._clients.add(websocket)
        self._logger.info("Client connected: %s", websocket.remote_address)
        try:
            await websocket.send(make_event(EVENT_HELLO, message="Timer websocket connected"))
            for message in self._sticky.snapshot():
                await websocket.send(message)
            async for raw in websocket:
                self._logger.debug("Received from client: %s", raw)
                await websocket.send(await self._reply_to(raw))
        except websockets.exceptions.ConnectionClosed:
            self._logger.info("Client disconnected: %s", websocket.remote_address)
        finally:
            self._clients.discard(websocket)

    async def _reply_to(self, raw: str | bytes) -> str:
        try:
            command = decode_command(raw)
        except CommandDecodeError as error:
            return make_event(EVENT_ERROR, message=str(error))

        handler = self._command_handler
        if handler is None:
            return make_event(EVENT_ERROR, message="Commands are not available")

        # Controller calls take a lock and write to disk; keep them off the loop.
        try:
            result = await asyncio.to_thread(handler, command)
        except Exception as error:
            self._logger.error("Command %s failed: %s", command["command"], error, exc_info=True)
            return make_event(EVENT_ERROR, message=f"Command failed: {command['command']}")
        return make_event(EVENT_COMMAND_RESULT, **result)

    async def _process_request(
        self,
        connection: ServerConnection,
        request: Request,
    ) -> Optional[Response]:
        del connection
        path = urlsplit(request.path).path
        if path == self._config.websocket_path:
            return None
        if path == self._config.healthz_path:
            return _plain_text_response(200, "OK", b"ok\n")
        return _plain_text_response(404, "Not Found", b"not found\n")

    async def _broadcast(self, message: str) -> None:
        failed = await self._send_all(lambda client: client.send(message))
        for client, error in failed:
            self._logger.warning("Dropping client %s: %s", client.remote_address, error)
            self._clients.discard(client)

    async def _send_all(
        self,
        send: Callable[[ServerConnection], Awaitable[None]],
    ) -> list[tuple[ServerConnection, BaseException]]:
        clients = tuple(self._clients)
        if not clients:
            return []
        results = await asyncio.gather(
            *(send(client) for client in clients),
            return_exceptions=True,
        )
        return [
            (client, result)
            for client, result in zip(clients, results)
            if isinstance(result, BaseException)
        ]


def _plain_text_response(status_code: int, reason_phrase: str, body: bytes) -> Response:
    headers = Headers()
    headers["Content-Type"] = "text/plain; charset=utf-8"
    headers["Content-Length"] = str(len(body))
    headers["Cache-Control"] = "no-store"
    return Response(status_code, reason_phrase, headers, body)
