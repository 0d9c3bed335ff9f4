"""
JSON-RPC connection over the daemon's stdio.

Requests carry ids and responses are matched by id, but the daemon works on one
project and processes messages sequentially, so the connection still keeps at
most one request outstanding.
"""

import asyncio
from typing import Any, Protocol

from fable_vite.daemon.protocol import HEADER_SEPARATOR, decode_body, encode_message, parse_headers
from fable_vite.infra.exceptions import CompilationError, TransportError
from fable_vite.infra.observability import get_logger

logger = get_logger(__name__)


class MessageWriter(Protocol):
    def write(self, data: bytes) -> None: ...

    async def drain(self) -> None: ...


class JsonRpcConnection:
    """
    Request/response endpoint over a framed byte stream.

    Usage:
        connection = JsonRpcConnection(process.stdout, process.stdin)
        connection.start()
        result = await connection.request("fable/compile", {"fileNames": [...]})
        await connection.close()
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: MessageWriter,
        request_timeout: float | None = None,
        debug: bool = False,
    ):
        """
        Args:
            reader: Stream carrying daemon output
            writer: Stream carrying daemon input
            request_timeout: Seconds to wait for a response (None = forever)
            debug: Log full request/response payloads
        """
        self._reader = reader
        self._writer = writer
        self.request_timeout = request_timeout
        self.debug = debug

        self._request_id = 0
        self._pending: dict[int, asyncio.Future] = {}
        self._request_lock = asyncio.Lock()
        self._reader_task: asyncio.Task | None = None
        self._closed: TransportError | None = None

    @property
    def is_open(self) -> bool:
        return self._closed is None

    def start(self) -> None:
        if self._reader_task is None:
            self._reader_task = asyncio.create_task(self._read_loop())

    async def request(self, method: str, params: dict[str, Any]) -> Any:
        """
        Send a request and wait for its result.

        Raises:
            TransportError: connection closed, write failed, timeout, or the
                reader hit a malformed frame
            CompilationError: daemon answered with a JSON-RPC error object
        """
        async with self._request_lock:
            if self._closed is not None:
                raise self._closed

            request_id = self._request_id
            self._request_id += 1

            future: asyncio.Future = asyncio.get_running_loop().create_future()
            self._pending[request_id] = future

            message = {"jsonrpc": "2.0", "id": request_id, "method": method, "params": params}
            if self.debug:
                logger.debug("daemon_request", id=request_id, method=method, params=params)

            try:
                self._writer.write(encode_message(message))
                await self._writer.drain()
            except (BrokenPipeError, ConnectionResetError, OSError) as e:
                self._pending.pop(request_id, None)
                raise TransportError("Failed to write to daemon", details={"method": method, "cause": str(e)}) from e

            try:
                if self.request_timeout is None:
                    return await future
                return await asyncio.wait_for(future, timeout=self.request_timeout)
            except asyncio.TimeoutError as e:
                raise TransportError(
                    f"Daemon did not answer within {self.request_timeout}s",
                    details={"method": method},
                ) from e
            finally:
                self._pending.pop(request_id, None)

    async def close(self) -> None:
        if self._reader_task is not None and not self._reader_task.done():
            self._reader_task.cancel()
            try:
                await self._reader_task
            except asyncio.CancelledError:
                pass
        self._reader_task = None
        self._shutdown(TransportError("Connection closed"))

    # ------------------------------------------------------------------------
    # Reader
    # ------------------------------------------------------------------------

    async def _read_loop(self) -> None:
        try:
            while True:
                message = await self._read_message()
                if message is None:
                    self._shutdown(TransportError("Daemon closed its output stream"))
                    return
                self._handle_message(message)
        except TransportError as e:
            logger.error("daemon_stream_corrupted", error=e.message, **e.details)
            self._shutdown(e)
        except Exception as e:
            logger.error("daemon_reader_failed", error=str(e), exc_info=True)
            self._shutdown(TransportError("Daemon reader failed", details={"cause": repr(e)[:200]}))

    async def _read_message(self) -> dict[str, Any] | None:
        try:
            header = await self._reader.readuntil(HEADER_SEPARATOR)
        except asyncio.IncompleteReadError as e:
            if not e.partial.strip():
                return None
            raise TransportError("Truncated header from daemon") from e
        except asyncio.LimitOverrunError as e:
            raise TransportError("Header from daemon exceeds buffer limit") from e

        length = parse_headers(header[: -len(HEADER_SEPARATOR)])

        try:
            body = await self._reader.readexactly(length)
        except asyncio.IncompleteReadError as e:
            raise TransportError("Truncated message from daemon", details={"expected": length}) from e

        try:
            return decode_body(body)
        except TransportError as e:
            # Framing is intact, only this payload is unusable
            self._fail_pending(e)
            return {}

    def _handle_message(self, message: dict[str, Any]) -> None:
        if not message:
            return

        if "result" in message or "error" in message:
            request_id = message.get("id")
            if not isinstance(request_id, int) or isinstance(request_id, bool):
                self._fail_pending(
                    TransportError("Response id is not an integer", details={"id": repr(request_id)[:50]})
                )
                return

            future = self._pending.get(request_id)
            if future is None or future.done():
                logger.warning("daemon_unexpected_response", id=request_id)
                return

            if self.debug:
                logger.debug("daemon_response", id=request_id, message=message)

            if "error" in message:
                error = message["error"]
                if not isinstance(error, dict):
                    future.set_exception(
                        TransportError("Malformed error object from daemon", details={"error": repr(error)[:200]})
                    )
                    return
                future.set_exception(CompilationError(str(error.get("message", "Daemon error"))))
            else:
                future.set_result(message["result"])
            return

        if "method" in message:
            logger.debug("daemon_notification", method=message["method"])
            return

        self._fail_pending(TransportError("Unrecognized message from daemon", details={"keys": sorted(message)}))

    def _fail_pending(self, error: TransportError) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(error)

    def _shutdown(self, error: TransportError) -> None:
        if self._closed is None:
            self._closed = error
        self._fail_pending(error)
