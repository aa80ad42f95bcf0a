import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from functools import partial

from velohub.config import settings
from velohub.db.database import SqliteStorage, close_db, get_storage, init_db
from velohub.db.models import InviteRequest
from velohub.db.storage import Storage
from velohub.logging import setup_logging
from velohub.services.invite_service import InviteNotifier

setup_logging(level=logging.DEBUG if settings.debug else logging.INFO)
logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

MAX_BODY_BYTES = 64 * 1024


class RequestTooLargeError(ValueError):
    pass


_REASONS = {
    200: "OK",
    400: "Bad Request",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


@dataclass(slots=True)
class HttpResponse:
    status: int
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)

    def encode(self) -> bytes:
        headers = {**CORS_HEADERS, **self.headers, "Content-Length": str(len(self.body))}
        head = f"HTTP/1.1 {self.status} {_REASONS.get(self.status, '')}\r\n"
        head += "".join(f"{k}: {v}\r\n" for k, v in headers.items())
        return head.encode() + b"\r\n" + self.body


def _json_response(status: int, payload) -> HttpResponse:
    return HttpResponse(
        status,
        json.dumps(payload).encode(),
        {"Content-Type": "application/json"},
    )


async def _health(notifier: InviteNotifier, storage: Storage | None) -> HttpResponse:
    checks: dict[str, str] = {}
    if storage is None:
        checks["storage"] = "not configured"
    else:
        try:
            await storage.ping()
            checks["storage"] = "ok"
        except Exception as e:
            checks["storage"] = f"error: {e}"
    checks["email"] = "configured" if notifier.configured else "not configured"
    healthy = not checks["storage"].startswith("error")
    body = {"status": "healthy" if healthy else "unhealthy", "checks": checks}
    return _json_response(200 if healthy else 503, body)


async def handle_request(
    method: str,
    path: str,
    body: bytes,
    notifier: InviteNotifier,
    storage: Storage | None = None,
) -> HttpResponse:
    if method == "OPTIONS":
        return HttpResponse(200, b"ok")
    if method == "GET" and path == "/health":
        return await _health(notifier, storage)

    try:
        request = InviteRequest.from_payload(json.loads(body or b""))
        data = await notifier.send_invite(request)
    except Exception as exc:
        logger.error("Invite failed: %s", exc, extra={"method": method, "path": path})
        return _json_response(500, {"error": str(exc)})
    return _json_response(200, data)


async def _read_request(reader: asyncio.StreamReader) -> tuple[str, str, bytes]:
    head = await reader.readuntil(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    method, target, _ = lines[0].split(" ", 2)
    headers: dict[str, str] = {}
    for line in lines[1:]:
        if ":" in line:
            name, value = line.split(":", 1)
            headers[name.strip().lower()] = value.strip()
    length = int(headers.get("content-length") or 0)
    if length < 0:
        raise ValueError(f"Invalid Content-Length: {length}")
    if length > MAX_BODY_BYTES:
        raise RequestTooLargeError(f"Request body exceeds {MAX_BODY_BYTES} bytes")
    body = await reader.readexactly(length) if length else b""
    return method.upper(), target.split("?", 1)[0], body


async def _serve(
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
    notifier: InviteNotifier,
    storage: Storage | None = None,
):
    started = time.monotonic()
    method = path = "-"
    try:
        method, path, body = await _read_request(reader)
    except RequestTooLargeError:
        response = _json_response(400, {"error": "Request body too large"})
    except (asyncio.IncompleteReadError, asyncio.LimitOverrunError, ValueError):
        response = _json_response(400, {"error": "Malformed HTTP request"})
    else:
        response = await handle_request(method, path, body, notifier, storage)

    writer.write(response.encode())
    await writer.drain()
    writer.close()
    await writer.wait_closed()
    logger.info(
        "%s %s -> %d",
        method,
        path,
        response.status,
        extra={
            "method": method,
            "path": path,
            "status": response.status,
            "latency_ms": round((time.monotonic() - started) * 1000, 1),
        },
    )


async def main():
    storage = get_storage()
    if isinstance(storage, SqliteStorage):
        await init_db()

    notifier = InviteNotifier(settings.resend_api_key, settings.resend_api_url, settings.email_sender)
    if not notifier.configured:
        logger.warning("RESEND_API_KEY is not set; invite requests will fail")

    server = await asyncio.start_server(
        partial(_serve, notifier=notifier, storage=storage),
        settings.invite_host,
        settings.invite_port,
    )
    logger.info("Invite endpoint listening on %s:%d", settings.invite_host, settings.invite_port)
    try:
        async with server:
            await server.serve_forever()
    finally:
        logger.info("Shutting down gracefully...")
        await close_db()
        logger.info("Shutdown complete")


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
