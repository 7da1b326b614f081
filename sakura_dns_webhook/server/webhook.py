"""
Webhook server module for Sakura DNS Webhook.

This module exposes the reconciler through the external-dns webhook provider HTTP API.
"""

import asyncio
import json
import logging
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from threading import Thread
from typing import Any, Optional

from sakura_dns_webhook.models.errors import ConflictError, ValidationError, WebhookError
from sakura_dns_webhook.models.models import SUPPORTED_RECORD_TYPES, Changes, Endpoint

MEDIA_TYPE = "application/external.dns.webhook+json;version=1"


class WebhookHandler(BaseHTTPRequestHandler):
    """
    HTTP request handler for the external-dns webhook endpoints.
    """

    def __init__(self, *args, **kwargs):
        self.logger = logging.getLogger("sakura-dns-webhook.webhook")
        super().__init__(*args, **kwargs)

    def do_GET(self):
        """
        Handle GET requests.
        """
        if self.path == "/":
            self._handle_negotiate()
        elif self.path == "/healthz":
            self._send_json(200, {"status": "ok"})
        elif self.path == "/records":
            self._handle_records()
        elif self.path == "/adjustendpoints":
            self._send_error(405, "method not allowed")
        else:
            self._send_error(404, "not found")

    def do_POST(self):
        """
        Handle POST requests.
        """
        if self.path == "/records":
            self._handle_apply_changes()
        elif self.path == "/adjustendpoints":
            self._handle_adjust_endpoints()
        elif self.path in ("/", "/healthz"):
            self._send_error(405, "method not allowed")
        else:
            self._send_error(404, "not found")

    def _handle_negotiate(self):
        reconciler = self.server.reconciler
        self._send_json(
            200,
            {
                "domainFilter": [reconciler.zone_name],
                "recordTypes": SUPPORTED_RECORD_TYPES,
            },
        )

    def _handle_records(self):
        start = time.monotonic()
        reconciler = self.server.reconciler
        try:
            endpoints = self.server.run(
                reconciler.records(timeout=self.server.request_timeout)
            )
        except WebhookError as e:
            self.logger.error(f"Error listing records: {e}")
            self._send_error(500, "failed to list DNS records")
            return
        except Exception as e:
            self.logger.exception(f"Unexpected error listing records: {e}")
            self._send_error(500, "failed to list DNS records")
            return

        self._send_json(200, [endpoint.to_dict() for endpoint in endpoints])
        self.logger.info(
            f"Returned {len(endpoints)} records (took {time.monotonic() - start:.3f}s)"
        )

    def _handle_apply_changes(self):
        if not self._check_content_type():
            return

        try:
            changes = Changes.from_dict(self._read_json())
        except ValidationError as e:
            self.logger.error(f"Error decoding change request: {e}")
            self._send_error(400, "failed to decode request payload")
            return

        reconciler = self.server.reconciler
        try:
            self.server.run(
                reconciler.apply_changes(changes, timeout=self.server.request_timeout)
            )
        except ValidationError as e:
            self.logger.error(f"Invalid change request: {e}")
            self._send_error(400, "invalid change request")
            return
        except ConflictError as e:
            self.logger.error(f"Conflict applying changes: {e}")
            self._send_error(409, "zone was modified concurrently")
            return
        except WebhookError as e:
            self.logger.error(f"Error applying changes: {e}")
            self._send_error(500, "failed to apply DNS changes")
            return
        except Exception as e:
            self.logger.exception(f"Unexpected error applying changes: {e}")
            self._send_error(500, "failed to apply DNS changes")
            return

        self.send_response(204)
        self.send_header("Content-Type", MEDIA_TYPE)
        self.end_headers()
        self.logger.info("Successfully applied DNS changes")

    def _handle_adjust_endpoints(self):
        if not self._check_content_type():
            return

        try:
            payload = self._read_json()
            if not isinstance(payload, list):
                raise ValidationError("Desired endpoints must be a JSON list")
            desired = [None if item is None else Endpoint.from_dict(item) for item in payload]
        except ValidationError as e:
            self.logger.error(f"Error decoding desired endpoints: {e}")
            self._send_error(400, "failed to decode desired endpoints")
            return

        adjusted = self.server.reconciler.adjust_endpoints(desired)
        self._send_json(200, [endpoint.to_dict() for endpoint in adjusted])

    def _check_content_type(self) -> bool:
        content_type = (self.headers.get("Content-Type") or "").replace(" ", "")
        if content_type != MEDIA_TYPE:
            self.logger.warning(f"Invalid Content-Type: {content_type}")
            self._send_error(415, "invalid content type")
            return False
        return True

    def _read_json(self) -> Any:
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length else b""
        self.logger.debug(f"Raw request body: {body!r}")
        try:
            return json.loads(body or b"null")
        except ValueError as e:
            raise ValidationError(f"Invalid JSON: {e}") from e

    def _send_json(self, status: int, payload: Any):
        body = json.dumps(payload).encode()
        self.send_response(status)
        self.send_header("Content-Type", MEDIA_TYPE)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_error(self, status: int, message: str):
        body = f"{message}\n".encode()
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        """
        Override log_message to use the application logger.
        """
        self.logger.debug(format % args)


class WebhookHTTPServer(ThreadingHTTPServer):
    """
    Threading HTTP server that hands coroutines to a shared event loop.
    """

    daemon_threads = True

    def __init__(self, address, reconciler, loop: asyncio.AbstractEventLoop, request_timeout: float):
        super().__init__(address, WebhookHandler)
        self.reconciler = reconciler
        self.loop = loop
        self.request_timeout = request_timeout

    def run(self, coro):
        """
        Run a coroutine on the event loop and wait for its result.
        """
        return asyncio.run_coroutine_threadsafe(coro, self.loop).result()


class WebhookServer:
    """
    HTTP server for the external-dns webhook API.
    """

    def __init__(
        self,
        reconciler,
        loop: asyncio.AbstractEventLoop,
        host: str = "0.0.0.0",
        port: int = 8888,
        request_timeout: float = 10.0,
    ):
        """
        Initialize a WebhookServer.

        Args:
            reconciler: Reconciler serving the requests
            loop: Running event loop the reconciler's coroutines are scheduled on
            host: Host to bind to
            port: Port to bind to
            request_timeout: Seconds allowed for zone store access per request
        """
        self.reconciler = reconciler
        self.loop = loop
        self.host = host
        self.port = port
        self.request_timeout = request_timeout
        self.server: Optional[WebhookHTTPServer] = None
        self.thread: Optional[Thread] = None
        self.logger = logging.getLogger("sakura-dns-webhook.webhook")

    @property
    def address(self):
        return self.server.server_address if self.server else (self.host, self.port)

    def start(self):
        """
        Start the webhook server in a background thread.
        """
        self.server = WebhookHTTPServer(
            (self.host, self.port), self.reconciler, self.loop, self.request_timeout
        )
        self.thread = Thread(target=self.server.serve_forever)
        self.thread.daemon = True
        self.thread.start()
        host, port = self.server.server_address[:2]
        self.logger.info(f"Starting webhook HTTP server at {host}:{port}")

    def stop(self):
        """
        Stop the webhook server.
        """
        if self.server:
            self.server.shutdown()
            self.server.server_close()
            self.logger.info("Webhook server stopped")
