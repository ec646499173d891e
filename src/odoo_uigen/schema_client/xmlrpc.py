"""
odoo-uigen — Odoo external API schema client

Purpose
- Introspect models through Odoo's XML-RPC external API:
  ``common.authenticate`` once per client, then
  ``object.execute_kw(db, uid, password, model, 'fields_get', [], {...})``.

Functional requirements
- Map transport and server faults onto ``Unreachable``/``Unauthorized``.
- Never block the event loop; blocking XML-RPC calls run in a worker thread.

Non-functional requirements
- The password never appears in exception messages or log records.
"""

from __future__ import annotations

import asyncio
import http.client
import logging
import threading
import xmlrpc.client
from collections.abc import Callable
from typing import Final
from xml.parsers.expat import ExpatError

from odoo_uigen.domain.models import FieldMetadata
from odoo_uigen.schema_client.base import Unauthorized, Unreachable, parse_fields_get

logger = logging.getLogger(__name__)

FIELDS_GET_ATTRIBUTES: Final[tuple[str, ...]] = (
    "type",
    "string",
    "required",
    "readonly",
    "relation",
    "selection",
    "help",
    "compute",
    "depends",
)

_ACCESS_FAULT_MARKERS: Final[tuple[str, ...]] = (
    "accesserror",
    "accessdenied",
    "access denied",
    "not allowed to access",
)

# Broken connections, truncated responses and non-XML bodies (e.g. an HTML proxy page).
_TRANSPORT_ERRORS: Final[tuple[type[Exception], ...]] = (
    OSError,
    http.client.HTTPException,
    ExpatError,
    xmlrpc.client.ResponseError,
)

ServerProxyFactory = Callable[[str], xmlrpc.client.ServerProxy]


class _TimeoutTransport(xmlrpc.client.Transport):
    def __init__(self, timeout: float) -> None:
        super().__init__()
        self._timeout = timeout

    def make_connection(self, host: object) -> http.client.HTTPConnection:
        connection = super().make_connection(host)  # type: ignore[arg-type]
        connection.timeout = self._timeout
        return connection


class _TimeoutSafeTransport(xmlrpc.client.SafeTransport):
    def __init__(self, timeout: float) -> None:
        super().__init__()
        self._timeout = timeout

    def make_connection(self, host: object) -> http.client.HTTPConnection:
        connection = super().make_connection(host)  # type: ignore[arg-type]
        connection.timeout = self._timeout
        return connection


class OdooXmlRpcClient:
    """Schema client backed by the Odoo XML-RPC external API."""

    def __init__(
        self,
        url: str,
        database: str,
        username: str,
        password: str,
        *,
        timeout_seconds: float = 30.0,
        server_proxy_factory: ServerProxyFactory | None = None,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        self._url = url.rstrip("/")
        self._database = database
        self._username = username
        self._password = password
        self._timeout_seconds = timeout_seconds
        self._proxy_factory = server_proxy_factory or self._default_proxy
        self._uid: int | None = None
        self._auth_lock = threading.Lock()

    @property
    def url(self) -> str:
        return self._url

    def __repr__(self) -> str:
        return (
            f"OdooXmlRpcClient(url={self._url!r}, database={self._database!r}, "
            f"username={self._username!r})"
        )

    async def fetch_model_schema(self, model_name: str) -> list[FieldMetadata]:
        return await asyncio.to_thread(self._fetch_sync, model_name)

    def _fetch_sync(self, model_name: str) -> list[FieldMetadata]:
        uid = self._authenticate(model_name)
        proxy = self._proxy_factory(f"{self._url}/xmlrpc/2/object")
        logger.debug("fields_get %s", model_name, extra={"model": model_name})
        try:
            payload = proxy.execute_kw(
                self._database,
                uid,
                self._password,
                model_name,
                "fields_get",
                [],
                {"attributes": list(FIELDS_GET_ATTRIBUTES)},
            )
        except xmlrpc.client.Fault as exc:
            raise self._classify_fault(exc, model_name) from None
        except xmlrpc.client.ProtocolError as exc:
            raise self._classify_protocol_error(exc, model_name) from None
        except _TRANSPORT_ERRORS as exc:
            raise Unreachable(f"transport failure: {exc}", model=model_name) from None
        return parse_fields_get(payload, model=model_name)

    def _authenticate(self, model_name: str) -> int:
        with self._auth_lock:
            if self._uid is not None:
                return self._uid
            proxy = self._proxy_factory(f"{self._url}/xmlrpc/2/common")
            try:
                uid = proxy.authenticate(self._database, self._username, self._password, {})
            except xmlrpc.client.Fault as exc:
                raise self._classify_fault(exc, model_name) from None
            except xmlrpc.client.ProtocolError as exc:
                raise self._classify_protocol_error(exc, model_name) from None
            except _TRANSPORT_ERRORS as exc:
                raise Unreachable(f"transport failure: {exc}", model=model_name) from None
            # Odoo answers a rejected login with False rather than a fault.
            if isinstance(uid, bool) or not isinstance(uid, int):
                raise Unauthorized(
                    f"authentication rejected for user {self._username!r} on {self._database!r}",
                    model=model_name,
                )
            self._uid = uid
            logger.info("authenticated against %s as uid %d", self._url, uid)
            return uid

    def _classify_fault(self, fault: xmlrpc.client.Fault, model_name: str) -> Exception:
        text = str(fault.faultString)
        lowered = text.lower()
        summary = text.strip().splitlines()[-1] if text.strip() else "server fault"
        if any(marker in lowered for marker in _ACCESS_FAULT_MARKERS):
            return Unauthorized(summary, model=model_name)
        return Unreachable(summary, model=model_name)

    def _classify_protocol_error(
        self, error: xmlrpc.client.ProtocolError, model_name: str
    ) -> Exception:
        detail = f"HTTP {error.errcode} {error.errmsg}"
        if error.errcode in {401, 403}:
            return Unauthorized(detail, model=model_name)
        return Unreachable(detail, model=model_name)

    def _default_proxy(self, endpoint: str) -> xmlrpc.client.ServerProxy:
        transport: xmlrpc.client.Transport
        if endpoint.startswith("https://"):
            transport = _TimeoutSafeTransport(self._timeout_seconds)
        else:
            transport = _TimeoutTransport(self._timeout_seconds)
        return xmlrpc.client.ServerProxy(endpoint, transport=transport, allow_none=True)


__all__ = ["FIELDS_GET_ATTRIBUTES", "OdooXmlRpcClient", "ServerProxyFactory"]
