"""WSGI middleware rejecting requests according to the client's address."""

from __future__ import annotations

import dataclasses
import logging
from http import HTTPStatus
from typing import Any, Callable, Iterable

from .config import Config, DefaultAction
from .evaluator import Evaluator, GeoblockError, Lookup

log = logging.getLogger(__name__)

_ACME_CHALLENGE_PREFIX = "/.well-known/acme-challenge/"
_IP_HEADERS = ("HTTP_X_FORWARDED_FOR", "HTTP_X_REAL_IP")

WSGIApp = Callable[[dict, Callable[..., Any]], Iterable[bytes]]


class Plugin:
    """Filters requests by the addresses in X-Forwarded-For and X-Real-IP."""

    def __init__(
        self,
        next_app: WSGIApp | None,
        config: Config | None,
        name: str,
        lookups: Iterable[Lookup] | None = None,
    ) -> None:
        if next_app is None:
            raise GeoblockError(f"{name}: no next handler provided")
        if config is None:
            raise GeoblockError(f"{name}: no config provided")
        if config.default_action not in (DefaultAction.ALLOW, DefaultAction.BLOCK):
            raise GeoblockError(f"{name}: invalid default action: {config.default_action}")

        self.config = dataclasses.replace(config)
        self.name = name
        self.next_app = next_app
        self._evaluator: Evaluator | None = None

        if not config.enabled:
            log.info("%s: disabled", name)
            return

        try:
            self._status = HTTPStatus(config.disallowed_status_code)
        except ValueError:
            raise GeoblockError(
                f"{name}: {config.disallowed_status_code} is not a valid http status code"
            ) from None

        lookups = list(lookups or ())
        if not lookups:
            raise GeoblockError(f"{name}: no lookup configured")

        try:
            evaluator = Evaluator(name, config)
        except GeoblockError as exc:
            raise GeoblockError(f"{name}: evaluator: {exc}") from exc
        for lookup in lookups:
            evaluator.add_lookup(lookup)
        self._evaluator = evaluator

    def __call__(self, environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        if self._evaluator is None:
            return self.next_app(environ, start_response)

        path = environ.get("SCRIPT_NAME", "") + environ.get("PATH_INFO", "")
        if self.config.allow_lets_encrypt and path.startswith(_ACME_CHALLENGE_PREFIX):
            return self.next_app(environ, start_response)

        host = environ.get("HTTP_HOST", environ.get("SERVER_NAME", ""))
        method = environ.get("REQUEST_METHOD", "")
        for ip in self.collect_ips(environ):
            try:
                allowed, country = self._evaluator.evaluate(ip)
            except GeoblockError as exc:
                log.warning("%s: [%s %s %s] - %s", self.name, host, method, path, exc)
                return self._deny(start_response)
            if not allowed:
                log.info(
                    "%s: [%s %s %s] blocked request from %s (%s)",
                    self.name, host, method, path, country.upper(), ip,
                )
                return self._deny(start_response)

        return self.next_app(environ, start_response)

    def collect_ips(self, environ: dict) -> list[str]:
        """Return the distinct addresses named by X-Forwarded-For and X-Real-IP."""
        seen: dict[str, None] = {}
        for key in _IP_HEADERS:
            for ip in environ.get(key, "").split(","):
                ip = ip.strip()
                if ip:
                    seen[ip] = None
        return list(seen)

    def _deny(self, start_response: Callable[..., Any]) -> list[bytes]:
        start_response(
            f"{self._status.value} {self._status.phrase}",
            [("Content-Length", "0")],
        )
        return []