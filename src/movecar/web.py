"""JSON HTTP surface for movecar, served with :mod:`aiohttp.web`.

Every route takes the logical user from the ``u`` query parameter.
Failures use the envelope ``{"success": false, "error": "..."}``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from aiohttp import web
from pydantic import BaseModel, ValidationError

from movecar.exceptions import BackingStoreUnavailableError, BadRequestError, MoveCarError, RateLimitedError
from movecar.models import ConfirmRequest, NotifyRequest, normalize_session_id
from movecar.service import MoveCarService

_logger = logging.getLogger(__name__)

SERVICE_KEY = web.AppKey("movecar_service", MoveCarService)

routes = web.RouteTableDef()


def _failure(message: str, status: int, *, headers: dict[str, str] | None = None) -> web.Response:
    return web.json_response({"success": False, "error": message}, status=status, headers=headers)


def _service(request: web.Request) -> MoveCarService:
    return request.app[SERVICE_KEY]


def _user(request: web.Request) -> str | None:
    return request.query.get("u")


async def _parse_body(request: web.Request, model: type[BaseModel]) -> Any:
    if not request.body_exists:
        return model()
    try:
        payload = await request.json()
    except json.JSONDecodeError as exc:
        raise BadRequestError(f"Invalid JSON body: {exc.msg}") from exc
    except UnicodeDecodeError as exc:
        raise BadRequestError(f"Body is not valid {exc.encoding}") from exc
    if payload is None:
        payload = {}
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise BadRequestError(f"Invalid request body: {exc.error_count()} error(s)") from exc


@routes.post("/api/notify")
async def notify(request: web.Request) -> web.Response:
    service = _service(request)
    try:
        body: NotifyRequest = await _parse_body(request, NotifyRequest)
        await service.notify(
            _user(request),
            body.message,
            body.location,
            body.session_id,
            origin=str(request.url.origin()),
        )
    except BadRequestError as exc:
        return _failure(str(exc), 400)
    except RateLimitedError as exc:
        headers = {"Retry-After": str(int(exc.retry_after))} if exc.retry_after else None
        return _failure(str(exc), 429, headers=headers)
    except BackingStoreUnavailableError:
        _logger.exception("Store unavailable during notify")
        return _failure("Storage temporarily unavailable", 503)
    except MoveCarError as exc:
        _logger.exception("Notify failed")
        return _failure(str(exc), 500)
    return web.json_response({"success": True})


@routes.get("/api/get-location")
async def get_location(request: web.Request) -> web.Response:
    try:
        location = await _service(request).get_location(_user(request))
    except BackingStoreUnavailableError:
        _logger.exception("Store unavailable during get-location")
        return _failure("Storage temporarily unavailable", 503)
    return web.json_response(location.to_wire() if location is not None else {})


@routes.post("/api/owner-confirm")
async def owner_confirm(request: web.Request) -> web.Response:
    try:
        body: ConfirmRequest = await _parse_body(request, ConfirmRequest)
        await _service(request).confirm(_user(request), body.location)
    except BadRequestError as exc:
        return _failure(str(exc), 400)
    except BackingStoreUnavailableError:
        _logger.exception("Store unavailable during owner-confirm")
        return _failure("Storage temporarily unavailable", 503)
    return web.json_response({"success": True})


@routes.get("/api/check-status")
async def check_status(request: web.Request) -> web.Response:
    try:
        token = normalize_session_id(request.query.get("s"))
        snapshot = await _service(request).check_status(_user(request), token)
    except BackingStoreUnavailableError:
        _logger.exception("Store unavailable during check-status")
        return _failure("Storage temporarily unavailable", 503)
    return web.json_response(snapshot.to_wire())


@routes.get("/health")
async def health(_request: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


async def _service_lifecycle(app: web.Application) -> AsyncIterator[None]:
    async with app[SERVICE_KEY]:
        yield


def create_app(service: MoveCarService) -> web.Application:
    """Build the aiohttp application serving *service*."""
    app = web.Application()
    app[SERVICE_KEY] = service
    app.cleanup_ctx.append(_service_lifecycle)
    app.add_routes(routes)
    return app
