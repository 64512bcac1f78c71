"""FastAPI application: live WebSocket endpoint and push subscription API."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .cache import ReferenceDataCache
from .config import Settings, get_config
from .connections import LiveConnection, parse_register_message
from .data_fetcher import FPLDataFetcher
from .engine import LiveEngine
from .notifications import NotificationDispatcher
from .scheduler import PollScheduler
from .schemas import SubscribeRequest, UnsubscribeRequest

logger = logging.getLogger('fpllive.server')


def build_engine(settings: Settings) -> LiveEngine:
    """
    Construct the engine from settings.

    Raises:
        ConfigurationError: If the VAPID credentials are missing
    """
    dispatcher = NotificationDispatcher(
        vapid_public_key=settings.vapid_public_key,
        vapid_private_key=settings.vapid_private_key,
        vapid_email=settings.vapid_email,
        icon=settings.notification_icon,
        timeout=settings.request_timeout,
    )
    fetcher = FPLDataFetcher(base_url=settings.api_base_url, timeout=settings.request_timeout)
    return LiveEngine(
        fetcher=fetcher,
        dispatcher=dispatcher,
        cache=ReferenceDataCache(live_window_hours=settings.live_window_hours),
    )


def _bad_request(error: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={'error': error})


async def _read_json(request: Request) -> Optional[dict]:
    try:
        body = await request.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def create_app(settings: Optional[Settings] = None, engine: Optional[LiveEngine] = None) -> FastAPI:
    """
    Build the FastAPI app.

    The engine is built here (so missing credentials stop the process
    before it serves anything). The first poll cycle runs during startup,
    before the first connection is accepted.
    """
    settings = settings or get_config()
    engine = engine or build_engine(settings)
    scheduler = PollScheduler(
        engine.run_cycle,
        live_interval=settings.live_poll_interval,
        idle_interval=settings.idle_poll_interval,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await scheduler.start()
        app.state.ready = True
        logger.info('FPL live server ready')
        try:
            yield
        finally:
            app.state.ready = False
            await scheduler.stop()

    app = FastAPI(title='FPL Live', lifespan=lifespan)
    app.state.engine = engine
    app.state.scheduler = scheduler
    app.state.ready = False

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    @app.get('/')
    async def root() -> dict:
        return {'message': 'FPL WebSocket server running'}

    @app.get('/health')
    async def health() -> dict:
        return {'status': 'ok', 'ready': app.state.ready, 'mode': scheduler.mode}

    @app.post('/api/push/subscribe')
    async def subscribe(request: Request):
        body = await _read_json(request)
        if not body or not body.get('teamId') or not body.get('subscription'):
            return _bad_request('Missing required fields')
        try:
            payload = SubscribeRequest.model_validate(body)
        except ValidationError as e:
            logger.info(f'Rejected push subscription: {e.error_count()} validation errors')
            return _bad_request('Invalid subscription')
        await engine.add_subscription(payload.teamId, payload.subscription)
        return {'success': True}

    @app.delete('/api/push/unsubscribe')
    async def unsubscribe(request: Request):
        body = await _read_json(request)
        if not body or not body.get('teamId') or not body.get('endpoint'):
            return _bad_request('Missing required fields')
        try:
            payload = UnsubscribeRequest.model_validate(body)
        except ValidationError:
            return _bad_request('Invalid request')
        engine.remove_subscription(payload.teamId, payload.endpoint)
        return {'success': True}

    @app.get('/api/push/vapid-public-key')
    async def vapid_public_key() -> dict:
        return {'key': engine.get_public_key()}

    async def live_socket(websocket: WebSocket) -> None:
        await websocket.accept()
        connection = LiveConnection(websocket)
        logger.info(f'Client connected: {connection.label}')
        try:
            while True:
                frame = await websocket.receive()
                if frame['type'] == 'websocket.disconnect':
                    break
                raw = frame.get('text')
                if raw is None:
                    raw = frame.get('bytes')
                message = parse_register_message(raw)
                if message is None:
                    logger.debug(f'Ignoring malformed message from {connection.label}')
                    continue
                await engine.register_connection(connection, message.teamId)
        except WebSocketDisconnect:
            pass
        finally:
            engine.unregister_connection(connection)

    app.add_api_websocket_route('/', live_socket)
    app.add_api_websocket_route('/ws', live_socket)

    return app
