from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse, Response
from loguru import logger

from agent_gateway.bootstrap import AppRuntime
from agent_gateway.memory import new_session_id, valid_session_id

SESSION_COOKIE = "cf_session"
POLICY_VIOLATION = 1008


def create_app(runtime: AppRuntime) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        for description in runtime.log_descriptions:
            logger.info(f"Logging to {description}")
        logger.info(
            f"Gateway ready: provider={runtime.config.provider_name}, model={runtime.config.model}, "
            f"tools={[t.name for t in runtime.tools]}"
        )
        yield
        await runtime.close()
        logger.info("Gateway stopped")

    app = FastAPI(title="agent-gateway", lifespan=lifespan)
    app.state.runtime = runtime

    @app.websocket("/agents/ai-agent/{session_id}")
    async def agent_socket(websocket: WebSocket, session_id: str):
        if valid_session_id(session_id) is None:
            logger.warning(f"Rejected socket for invalid session id {session_id!r}")
            await websocket.close(code=POLICY_VIOLATION)
            return

        await websocket.accept()

        async def emit(event: dict) -> None:
            await websocket.send_json(event)

        with logger.contextualize(session_id=session_id):
            logger.info("Socket connected")
            try:
                await runtime.hub.connect(session_id, emit)
                while True:
                    message = await websocket.receive()
                    if message["type"] == "websocket.disconnect":
                        break
                    raw = message.get("text")
                    if raw is None:
                        continue
                    try:
                        await runtime.hub.dispatch(session_id, raw, emit)
                    except WebSocketDisconnect:
                        raise
                    except Exception as ex:
                        logger.exception(f"Handler error: {ex}")
            except WebSocketDisconnect:
                pass
            finally:
                runtime.hub.disconnect(session_id)
            logger.info("Socket closed")

    @app.get("/api/session")
    async def issue_session(request: Request, sid: str | None = None):
        supplied = valid_session_id(sid)
        existing = valid_session_id(request.cookies.get(SESSION_COOKIE))
        session_id = supplied or existing or new_session_id()

        if existing and not supplied and not runtime.registry.is_active(existing):
            logger.info(f"Session cookie {existing} had expired; renewing it")

        ttl = runtime.config.session_ttl_seconds
        runtime.registry.register(session_id, ttl)
        logger.info(f"Session issued {session_id} supplied={bool(supplied)} reused={bool(existing)}")

        response = JSONResponse({"sessionId": session_id})
        response.set_cookie(SESSION_COOKIE, session_id, max_age=ttl, path="/", samesite="lax", httponly=True)
        return response

    async def _serve_file(sid: str, name: str, cache_control: str) -> Response:
        artifact = await runtime.artifacts.get(f"files/{sid}/{name}")
        if artifact is None:
            return Response("Not found", status_code=404, media_type="text/plain")
        filename = name.rsplit("/", 1)[-1].replace('"', "")
        return Response(
            artifact.data,
            media_type=artifact.content_type,
            headers={
                "content-disposition": f'inline; filename="{filename}"',
                "cache-control": cache_control,
            },
        )

    @app.get("/files/{sid}/{name:path}")
    async def download_file(sid: str, name: str):
        return await _serve_file(sid, name, "private, max-age=0, must-revalidate")

    @app.get("/api/files/{sid}/{name:path}")
    async def download_api_file(sid: str, name: str):
        return await _serve_file(sid, name, "public, max-age=3600")

    @app.get("/health")
    @app.get("/api/health")
    async def health():
        return {"ok": True}

    return app
