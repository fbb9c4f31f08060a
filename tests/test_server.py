import asyncio
import shutil
import unittest
from pathlib import Path
from uuid import uuid4

from fastapi import WebSocketDisconnect
from fastapi.testclient import TestClient
from loguru import logger

from agent_gateway.app_config import RuntimeEnv, parse_app_config
from agent_gateway.bootstrap import bootstrap_runtime
from agent_gateway.server import create_app

from tests.fakes import FakeLauncher, FakeProvider, sse

PROJECT_ROOT = Path(__file__).resolve().parents[1]


class ServerTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp_dir = PROJECT_ROOT / ".test-artifacts" / f"server-{uuid4().hex}"
        self._tmp_dir.mkdir(parents=True, exist_ok=True)
        config = parse_app_config({
            "MemoryDbPath": str(self._tmp_dir / "messages.db"),
            "ArtifactDir": str(self._tmp_dir / "files"),
            "SettleMs": 0,
        })
        self.provider = FakeProvider(stream=[sse('{"response":"Hello"}', "[DONE]")])
        self.runtime = bootstrap_runtime(
            config,
            RuntimeEnv(None, None, None, None),
            provider=self.provider,
            launcher=FakeLauncher(),
            configure_logging=False,
        )
        self.client = TestClient(create_app(self.runtime))
        self.client.__enter__()

    def tearDown(self) -> None:
        self.client.__exit__(None, None, None)
        shutil.rmtree(self._tmp_dir, ignore_errors=True)

    def test_health(self) -> None:
        for path in ("/health", "/api/health"):
            response = self.client.get(path)
            self.assertEqual(200, response.status_code)
            self.assertEqual({"ok": True}, response.json())

    def test_session_issued_and_cookie_set(self) -> None:
        response = self.client.get("/api/session")
        session_id = response.json()["sessionId"]
        self.assertRegex(session_id, r"^[a-z0-9-]{8,}$")
        cookie = response.headers["set-cookie"]
        self.assertIn(f"cf_session={session_id}", cookie)
        self.assertIn("HttpOnly", cookie)
        self.assertIn("Max-Age=86400", cookie)
        self.assertTrue(self.runtime.registry.is_active(session_id))

        again = self.client.get("/api/session")
        self.assertEqual(session_id, again.json()["sessionId"])

    def test_expired_cookie_is_renewed(self) -> None:
        self.runtime.registry.register("stale-session-1", 0)
        self.assertFalse(self.runtime.registry.is_active("stale-session-1"))

        messages: list[str] = []
        sink_id = logger.add(lambda m: messages.append(m.record["message"]), level="INFO")
        try:
            self.client.cookies.set("cf_session", "stale-session-1")
            response = self.client.get("/api/session")
        finally:
            logger.remove(sink_id)

        self.assertEqual("stale-session-1", response.json()["sessionId"])
        self.assertTrue(self.runtime.registry.is_active("stale-session-1"))
        self.assertIn("Session cookie stale-session-1 had expired; renewing it", messages)

    def test_supplied_sid_wins(self) -> None:
        response = self.client.get("/api/session", params={"sid": "pinned-session-1"})
        self.assertEqual("pinned-session-1", response.json()["sessionId"])

    def test_invalid_sid_is_replaced(self) -> None:
        response = self.client.get("/api/session", params={"sid": "BAD"})
        self.assertNotEqual("BAD", response.json()["sessionId"])

    def test_file_download(self) -> None:
        asyncio.run(self.runtime.artifacts.put("files/session-1234/shot.png", b"\x89PNG", "image/png"))
        for prefix in ("/files", "/api/files"):
            response = self.client.get(f"{prefix}/session-1234/shot.png")
            self.assertEqual(200, response.status_code)
            self.assertEqual(b"\x89PNG", response.content)
            self.assertEqual("image/png", response.headers["content-type"])
            self.assertIn('inline; filename="shot.png"', response.headers["content-disposition"])

    def test_missing_file(self) -> None:
        self.assertEqual(404, self.client.get("/files/session-1234/missing.png").status_code)

    def test_socket_rejects_invalid_session_id(self) -> None:
        with self.assertRaises(WebSocketDisconnect) as ctx:
            with self.client.websocket_connect("/agents/ai-agent/short"):
                pass
        self.assertEqual(1008, ctx.exception.code)

    def test_socket_chat_round_trip(self) -> None:
        with self.client.websocket_connect("/agents/ai-agent/session-1234") as ws:
            ready = ws.receive_json()
            self.assertEqual("ready", ready["type"])
            self.assertEqual([], ready["state"]["messages"])

            ws.send_text("garbage")
            ws.send_json({"type": "chat", "text": "hello"})
            self.assertEqual({"type": "delta", "text": "Hello"}, ws.receive_json())
            self.assertEqual({"type": "done"}, ws.receive_json())

            ws.send_json({"type": "reset"})
            self.assertEqual({"type": "cleared"}, ws.receive_json())

        with self.client.websocket_connect("/agents/ai-agent/session-1234") as ws:
            self.assertEqual([], ws.receive_json()["state"]["messages"])

    def test_socket_rehydrates_history(self) -> None:
        with self.client.websocket_connect("/agents/ai-agent/session-5678") as ws:
            ws.receive_json()
            ws.send_json({"type": "chat", "text": "hello"})
            ws.receive_json()
            ws.receive_json()

        with self.client.websocket_connect("/agents/ai-agent/session-5678") as ws:
            messages = ws.receive_json()["state"]["messages"]
        self.assertEqual([("user", "hello"), ("assistant", "Hello")], [(m["role"], m["content"]) for m in messages])

    def test_tools_registered(self) -> None:
        self.assertEqual(["getWeather", "screenshot", "convertToPdf"], [t.name for t in self.runtime.tools])
