from __future__ import annotations

import unittest

from fastapi.testclient import TestClient

from tinyfunge.webui import SessionStore, create_app

HELLO = '"olleh",,,,,@'


class WebUISessionApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(create_app())

    def _create_session(self, *, code: str = HELLO, **payload):
        body = {"code": code}
        body.update(payload)
        response = self.client.post("/api/session", json=body)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def test_create_session_returns_initial_state(self) -> None:
        data = self._create_session()
        self.assertIn("session_id", data)
        self.assertEqual(len(data["history"]), data["history_size"])
        self.assertEqual(data["state"]["step"], 0)
        self.assertEqual(data["state"]["direction"], "right")
        self.assertIsNone(data["state"]["operator"])
        self.assertEqual(data["history"][0]["col"], 0)
        self.assertFalse(data["finished"])
        self.assertIsNone(data["error"])
        self.assertEqual(data["total_steps"], 13)
        self.assertFalse(data["total_steps_capped"])

    def test_total_steps_capped_for_endless_program(self) -> None:
        data = self._create_session(code="><")
        self.assertTrue(data["total_steps_capped"])
        self.assertEqual(data["total_steps"], 10000)

    def test_step_advances_state(self) -> None:
        data = self._create_session()
        session_id = data["session_id"]

        response = self.client.post(f"/api/session/{session_id}/step", json={"count": 3})
        self.assertEqual(response.status_code, 200, response.text)
        payload = response.json()
        self.assertEqual(len(payload["states"]), 3)
        self.assertEqual(payload["states"][0]["step"], 1)
        self.assertEqual(payload["states"][0]["mode"], "string")
        self.assertEqual(
            payload["states"][-1]["stack"],
            [{"kind": "character", "value": ord("o")}, {"kind": "character", "value": ord("l")}],
        )
        self.assertEqual(payload["history"][-1]["step"], payload["states"][-1]["step"])
        self.assertFalse(payload["finished"])

    def test_reset_restores_initial_state(self) -> None:
        data = self._create_session()
        session_id = data["session_id"]
        self.client.post(f"/api/session/{session_id}/step", json={"count": 1})
        self.client.post(f"/api/session/{session_id}/breakpoints", json={"row": 0, "col": 1})

        response = self.client.post(f"/api/session/{session_id}/reset")
        self.assertEqual(response.status_code, 200, response.text)
        payload = response.json()
        self.assertEqual(payload["state"]["step"], 0)
        self.assertEqual(len(payload["history"]), 1)
        self.assertEqual(payload["breakpoints"], [])
        self.assertFalse(payload["finished"])

    def test_step_limit_conflict(self) -> None:
        data = self._create_session(code="12@", max_steps=1)
        session_id = data["session_id"]

        ok = self.client.post(f"/api/session/{session_id}/step", json={"count": 1})
        self.assertEqual(ok.status_code, 200, ok.text)

        conflict = self.client.post(f"/api/session/{session_id}/step", json={"count": 1})
        self.assertEqual(conflict.status_code, 409, conflict.text)
        self.assertIn("detail", conflict.json())

    def test_runtime_error_is_unprocessable(self) -> None:
        data = self._create_session(code="1:+?")
        session_id = data["session_id"]
        self.assertEqual(data["total_steps"], 3)

        response = self.client.post(f"/api/session/{session_id}/run", json={})
        self.assertEqual(response.status_code, 422, response.text)
        self.assertIn("Unknown instruction", response.json()["detail"])

        state = self.client.get(f"/api/session/{session_id}").json()
        self.assertTrue(state["finished"])
        self.assertIn("col=3", state["error"])
        self.assertEqual(state["state"]["stack"], [{"kind": "number", "value": 2}])

    def test_add_and_remove_breakpoint(self) -> None:
        data = self._create_session()
        session_id = data["session_id"]

        added = self.client.post(
            f"/api/session/{session_id}/breakpoints",
            json={"row": 0, "col": 2},
        )
        self.assertEqual(added.status_code, 200, added.text)
        self.assertIn({"row": 0, "col": 2}, added.json()["breakpoints"])

        removed = self.client.delete(f"/api/session/{session_id}/breakpoints/0/2")
        self.assertEqual(removed.status_code, 200, removed.text)
        self.assertEqual(removed.json()["breakpoints"], [])

        missing = self.client.delete(f"/api/session/{session_id}/breakpoints/0/2")
        self.assertEqual(missing.status_code, 404)

    def test_run_until_break_hits_breakpoint(self) -> None:
        data = self._create_session()
        session_id = data["session_id"]
        self.client.post(f"/api/session/{session_id}/breakpoints", json={"row": 0, "col": 7})

        response = self.client.post(f"/api/session/{session_id}/run", json={"limit": 100})
        self.assertEqual(response.status_code, 200, response.text)
        payload = response.json()
        self.assertEqual(payload["hit_breakpoint"], {"row": 0, "col": 7})
        self.assertEqual(payload["state"]["mode"], "normal")
        self.assertFalse(payload["finished"])

    def test_run_to_completion_ignore_breakpoints(self) -> None:
        data = self._create_session()
        session_id = data["session_id"]
        self.client.post(f"/api/session/{session_id}/breakpoints", json={"row": 0, "col": 7})

        response = self.client.post(
            f"/api/session/{session_id}/run",
            json={"limit": 10000, "ignore_breakpoints": True},
        )
        self.assertEqual(response.status_code, 200, response.text)
        payload = response.json()
        self.assertTrue(payload["finished"])
        self.assertTrue(payload["state"]["terminated"])
        self.assertEqual(payload["state"]["output"], "hello")
        self.assertEqual(payload["breakpoints"], [{"row": 0, "col": 7}])
        self.assertIsNone(payload["hit_breakpoint"])

    def test_unknown_session(self) -> None:
        response = self.client.get("/api/session/missing")
        self.assertEqual(response.status_code, 404)
        response = self.client.post("/api/session/missing/step", json={"count": 1})
        self.assertEqual(response.status_code, 404)

    def test_delete_session(self) -> None:
        store = SessionStore()
        client = TestClient(create_app(store))
        created = client.post("/api/session", json={"code": ">@"})
        session_id = created.json()["session_id"]

        response = client.delete(f"/api/session/{session_id}")
        self.assertEqual(response.status_code, 204)
        with self.assertRaises(KeyError):
            store.get(session_id)
        self.assertEqual(client.delete(f"/api/session/{session_id}").status_code, 404)


if __name__ == "__main__":
    unittest.main()
