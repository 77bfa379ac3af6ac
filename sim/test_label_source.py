#!/usr/bin/env python3
"""
Scheduling-label source tests; no network, fake sessions only.
"""

from __future__ import annotations

import threading
import unittest

import requests

from sim.label_source import (
    HttpLabelSource,
    ModelLabelSource,
    PollingLabelSource,
    StaticLabelSource,
)
from sim.types import SchedulingLabel
from sim.world import Simulation


class _FakeResponse:
    def __init__(self, body, status: int = 200) -> None:
        self._body = body
        self.status_code = status

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self._body


class _FakeSession:
    def __init__(self, response=None, error: Exception = None) -> None:
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, json=None, timeout=None):
        self.calls.append((url, json, timeout))
        if self.error is not None:
            raise self.error
        return self.response


class _ScriptedSource(PollingLabelSource):
    def __init__(self, answers) -> None:
        super().__init__(interval_s=60.0)
        self._answers = list(answers)

    def fetch(self, payload):
        answer = self._answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer


class LabelSourceTests(unittest.TestCase):
    def test_static_source(self) -> None:
        source = StaticLabelSource(SchedulingLabel.PRIORITY)
        self.assertIs(source.current_label(), SchedulingLabel.PRIORITY)
        self.assertEqual(source.predictions, 0)

    def test_failures_keep_previous_label(self) -> None:
        source = _ScriptedSource([
            "Shortest Job First",
            RuntimeError("backend down"),
            "Longest Job First",
            None,
        ])
        self.assertTrue(source.refresh())
        self.assertFalse(source.refresh())
        self.assertFalse(source.refresh())
        self.assertFalse(source.refresh())
        self.assertIs(source.current_label(), SchedulingLabel.SHORTEST_JOB_FIRST)
        self.assertEqual(source.predictions, 1)

    def test_reset_restores_default(self) -> None:
        source = _ScriptedSource(["Priority Scheduling"])
        source.refresh()
        source.reset()
        self.assertIs(source.current_label(), SchedulingLabel.ROUND_ROBIN)
        self.assertEqual(source.predictions, 0)

    def test_bound_factory_builds_payload(self) -> None:
        seen = []
        source = ModelLabelSource(lambda payload: seen.append(payload) or "Round Robin")
        source.bind(lambda: {"timestamp": "t", "cars_present": 7, "emergency_vehicle": 1})
        self.assertTrue(source.refresh())
        self.assertEqual(seen[0]["cars_present"], 7)

    def test_http_source_posts_to_predict(self) -> None:
        session = _FakeSession(_FakeResponse(
            {"scheduling_model": "Priority Scheduling", "success": True}
        ))
        source = HttpLabelSource("http://backend:8000/", timeout_s=1.5, session=session)

        self.assertTrue(source.refresh())

        url, body, timeout = session.calls[0]
        self.assertEqual(url, "http://backend:8000/api/predict")
        self.assertEqual(set(body), {"timestamp", "cars_present", "emergency_vehicle"})
        self.assertEqual(timeout, 1.5)
        self.assertIs(source.current_label(), SchedulingLabel.PRIORITY)

    def test_http_errors_are_swallowed(self) -> None:
        source = HttpLabelSource(
            "http://backend:8000",
            session=_FakeSession(error=requests.ConnectionError("refused")),
        )
        self.assertFalse(source.refresh())
        self.assertIs(source.current_label(), SchedulingLabel.ROUND_ROBIN)

        source = HttpLabelSource(
            "http://backend:8000",
            session=_FakeSession(_FakeResponse({}, status=500)),
        )
        self.assertFalse(source.refresh())

    def test_start_stop_is_idempotent(self) -> None:
        source = _ScriptedSource([])
        source.start()
        source.start()
        source.stop()
        source.stop()

    def test_answer_in_flight_during_reset_is_discarded(self) -> None:
        entered = threading.Event()
        release = threading.Event()

        def slow_predict(payload):
            entered.set()
            release.wait(2.0)
            return "Priority Scheduling"

        source = ModelLabelSource(slow_predict, interval_s=60.0)
        sim = Simulation(label_source=source, seed=1)
        results = []
        worker = threading.Thread(target=lambda: results.append(source.refresh()))
        worker.start()
        self.assertTrue(entered.wait(2.0))

        sim.reset()
        release.set()
        worker.join(2.0)

        self.assertEqual(results, [False])
        self.assertIs(source.current_label(), SchedulingLabel.ROUND_ROBIN)
        self.assertEqual(source.predictions, 0)

        self.assertTrue(source.refresh())
        self.assertIs(source.current_label(), SchedulingLabel.PRIORITY)


if __name__ == "__main__":
    unittest.main()
