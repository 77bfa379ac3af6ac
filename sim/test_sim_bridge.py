#!/usr/bin/env python3
"""
SimBridge tests: commands, snapshots, and bus publication, stepped by
hand without the background thread.
"""

from __future__ import annotations

import unittest
from dataclasses import replace

from bus import TOPIC_ACCIDENT, TOPIC_SAMPLE, TOPIC_VIOLATION, EventBus
from sim.sim_bridge import SimBridge
from sim.traffic_policy import SimulationPolicy
from sim.types import Direction
from sim.vehicles import Vehicle


def _bridge(**kw) -> SimBridge:
    policy = replace(SimulationPolicy(), auto_spawn_enabled=False)
    return SimBridge(policy=policy, bus=EventBus(), random_seed=11, **kw)


class SimBridgeTests(unittest.TestCase):
    def test_spawn_requires_running_simulation(self) -> None:
        bridge = _bridge()
        self.assertIsNone(bridge.spawn(Direction.NORTH))
        bridge.start_simulation()
        self.assertEqual(bridge.spawn(Direction.NORTH), "CAR_000")
        self.assertEqual(len(bridge.get_snapshot().vehicles), 1)
        self.assertTrue(bridge.is_running())

    def test_records_are_published_per_topic(self) -> None:
        bridge = _bridge(data_log_interval_s=0)
        bridge.start_simulation()
        sim = bridge.simulation
        sim.vehicles.add(Vehicle(id="CAR_101", x=385.0, y=500.0, target_x=385.0,
                                 target_y=-30.0, direction=Direction.NORTH, speed=3.5))
        sim.vehicles.add(Vehicle(id="CAR_102", x=390.0, y=500.0, target_x=830.0,
                                 target_y=285.0, direction=Direction.EAST))

        bridge.step(16.0)

        violations = bridge.bus.poll(TOPIC_VIOLATION)
        accidents = bridge.bus.poll(TOPIC_ACCIDENT)
        self.assertEqual([m.payload["vehicle_id"] for m in violations], ["CAR_101"])
        self.assertEqual(accidents[0].payload["vehicles"], ["CAR_101", "CAR_102"])
        self.assertEqual(bridge.bus.pending(TOPIC_SAMPLE), 0)

        metrics = bridge.bus_metrics()
        self.assertEqual(metrics["published"], len(violations) + len(accidents))
        self.assertEqual(metrics["delivered"], metrics["published"])
        self.assertEqual(metrics["dropped"], 0)

    def test_data_sample_every_interval(self) -> None:
        bridge = _bridge(data_log_interval_s=5.0)
        bridge.start_simulation()
        bridge.step(4000.0)
        self.assertEqual(bridge.bus.pending(TOPIC_SAMPLE), 0)
        bridge.step(1000.0)
        sample = bridge.bus.poll(TOPIC_SAMPLE)[0].payload
        self.assertEqual(
            set(sample), {"timestamp", "cars_present", "emergency_vehicle", "scheduling_model"}
        )

    def test_stop_and_reset_commands(self) -> None:
        bridge = _bridge()
        bridge.start_simulation()
        bridge.spawn(Direction.EAST)
        bridge.stop_simulation()
        bridge.stop_simulation()
        self.assertFalse(bridge.get_snapshot().running)

        bridge.reset_simulation()
        snap = bridge.get_snapshot()
        self.assertEqual(snap.vehicles, ())
        self.assertEqual(snap.time_ms, 0.0)

    def test_thread_lifecycle(self) -> None:
        bridge = _bridge()
        bridge.start()
        bridge.start()
        bridge.stop()
        bridge.stop()


if __name__ == "__main__":
    unittest.main()
