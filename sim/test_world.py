#!/usr/bin/env python3
"""
End-to-end tests for :class:`sim.world.Simulation` driven with fixed
``delta_ms`` ticks.
"""

from __future__ import annotations

import unittest
from dataclasses import replace

from sim.label_source import StaticLabelSource
from sim.records import AccidentRecord, ViolationRecord
from sim.traffic_policy import SimulationPolicy
from sim.types import Direction, LightState, Movement, SchedulingLabel
from sim.vehicles import Vehicle
from sim.world import Simulation

_TICK_MS = 16.0


def _manual_sim(**kw) -> Simulation:
    policy = replace(SimulationPolicy(), auto_spawn_enabled=False)
    sim = Simulation(policy=policy, seed=3, **kw)
    sim.start()
    return sim


class StopAndGoTests(unittest.TestCase):
    def test_vehicle_waits_on_red_and_moves_on_green(self) -> None:
        sim = _manual_sim()
        sim.lights.switch_light(Direction.EAST)
        car = Vehicle(id="CAR_001", x=385.0, y=380.0, target_x=385.0, target_y=-30.0,
                      direction=Direction.NORTH, speed=1.5)
        sim.vehicles.add(car)

        sim.advance(_TICK_MS)
        self.assertTrue(car.stopped)
        self.assertTrue(car.as_dict()["braking"])
        self.assertEqual(car.y, 380.0)
        self.assertEqual(car.wait_time, _TICK_MS)
        self.assertEqual(sim.stats.current_waiting, 1)

        sim.lights.switch_light(Direction.NORTH)
        sim.advance(_TICK_MS)
        self.assertFalse(car.stopped)
        self.assertLess(car.y, 380.0)

    def test_emergency_vehicle_ignores_red(self) -> None:
        sim = _manual_sim()
        sim.lights.switch_light(Direction.EAST)
        ambulance = Vehicle(id="CAR_001", x=385.0, y=500.0, target_x=385.0, target_y=-30.0,
                            direction=Direction.NORTH, speed=2.0, is_emergency=True)
        sim.vehicles.add(ambulance)

        sim.advance(_TICK_MS)

        self.assertFalse(ambulance.stopped)
        self.assertLess(ambulance.y, 500.0)

    def test_arrival_removes_vehicle(self) -> None:
        sim = _manual_sim()
        sim.vehicles.add(Vehicle(id="CAR_001", x=385.0, y=-27.0, target_x=385.0,
                                 target_y=-30.0, direction=Direction.NORTH))
        sim.advance(_TICK_MS)
        self.assertEqual(len(sim.vehicles), 0)
        self.assertEqual(sim.stats.vehicles_passed, 1)


class SpawnTests(unittest.TestCase):
    def test_direction_never_exceeds_ten_vehicles(self) -> None:
        sim = _manual_sim()
        spawned = [sim.spawn_vehicle(Direction.WEST) for _ in range(12)]

        self.assertEqual(sum(1 for v in spawned if v is not None), 10)
        self.assertIsNone(spawned[-1])
        self.assertEqual(len(sim.vehicles.in_direction(Direction.WEST)), 10)

    def test_queued_spawns_do_not_overlap(self) -> None:
        sim = _manual_sim()
        first = sim.spawn_vehicle(Direction.NORTH)
        second = sim.spawn_vehicle(Direction.NORTH)
        self.assertEqual(first.y, sim.policy.canvas_height)
        self.assertEqual(second.y, sim.policy.canvas_height + sim.policy.spawn_safe_distance)

    def test_spawn_ids_and_speed(self) -> None:
        sim = _manual_sim()
        car = sim.spawn_vehicle(Direction.EAST, Movement.LEFT)
        self.assertEqual(car.id, "CAR_000")
        self.assertIs(car.movement, Movement.LEFT)
        self.assertLessEqual(car.speed, sim.policy.speed_limit)
        self.assertGreaterEqual(car.speed, sim.policy.min_spawn_speed)

    def test_emergency_spawn(self) -> None:
        sim = _manual_sim()
        car = sim.spawn_emergency_vehicle(Direction.SOUTH)
        self.assertTrue(car.is_emergency)
        self.assertEqual(car.original_speed, car.speed)
        self.assertFalse(car.braking)
        self.assertIs(car.movement, Movement.STRAIGHT)
        self.assertLessEqual(car.speed, sim.policy.speed_limit * sim.policy.emergency_speed_factor)
        self.assertEqual(sim.stats.emergency_vehicles, 0)
        sim.advance(_TICK_MS)
        self.assertEqual(sim.stats.emergency_vehicles, 1)

    def test_manual_spawn_ignored_while_stopped(self) -> None:
        sim = Simulation(seed=1)
        self.assertIsNone(sim.spawn_vehicle(Direction.NORTH))
        self.assertIsNone(sim.spawn_emergency_vehicle())
        self.assertEqual(len(sim.vehicles), 0)

    def test_auto_spawn_interval_is_strict(self) -> None:
        sim = Simulation(seed=5)
        sim.start()
        sim.advance(2000.0)
        self.assertEqual(sim.stats.total_vehicles, 0)
        sim.advance(1.0)
        self.assertEqual(sim.stats.total_vehicles, 1)


class LifecycleTests(unittest.TestCase):
    def test_advance_is_noop_while_stopped(self) -> None:
        sim = Simulation(seed=1)
        self.assertEqual(sim.advance(_TICK_MS), [])
        self.assertEqual(sim.time_ms, 0.0)

    def test_stop_twice_and_reset_while_stopped(self) -> None:
        sim = _manual_sim()
        sim.spawn_vehicle(Direction.NORTH)
        sim.advance(_TICK_MS)

        sim.stop()
        sim.stop()
        self.assertFalse(sim.running)

        sim.reset()
        sim.reset()
        self.assertFalse(sim.running)
        self.assertEqual(len(sim.vehicles), 0)
        self.assertEqual(sim.time_ms, 0.0)
        self.assertEqual(sim.stats.total_vehicles, 0)
        self.assertEqual(sim.lights.green_lights(), [Direction.NORTH])

    def test_reset_restores_round_robin_label(self) -> None:
        source = StaticLabelSource()
        sim = _manual_sim(label_source=source)
        source.set_label(SchedulingLabel.PRIORITY)
        sim.advance(_TICK_MS)
        self.assertIs(sim.label, SchedulingLabel.PRIORITY)
        self.assertEqual(sim.stats.ml_predictions, 1)

        sim.reset()
        self.assertIs(sim.label, SchedulingLabel.ROUND_ROBIN)
        self.assertIs(source.current_label(), SchedulingLabel.ROUND_ROBIN)


class AccidentFlowTests(unittest.TestCase):
    def test_crash_holds_lights_then_clears(self) -> None:
        sim = _manual_sim()
        sim.vehicles.add(Vehicle(id="CAR_001", x=385.0, y=500.0, target_x=385.0,
                                 target_y=-30.0, direction=Direction.NORTH))
        sim.vehicles.add(Vehicle(id="CAR_002", x=390.0, y=500.0, target_x=830.0,
                                 target_y=285.0, direction=Direction.EAST))

        records = sim.advance(_TICK_MS)
        self.assertEqual(len(records), 1)
        self.assertIsInstance(records[0], AccidentRecord)
        self.assertTrue(all(s is LightState.RED for s in map(sim.light_state, Direction)))

        sim.advance(399.0)
        self.assertEqual(len(sim.vehicles), 2)

        sim.advance(1.0)
        self.assertEqual(len(sim.vehicles), 0)
        self.assertEqual(sim.stats.accidents, 1)
        self.assertEqual(sim.lights.green_lights(), [Direction.NORTH])
        self.assertEqual(sim.stats.traffic_efficiency, 0.0)

    def test_speeding_shows_up_in_records_and_stats(self) -> None:
        sim = _manual_sim()
        sim.vehicles.add(Vehicle(id="CAR_001", x=385.0, y=550.0, target_x=385.0,
                                 target_y=-30.0, direction=Direction.NORTH, speed=3.2))
        records = sim.advance(_TICK_MS)
        self.assertIsInstance(records[0], ViolationRecord)
        self.assertEqual(sim.stats.speeding_violations, 1)
        self.assertEqual(sim.stats.rule_violations, 1)


class SnapshotTests(unittest.TestCase):
    def test_snapshot_is_serialisable(self) -> None:
        sim = _manual_sim()
        sim.spawn_vehicle(Direction.NORTH)
        sim.advance(_TICK_MS)
        data = sim.snapshot().as_dict()
        self.assertTrue(data["running"])
        self.assertEqual(data["current_green"], 0)
        self.assertEqual(len(data["vehicles"]), 1)
        self.assertEqual(len(data["lights"]), 4)
        self.assertEqual(data["scheduling_label"], "Round Robin")

    def test_prediction_request_shape(self) -> None:
        sim = _manual_sim()
        sim.spawn_vehicle(Direction.NORTH)
        payload = sim.prediction_request()
        self.assertIn("timestamp", payload)
        self.assertTrue(1 <= payload["cars_present"] <= 5)
        self.assertEqual(payload["emergency_vehicle"], 0)

    def test_data_sample_label(self) -> None:
        sim = _manual_sim()
        sim.spawn_emergency_vehicle(Direction.WEST)
        sample = sim.data_sample()
        self.assertEqual(sample["emergency_vehicle"], 1)
        self.assertEqual(sample["scheduling_model"], "Priority Scheduling")


if __name__ == "__main__":
    unittest.main()
