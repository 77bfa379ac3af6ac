#!/usr/bin/env python3
"""
Light controller tests: phase cycle, emergency preemption, accident holds.
"""

from __future__ import annotations

import unittest

from sim.lights import LightController
from sim.traffic_policy import SimulationPolicy
from sim.types import Direction, LightState, SchedulingLabel
from sim.vehicles import Vehicle, VehicleStore

_RR = SchedulingLabel.ROUND_ROBIN


def _emergency(direction: Direction, x: float, y: float) -> Vehicle:
    return Vehicle(
        id="CAR_900", x=x, y=y, target_x=-30.0, target_y=y,
        direction=direction, speed=2.0, is_emergency=True,
    )


class LightControllerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.policy = SimulationPolicy()
        self.lights = LightController(self.policy)
        self.store = VehicleStore()

    def _assert_single_green(self, expected: Direction) -> None:
        self.assertEqual(self.lights.green_lights(), [expected])
        for light in self.lights.lights:
            if light.direction is not expected:
                self.assertIs(light.state, LightState.RED)

    def test_starts_with_north_green(self) -> None:
        self._assert_single_green(Direction.NORTH)
        self.assertEqual(self.lights.current_green, Direction.NORTH)

    def test_green_yellow_red_cycle(self) -> None:
        # Empty queues, Round Robin weight 1 -> 4000 + 1000 ms of green.
        self.lights.update(4999, self.store, _RR)
        self._assert_single_green(Direction.NORTH)

        self.lights.update(1, self.store, _RR)
        self.assertIs(self.lights.state_of(Direction.NORTH), LightState.YELLOW)

        self.lights.update(1998, self.store, _RR)
        self.assertIs(self.lights.state_of(Direction.NORTH), LightState.YELLOW)

        self.lights.update(1, self.store, _RR)
        self._assert_single_green(Direction.EAST)
        self.assertEqual(self.lights.phase_elapsed, 0.0)

    def test_green_duration_is_capped(self) -> None:
        self.lights.lights[Direction.NORTH].car_count = 10
        self.assertEqual(self.lights.green_duration(), self.policy.max_green_ms)
        self.lights.lights[Direction.NORTH].car_count = 1
        self.assertEqual(self.lights.green_duration(), 6000.0)
        self.assertEqual(self.lights.green_duration(emergency_on_green=True), 9000.0)

    def test_emergency_preemption_switches_within_one_tick(self) -> None:
        self.lights.switch_light(Direction.EAST)
        cx, cy = self.policy.center_x, self.policy.center_y
        self.store.add(_emergency(Direction.WEST, cx + 60.0, cy + 15.0))

        self.lights.update(16, self.store, _RR)

        self._assert_single_green(Direction.WEST)
        self.assertEqual(self.lights.phase_elapsed, 0.0)

    def test_far_emergency_vehicle_does_not_preempt(self) -> None:
        self.lights.switch_light(Direction.EAST)
        cx, cy = self.policy.center_x, self.policy.center_y
        self.store.add(_emergency(Direction.WEST, cx + 150.0, cy + 15.0))

        self.lights.update(16, self.store, _RR)

        self._assert_single_green(Direction.EAST)

    def test_hold_forces_all_red_until_last_release(self) -> None:
        self.lights.switch_light(Direction.SOUTH)
        self.lights.hold("ACC_001")
        self.lights.hold("ACC_002")
        self.assertEqual(self.lights.green_lights(), [])

        self.lights.update(20000, self.store, _RR)
        self.assertEqual(self.lights.green_lights(), [])

        self.lights.release("ACC_001")
        self.assertTrue(self.lights.on_hold)
        self.assertEqual(self.lights.green_lights(), [])

        self.lights.release("ACC_002")
        self.assertFalse(self.lights.on_hold)
        self._assert_single_green(Direction.SOUTH)

    def test_hold_blocks_emergency_preemption(self) -> None:
        cx, cy = self.policy.center_x, self.policy.center_y
        self.store.add(_emergency(Direction.WEST, cx + 60.0, cy + 15.0))
        self.lights.hold("ACC_001")

        self.lights.update(16, self.store, _RR)

        self.assertEqual(self.lights.green_lights(), [])

    def test_release_of_unknown_hold_is_ignored(self) -> None:
        self.lights.release("ACC_404")
        self._assert_single_green(Direction.NORTH)

    def test_views_report_remaining_time(self) -> None:
        self.lights.update(1000, self.store, _RR)
        views = self.lights.views()
        self.assertEqual([v.direction for v in views], ["North", "East", "South", "West"])
        self.assertEqual(views[0].state, "green")
        self.assertEqual(views[0].remaining_ms, 4000.0)
        self.assertEqual(views[1].remaining_ms, 0.0)

    def test_reset_restores_initial_state(self) -> None:
        self.lights.switch_light(Direction.WEST)
        self.lights.hold("ACC_001")
        self.lights.reset()
        self.assertFalse(self.lights.on_hold)
        self._assert_single_green(Direction.NORTH)


if __name__ == "__main__":
    unittest.main()
