"""
sim — Simulation core
=====================

Modules
-------
world
    :class:`Simulation` aggregate and its ``advance(delta_ms)`` tick.
vehicles
    :class:`Vehicle`, the ordered :class:`VehicleStore` and kinematics.
lights
    :class:`LightController` phase cycle, preemption and accident holds.
scheduling
    Pure weight / next-direction / sample-label functions.
safety
    :class:`SafetyMonitor` violations, braking, following, accidents.
label_source
    Cached scheduling-label sources (static, HTTP, in-process model).
records
    Immutable violation / accident / stats / snapshot records.
traffic_policy
    :class:`SimulationPolicy` tunable constants and the efficiency score.
sim_bridge
    :class:`SimBridge` background-thread orchestrator.
physics
    Geometry helpers (windows, intersection box, spawn points).
types
    Direction, movement, light state and label enumerations.
"""
