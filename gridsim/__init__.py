"""
gridsim — Signal-grid simulation core
=====================================

Modules
-------
entities
    Frozen value types: :class:`Intersection`, :class:`Vehicle`,
    :class:`EmergencyVehicle`, :class:`Snapshot` and their enums.
network
    :class:`GridTopology` lane, stop-line and entry geometry.
traffic_policy
    :class:`GridPolicy` tunable constants and spacing helpers.
controller
    :class:`SignalController` green-duration selection per mode.
signals
    Two-phase signal state machine with emergency preemption.
population
    Spawn and despawn rules.
integrator
    One pure motion step with signal compliance and car following.
world
    :class:`GridWorld` stateful shell, cadences and commands.
sim_bridge
    :class:`SimBridge` background-thread authority.
metrics
    :class:`SimMetrics` run counters.
errors
    Exception hierarchy.
"""
