"""FleetOS notification engine."""
