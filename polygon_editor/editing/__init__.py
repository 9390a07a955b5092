"""Editing components.

Each module owns one piece of the capture/edit workflow:
- proximity: Screen-space closure test
- point_buffer: Working ring and its markers
- polygon_store: Saved polygons keyed by id
- ring: Ring validation and geodesic measurements
- colors: Fill colour strategies
- session: The state machine tying them together
"""
