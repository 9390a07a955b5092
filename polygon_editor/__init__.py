"""Interactive geographic polygon capture and editing.

Drives a map surface through a small state machine: the user clicks
points inside a configured region, closes the ring by clicking near the
first point, confirms the save, and can later re-open any saved polygon
to drag its vertices and commit the change.
"""

__version__ = "0.1.0"
