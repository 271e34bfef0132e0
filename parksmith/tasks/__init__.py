"""Layer 3: Tasks - User intent translation.

Tasks translate user intent into object creation and primitive calls.
Tasks must not import matplotlib.
"""

from parksmith.tasks.pointsettask import Exclusion, PointSetBuild, build_point_set

__all__ = [
    "Exclusion",
    "PointSetBuild",
    "build_point_set",
]
