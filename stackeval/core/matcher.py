"""
Association of an estimate with the closest ground truth object.
"""

import numpy as np


def find_nearest_object(position, scene_objects, get_world_pose):
    """
    Find the not yet estimated object closest to an estimated position.

    Ties keep the first object in enumeration order.

    Args:
        position: Estimated position in world coordinates (3,)
        scene_objects: Iterable of SceneObject
        get_world_pose: Callable name -> world pose (4x4)

    Returns:
        tuple: (SceneObject, distance in metres), or None when every object
            has already been estimated
    """
    position = np.asarray(position, dtype=np.float64).reshape(3)

    nearest = None
    nearest_dist = np.inf

    for obj in scene_objects:
        if obj.estimated:
            continue

        cur_dist = float(np.linalg.norm(position - get_world_pose(obj.name)[:3, 3]))
        if cur_dist < nearest_dist:
            nearest = obj
            nearest_dist = cur_dist

    if nearest is None:
        return None

    return nearest, nearest_dist
