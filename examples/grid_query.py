from kdsearch.algorithms.kd_tree import KDTree
from kdsearch.utils.utils import grid_points


points_3d = grid_points(30, 3)
tree_3d = KDTree(points_3d)
neighbors = tree_3d.nearest_k_search((0.0, 0.0, 0.0), 1)
assert neighbors[0].index == 0
assert neighbors[0].squared_distance == 0.0

within = tree_3d.radius_search((0.0, 0.0, 0.0), 1.5)
assert sorted(points_3d[n.index] for n in within) == [
    (0.0, 0.0, 0.0),
    (0.0, 0.0, 1.0),
    (0.0, 1.0, 0.0),
    (1.0, 0.0, 0.0),
]

points_2d = grid_points(30, 2)
tree_2d = KDTree(points_2d)
neighbors = tree_2d.nearest_k_search((0.0, 0.0), 1)
assert points_2d[neighbors[0].index] == (0.0, 0.0)
