import copy
import heapq
import math
import typing as t

import numpy as np
import numpy.typing as npt

from kdsearch.algorithms.point_representation import (
    DefaultPointRepresentation,
    SupportsPointRepresentation,
)
from kdsearch.data_models import KdTreeConfigModel, Neighbor
from kdsearch.exceptions import (
    ConfigurationError,
    DimensionMismatchError,
    InvalidPointError,
)
from kdsearch.utils.utils import IndexLogger, squared_distances

P = t.TypeVar("P")  # Point type


class KDNode:
    def __init__(self, index: int, axis: int, split_value: float):
        self.index = index  # Identifier of the pivot point
        self.axis = axis
        self.split_value = split_value
        self.left: KDNode | KDLeaf | None = None
        self.right: KDNode | KDLeaf | None = None


class KDLeaf:
    def __init__(self, indices: npt.NDArray[np.intp]):
        self.indices = indices
        self.index_list: t.List[int] = indices.tolist()


TreeNode = t.Union[KDNode, KDLeaf]


class KDTree(t.Generic[P]):
    """Static k-d tree answering exact k-nearest and radius queries.

    The tree is built once, in the constructor, over the vectors the
    representation produces for `points`. Results refer to points by their
    position in `points`. Nothing is mutated by queries, so a built tree can
    be shared between threads.
    """

    def __init__(
        self,
        points: t.Sequence[P],
        representation: SupportsPointRepresentation[P] | None = None,
        config: KdTreeConfigModel | None = None,
        logger: IndexLogger | None = None,
    ):
        self.points = points
        self.config = config if config is not None else KdTreeConfigModel()
        self.logger = logger if logger is not None else IndexLogger(printout=False)
        self.root: TreeNode | None = None
        self.skipped_indices: t.List[int] = []

        if representation is None and len(points) > 0:
            representation = DefaultPointRepresentation.for_sample(points[0])
        self.representation = self._copy_representation(representation)
        self.dimension_count: int | None = (
            self.representation.dimension_count
            if self.representation is not None
            else None
        )

        self._vectors = self._vectorize_points()
        valid = np.ones(len(points), dtype=np.bool_)
        valid[self.skipped_indices] = False
        self._valid = valid
        self.point_count = int(valid.sum())

        self.root = self._build(np.flatnonzero(valid), depth=0)
        self.logger.log(
            f"Built index over {self.point_count} points with "
            f"{self.dimension_count} dimensions and depth {self.depth()}, "
            f"{len(self.skipped_indices)} skipped",
            step="build",
        )

    def __len__(self) -> int:
        return self.point_count

    def _copy_representation(
        self, representation: SupportsPointRepresentation[P] | None
    ) -> SupportsPointRepresentation[P] | None:
        if representation is None:
            if self.config.rescale is not None:
                raise ConfigurationError("Cannot rescale without a point representation")
            return None
        make_copy = getattr(representation, "make_copy", None)
        own = make_copy() if make_copy is not None else copy.copy(representation)
        if self.config.rescale is not None:
            set_rescale_values = getattr(own, "set_rescale_values", None)
            if set_rescale_values is None:
                raise ConfigurationError(
                    f"{type(own).__name__} does not support rescale values"
                )
            set_rescale_values(self.config.rescale)
        return own

    def _vectorize_points(self) -> npt.NDArray[np.float64]:
        if self.representation is None:
            return np.zeros((0, 0), dtype=np.float64)
        vectors = np.zeros((len(self.points), self.dimension_count), dtype=np.float64)
        for index, point in enumerate(self.points):
            if not self.representation.is_valid(point):
                if self.config.invalid_point_policy == "reject":
                    raise InvalidPointError(index)
                self.skipped_indices.append(index)
                self.logger.log(
                    f"Skipped point {index}: non-finite coordinates", step="build"
                )
                vectors[index] = np.nan
                continue
            vectors[index] = self._check_dimensions(self.representation.vectorize(point))
        vectors.flags.writeable = False
        return vectors

    def _check_dimensions(self, vector: t.Sequence[float]) -> t.Sequence[float]:
        if len(vector) != self.dimension_count:
            raise DimensionMismatchError(expected=self.dimension_count, actual=len(vector))
        return vector

    def _choose_axis(self, spread: npt.NDArray[np.float64], depth: int) -> int | None:
        if self.config.split_rule == "max_spread":
            axis = int(np.argmax(spread))
            return axis if spread[axis] > 0 else None
        for offset in range(len(spread)):
            axis = (depth + offset) % len(spread)
            if spread[axis] > 0:
                return axis
        return None

    def _build(self, ids: npt.NDArray[np.intp], depth: int) -> TreeNode | None:
        if len(ids) == 0:
            return None
        if len(ids) <= self.config.leaf_size:
            return KDLeaf(np.sort(ids))

        subset = self._vectors[ids]
        axis = self._choose_axis(subset.max(axis=0) - subset.min(axis=0), depth)
        if axis is None:
            # All points coincide
            return KDLeaf(np.sort(ids))

        column = subset[:, axis]
        order = np.lexsort((ids, column))
        ids = ids[order]
        column = column[order]

        # Left of the pivot holds strictly lesser coordinates only
        split_value = column[len(ids) // 2]
        median = int(np.searchsorted(column, split_value, side="left"))
        if median == 0:
            median = int(np.searchsorted(column, split_value, side="right"))
            split_value = column[median]

        node = KDNode(int(ids[median]), axis, float(split_value))
        node.left = self._build(ids[:median], depth + 1)
        node.right = self._build(ids[median + 1 :], depth + 1)
        return node

    def depth(self) -> int:
        def _depth(node: TreeNode | None) -> int:
            if node is None:
                return 0
            if isinstance(node, KDLeaf):
                return 1
            return 1 + max(_depth(node.left), _depth(node.right))

        return _depth(self.root)

    def get_vector(self, index: int) -> npt.NDArray[np.float64]:
        """Returns the cached (rescaled) vector of an indexed point."""
        if not 0 <= index < len(self._valid) or not self._valid[index]:
            raise IndexError(f"Point {index} is not in the index")
        return self._vectors[index]

    def _query_vector(self, point: P) -> npt.NDArray[np.float64]:
        assert self.representation is not None
        vector = np.asarray(
            self._check_dimensions(self.representation.vectorize(point)),
            dtype=np.float64,
        )
        if not np.all(np.isfinite(vector)):
            raise ValueError(f"Query point has non-finite coordinates: {vector}")
        return vector

    def _pivot_distance(self, index: int, query: npt.NDArray[np.float64]) -> float:
        return float(squared_distances(self._vectors[index : index + 1], query)[0])

    def nearest_k_search(self, point: P, k: int) -> t.List[Neighbor]:
        """Finds the k indexed points closest to `point`, nearest first.

        Ties in distance are broken by the smaller index.
        """
        if k < 0:
            raise ValueError("k must be non-negative")
        if self.representation is None:
            return []
        return self._nearest_k(self._query_vector(point), k)

    def nearest_k_search_at(self, index: int, k: int) -> t.List[Neighbor]:
        """Same as `nearest_k_search`, using the indexed point at `index` as query."""
        if k < 0:
            raise ValueError("k must be non-negative")
        return self._nearest_k(self.get_vector(index), k)

    def _nearest_k(self, query: npt.NDArray[np.float64], k: int) -> t.List[Neighbor]:
        if k == 0 or self.root is None:
            return []

        # Max-heap of the best candidates, keyed on (distance, index)
        nearest: t.List[t.Tuple[float, int]] = []

        def offer(index: int, dist: float) -> None:
            entry = (-dist, -index)
            if len(nearest) < k:
                heapq.heappush(nearest, entry)
            elif entry > nearest[0]:
                heapq.heapreplace(nearest, entry)

        def worst() -> float:
            return -nearest[0][0] if len(nearest) == k else math.inf

        q = query.tolist()
        stack: t.List[t.Tuple[TreeNode, float]] = [(self.root, 0.0)]
        while stack:
            node, bound = stack.pop()
            # Equal bounds are still searched, ties go to the smaller index
            if bound > worst():
                continue
            if isinstance(node, KDLeaf):
                dists = squared_distances(self._vectors[node.indices], query)
                for index, dist in zip(node.index_list, dists.tolist()):
                    offer(index, dist)
                continue

            offer(node.index, self._pivot_distance(node.index, query))
            diff = q[node.axis] - node.split_value
            near, far = (node.left, node.right) if diff < 0 else (node.right, node.left)
            if far is not None:
                stack.append((far, max(bound, diff * diff)))
            if near is not None:
                stack.append((near, bound))

        return [
            Neighbor(-neg_index, -neg_dist)
            for neg_dist, neg_index in sorted(nearest, reverse=True)
        ]

    def radius_search(
        self,
        point: P,
        radius: float,
        max_results: int = 0,
        sort_results: bool | None = None,
    ) -> t.List[Neighbor]:
        """Finds every indexed point within `radius` of `point`.

        When `max_results` is positive the search stops after that many
        matches, whichever the traversal met first.
        """
        if radius < 0:
            raise ValueError("radius must be non-negative")
        if self.representation is None:
            return []
        return self._radius(self._query_vector(point), radius, max_results, sort_results)

    def radius_search_at(
        self,
        index: int,
        radius: float,
        max_results: int = 0,
        sort_results: bool | None = None,
    ) -> t.List[Neighbor]:
        if radius < 0:
            raise ValueError("radius must be non-negative")
        return self._radius(self.get_vector(index), radius, max_results, sort_results)

    def _radius(
        self,
        query: npt.NDArray[np.float64],
        radius: float,
        max_results: int,
        sort_results: bool | None,
    ) -> t.List[Neighbor]:
        if max_results < 0:
            raise ValueError("max_results must be non-negative")
        if sort_results is None:
            sort_results = self.config.sort_results
        if self.root is None:
            return []

        limit = max_results if max_results > 0 else math.inf
        r2 = radius * radius
        q = query.tolist()
        result: t.List[Neighbor] = []
        stack: t.List[TreeNode] = [self.root]
        while stack and len(result) < limit:
            node = stack.pop()
            if isinstance(node, KDLeaf):
                dists = squared_distances(self._vectors[node.indices], query)
                for index, dist in zip(node.index_list, dists.tolist()):
                    if dist <= r2:
                        result.append(Neighbor(index, dist))
                        if len(result) >= limit:
                            break
                continue

            dist = self._pivot_distance(node.index, query)
            if dist <= r2:
                result.append(Neighbor(node.index, dist))
            diff = q[node.axis] - node.split_value
            near, far = (node.left, node.right) if diff < 0 else (node.right, node.left)
            if far is not None and diff * diff <= r2:
                stack.append(far)
            if near is not None:
                stack.append(near)

        if sort_results:
            result.sort(key=lambda n: (n.squared_distance, n.index))
        return result
