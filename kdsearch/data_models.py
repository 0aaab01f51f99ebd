import typing as t

import yaml
from pydantic import BaseModel, Field


class Neighbor(t.NamedTuple):
    index: int
    squared_distance: float


Vector = t.List[float]
SplitRule = t.Literal["max_spread", "cycle"]
InvalidPointPolicy = t.Literal["skip", "reject"]


class KdTreeConfigModel(BaseModel):
    leaf_size: int = Field(default=10, ge=1)
    """Subsets with at most this many points become leaf buckets"""

    split_rule: SplitRule = "max_spread"
    """How the split axis is chosen at each node.

    `max_spread` picks the axis with the largest extent over the node's points
    (lowest axis on ties). `cycle` uses `depth % dimensions`, moving on to the
    next axis whose extent is non-zero.
    """

    invalid_point_policy: InvalidPointPolicy = "skip"
    """What happens to points with non-finite coordinates.

    `skip` leaves them out of the tree without renumbering the others,
    `reject` aborts the build with an InvalidPointError.
    """

    sort_results: bool = True
    """Whether radius searches sort their matches by distance by default"""

    rescale: t.Optional[t.List[float]] = None
    """Per-dimension scale factors applied to the tree's copy of the representation"""


def kd_tree_config_from_yaml(file_path: str) -> KdTreeConfigModel:
    with open(file_path, "r") as stream:
        config = yaml.safe_load(stream)
    if config is None:
        return KdTreeConfigModel()
    return KdTreeConfigModel(**config)
