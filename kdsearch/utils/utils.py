import itertools
import json
import typing as t
from datetime import datetime

import numpy as np
import numpy.typing as npt


def timestamp_string():
    return datetime.now().strftime("%Y-%m-%d-%Hh%Mm%Ss_%f")


class IndexLog:
    def __init__(self, message: str, step: str, timestamp: str | None = None):
        self.message = message
        self.step = step
        self.timestamp = timestamp if timestamp is not None else timestamp_string()

    def __str__(self):
        return "[{}]: '{}'".format(self.step, self.message)

    def toJSON(self):
        return json.dumps(self, default=lambda o: o.__dict__, sort_keys=True, indent=4)


class IndexLogger(list[IndexLog]):
    def __init__(self, printout: bool = True):
        super(IndexLogger, self).__init__()
        self.printout = printout

    def append(self, log: IndexLog):
        super(IndexLogger, self).append(log)
        if self.printout:
            print(log)

    def log(self, message: str, step: str):
        self.append(IndexLog(message=message, step=step))


def squared_distances(
    vectors: npt.NDArray[np.float64], query: npt.NDArray[np.float64]
) -> npt.NDArray[np.float64]:
    """Squared euclidean distance from `query` to every row of `vectors`."""
    diff = vectors - query
    return np.einsum("ij,ij->i", diff, diff)


def grid_points(size: int, dimensions: int) -> t.List[t.Tuple[float, ...]]:
    """All integer points of a `size`^`dimensions` grid, last axis varying fastest."""
    return [
        tuple(float(c) for c in cell)
        for cell in itertools.product(range(size), repeat=dimensions)
    ]
