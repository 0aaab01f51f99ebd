import json
import unittest

import numpy as np

from kdsearch.utils import utils


class TestUtils:
    def test_squared_distances(self):
        vectors = np.array([[0.0, 0.0], [3.0, 4.0], [-1.0, 1.0]])
        dists = utils.squared_distances(vectors, np.array([0.0, 0.0]))
        assert dists.tolist() == [0.0, 25.0, 2.0]

    def test_grid_points(self):
        points = utils.grid_points(3, 2)
        assert len(points) == 9
        assert points[0] == (0.0, 0.0)
        assert points[1] == (0.0, 1.0)
        assert points[3] == (1.0, 0.0)
        assert len(utils.grid_points(30, 3)) == 27000

    def test_logger(self, capsys):
        logger = utils.IndexLogger(printout=True)
        logger.log("hello", step="build")
        assert len(logger) == 1
        assert logger[0].message == "hello"
        assert "[build]: 'hello'" in capsys.readouterr().out
        assert json.loads(logger[0].toJSON())["step"] == "build"

        quiet = utils.IndexLogger(printout=False)
        quiet.log("silent", step="build")
        assert capsys.readouterr().out == ""


if __name__ == "__main__":
    unittest.main()
