import typing as t

import typer

from kdsearch.algorithms.kd_tree import KDTree
from kdsearch.data_models import KdTreeConfigModel, Neighbor, kd_tree_config_from_yaml
from kdsearch.utils.utils import IndexLogger, grid_points

app = typer.Typer()


def load_config(config: t.Optional[str]) -> KdTreeConfigModel:
    if config is None:
        return KdTreeConfigModel()
    return kd_tree_config_from_yaml(config)


def print_neighbors(title: str, points: t.Sequence[t.Sequence[float]], neighbors: t.List[Neighbor]):
    print(f"{title}: {len(neighbors)} result(s)")
    for n in neighbors:
        print(f"  {n.index} {tuple(points[n.index])} squared_distance={n.squared_distance:g}")


@app.command()
def grid_demo(
    size: t.Annotated[int, typer.Option("--size")] = 30,
    k: t.Annotated[int, typer.Option("--k")] = 1,
    radius: t.Annotated[float, typer.Option("--radius")] = 1.5,
    config: t.Annotated[t.Optional[str], typer.Option("--config")] = None,
    verbose: t.Annotated[bool, typer.Option("--verbose")] = False,
):
    tree_config = load_config(config)
    logger = IndexLogger(printout=verbose)
    for dimensions in (3, 2):
        points = grid_points(size, dimensions)
        tree = KDTree(points, config=tree_config, logger=logger)
        origin = (0.0,) * dimensions
        print_neighbors(
            f"{dimensions}D k-NN (k={k})", points, tree.nearest_k_search(origin, k)
        )
        print_neighbors(
            f"{dimensions}D radius ({radius:g})",
            points,
            tree.radius_search(origin, radius),
        )


@app.command()
def knn(
    query: t.List[float],
    size: t.Annotated[int, typer.Option("--size")] = 30,
    k: t.Annotated[int, typer.Option("--k")] = 1,
    config: t.Annotated[t.Optional[str], typer.Option("--config")] = None,
):
    points = grid_points(size, len(query))
    tree = KDTree(points, config=load_config(config))
    print_neighbors(f"k-NN (k={k})", points, tree.nearest_k_search(tuple(query), k))


if __name__ == "__main__":
    app()
