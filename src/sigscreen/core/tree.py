"""Pre-trained decision trees and the persisted model store.

Trees are stored in the tabular layout of a CART ``classregtree``: parallel
arrays ``var`` (1-based feature id, 0 for leaves), ``cut``, ``children``
(1-based node ids of the left/right child, ``[0, 0]`` for leaves) and
``class`` (majority label of every node). :func:`load_classifiers` turns that
layout into explicit :class:`Leaf` and :class:`Split` nodes.
"""

from __future__ import annotations

from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import numpy as np
import yaml

from sigscreen.core.exceptions import ModelLoadError
from sigscreen.utils.logging import message

DEFAULT_MODEL_RESOURCE = "classifiers.yaml"
TREE_NAMES = ("treeAll", "treePrg")
LABELS = ("0", "1")


@dataclass(frozen=True)
class Leaf:
    """Terminal node carrying a class label."""

    label: str


@dataclass(frozen=True)
class Split:
    """Internal node: ``x[feature_index] < cut`` goes left, otherwise right.

    ``label`` is the majority class of the training samples that reached the
    node; it is returned when the split feature is NaN.
    """

    feature_index: int
    cut: float
    left: "Node"
    right: "Node"
    label: str


Node = Union[Leaf, Split]


@dataclass(frozen=True)
class DecisionTree:
    """A binary classification tree over a fixed feature vector."""

    root: Node
    n_features: int

    @property
    def variables_used(self) -> Tuple[int, ...]:
        """Sorted 0-based indices of the features the tree branches on."""
        used = set()
        stack = [self.root]
        while stack:
            node = stack.pop()
            if isinstance(node, Split):
                used.add(node.feature_index)
                stack.extend((node.left, node.right))
        return tuple(sorted(used))

    def predict_one(self, row: np.ndarray) -> str:
        """Traverse the tree for a single feature vector and return its label."""
        node = self.root
        while isinstance(node, Split):
            value = row[node.feature_index]
            if np.isnan(value):
                return node.label
            node = node.left if value < node.cut else node.right
        return node.label

    def predict(self, table: np.ndarray) -> np.ndarray:
        """Return the label of every row of ``table`` as an array of str."""
        table = np.atleast_2d(np.asarray(table, dtype=float))
        if table.shape[1] != self.n_features:
            raise ValueError(
                f"Feature table has {table.shape[1]} columns, tree expects {self.n_features}"
            )
        return np.array([self.predict_one(row) for row in table], dtype=object)


@dataclass(frozen=True)
class Classifiers:
    """Contents of the model store: the feature universe and named trees."""

    feature_names: Tuple[str, ...]
    trees: Dict[str, DecisionTree]


def build_tree(spec: dict, n_features: int) -> DecisionTree:
    """Build a :class:`DecisionTree` from its tabular representation.

    Parameters
    ----------
    spec : dict
        Mapping with the keys ``var``, ``cut``, ``children`` and ``class``.
    n_features : int
        Size of the feature universe; ``var`` ids must lie in ``[0, n_features]``.

    Returns
    -------
    tree : DecisionTree

    Raises
    ------
    ValueError
        If the arrays are inconsistent or reference invalid nodes, features or labels.
    """
    try:
        var = [int(v) for v in spec["var"]]
        cut = [float(c) for c in spec["cut"]]
        children = [tuple(int(c) for c in pair) for pair in spec["children"]]
        labels = [str(lab) for lab in spec["class"]]
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed tree definition: {e}") from e

    n_nodes = len(var)
    if n_nodes == 0:
        raise ValueError("Tree has no nodes")
    if not (len(cut) == len(children) == len(labels) == n_nodes):
        raise ValueError("Tree arrays var, cut, children and class differ in length")

    bad_labels = set(labels) - set(LABELS)
    if bad_labels:
        raise ValueError(f"Tree labels must be '0' or '1', got {sorted(bad_labels)}")

    def make(node_id: int, depth: int) -> Node:
        if depth > n_nodes:
            raise ValueError("Tree contains a cycle")
        i = node_id - 1
        if var[i] == 0:
            return Leaf(labels[i])
        if not 1 <= var[i] <= n_features:
            raise ValueError(f"Node {node_id} references unknown feature id {var[i]}")
        if len(children[i]) != 2:
            raise ValueError(f"Node {node_id} must have exactly two children")
        left_id, right_id = children[i]
        for child in (left_id, right_id):
            if not 1 <= child <= n_nodes:
                raise ValueError(f"Node {node_id} references missing child {child}")
        return Split(
            feature_index=var[i] - 1,
            cut=cut[i],
            left=make(left_id, depth + 1),
            right=make(right_id, depth + 1),
            label=labels[i],
        )

    return DecisionTree(root=make(1, 0), n_features=n_features)


def _read_store(path: Optional[Union[str, Path]]) -> dict:
    if path is None:
        text = resources.files("sigscreen.data").joinpath(DEFAULT_MODEL_RESOURCE).read_text()
        return yaml.safe_load(text)
    with open(path) as f:
        return yaml.safe_load(f)


def load_classifiers(path: Optional[Union[str, Path]] = None) -> Classifiers:
    """Load the pre-trained decision trees.

    Parameters
    ----------
    path : str or Path, optional
        YAML model store. Defaults to the store shipped with the package.

    Returns
    -------
    classifiers : Classifiers
        The 19-name feature universe and the ``treeAll``/``treePrg`` trees.

    Raises
    ------
    ModelLoadError
        If the store cannot be read or does not describe both trees.
    """
    source = path if path is not None else f"package resource {DEFAULT_MODEL_RESOURCE}"
    message("debug", f"Loading pre-trained classifiers from {source}")

    try:
        store = _read_store(path)
    except (OSError, yaml.YAMLError) as e:
        raise ModelLoadError(
            f"Could not load pre-calculated classifiers from {source}: {e}"
        ) from e

    if not isinstance(store, dict):
        raise ModelLoadError(f"Classifier store {source} is not a mapping")

    feature_names: List[str] = store.get("feature_names") or []
    trees_spec = store.get("trees") or {}
    if not feature_names:
        raise ModelLoadError(f"Classifier store {source} lists no feature names")

    trees = {}
    for name in TREE_NAMES:
        if name not in trees_spec:
            raise ModelLoadError(f"Classifier store {source} has no '{name}' tree")
        try:
            trees[name] = build_tree(trees_spec[name], len(feature_names))
        except ValueError as e:
            raise ModelLoadError(f"Invalid '{name}' tree in {source}: {e}") from e

    return Classifiers(feature_names=tuple(str(n) for n in feature_names), trees=trees)
