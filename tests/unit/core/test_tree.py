"""Unit tests for decision trees and the model store."""

import numpy as np
import pytest
import yaml

from sigscreen.core.exceptions import ModelLoadError
from sigscreen.core.tree import Leaf, Split, build_tree, load_classifiers
from sigscreen.functions.features import FEATURE_NAMES
from tests.fixtures.synthetic_data import simple_tree_spec, write_tree_store

# node 1 splits on feature 2, its right child (node 3) on feature 4
TWO_LEVEL = {
    "var": [2, 0, 4, 0, 0],
    "cut": [0.5, 0, 10.0, 0, 0],
    "children": [[2, 3], [0, 0], [4, 5], [0, 0], [0, 0]],
    "class": ["0", "0", "1", "0", "1"],
}


class TestBuildTree:
    """Test conversion of the tabular tree layout into nodes."""

    def test_nodes(self):
        tree = build_tree(TWO_LEVEL, n_features=5)

        assert isinstance(tree.root, Split)
        assert tree.root.feature_index == 1
        assert tree.root.left == Leaf("0")
        assert isinstance(tree.root.right, Split)
        assert tree.root.right.feature_index == 3

    def test_variables_used(self):
        assert build_tree(TWO_LEVEL, n_features=5).variables_used == (1, 3)

    def test_single_leaf_tree(self):
        tree = build_tree({"var": [0], "cut": [0], "children": [[0, 0]], "class": ["1"]}, 3)

        assert tree.variables_used == ()
        assert tree.predict(np.full((2, 3), np.nan)).tolist() == ["1", "1"]

    @pytest.mark.parametrize(
        "change",
        [
            {"var": [2, 0]},
            {"class": ["0", "0", "2", "0", "1"]},
            {"var": [6, 0, 4, 0, 0]},
            {"children": [[2, 9], [0, 0], [4, 5], [0, 0], [0, 0]]},
            {"children": [[2, 3], [0, 0], [1, 5], [0, 0], [0, 0]]},
        ],
        ids=["length-mismatch", "bad-label", "unknown-feature", "missing-child", "cycle"],
    )
    def test_invalid_trees(self, change):
        spec = dict(TWO_LEVEL, **change)
        with pytest.raises(ValueError):
            build_tree(spec, n_features=5)


class TestPredict:
    """Test traversal of the tree."""

    def test_less_than_cut_goes_left(self):
        tree = build_tree(TWO_LEVEL, n_features=5)
        rows = np.array(
            [
                [0, 0.2, 0, 0, 0],
                [0, 0.5, 0, 3.0, 0],
                [0, 0.9, 0, 10.0, 0],
            ],
            dtype=float,
        )
        assert tree.predict(rows).tolist() == ["0", "0", "1"]

    def test_unreached_nan_columns_are_ignored(self):
        """Only columns on the traversed path need valid values."""
        tree = build_tree(TWO_LEVEL, n_features=5)
        row = np.full(5, np.nan)
        row[1] = 0.1

        assert tree.predict_one(row) == "0"

    def test_nan_at_reached_split_returns_node_label(self):
        tree = build_tree(TWO_LEVEL, n_features=5)
        row = np.full(5, np.nan)
        row[1] = 0.9

        assert tree.predict_one(row) == "1"
        assert tree.predict_one(np.full(5, np.nan)) == "0"

    def test_column_count_is_checked(self):
        tree = build_tree(TWO_LEVEL, n_features=5)
        with pytest.raises(ValueError):
            tree.predict(np.zeros((2, 4)))


class TestLoadClassifiers:
    """Test the persisted model store."""

    def test_packaged_store(self):
        classifiers = load_classifiers()

        assert classifiers.feature_names == FEATURE_NAMES
        assert set(classifiers.trees) == {"treeAll", "treePrg"}
        for tree in classifiers.trees.values():
            assert 0 < len(tree.variables_used) < len(FEATURE_NAMES)
            assert tree.n_features == 19

    def test_custom_store(self, tree_store):
        classifiers = load_classifiers(tree_store)
        psd_index = FEATURE_NAMES.index("maxNormPSD")

        assert classifiers.trees["treeAll"].variables_used == (psd_index,)
        assert classifiers.trees["treePrg"].root.cut == pytest.approx(0.0085)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ModelLoadError, match="Could not load"):
            load_classifiers(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("trees: [unclosed")
        with pytest.raises(ModelLoadError):
            load_classifiers(path)

    def test_missing_sub_model(self, tmp_path):
        path = tmp_path / "store.yaml"
        store = {"feature_names": list(FEATURE_NAMES), "trees": {"treeAll": simple_tree_spec(11, 0.01)}}
        path.write_text(yaml.safe_dump(store))

        with pytest.raises(ModelLoadError, match="treePrg"):
            load_classifiers(path)

    def test_invalid_sub_model(self, tmp_path):
        bad = simple_tree_spec(11, 0.01)
        bad["class"] = ["0", "0", "artifact"]
        path = write_tree_store(tmp_path / "store.yaml", tree_prg=bad)

        with pytest.raises(ModelLoadError, match="treePrg"):
            load_classifiers(path)

    def test_missing_feature_names(self, tmp_path):
        path = tmp_path / "store.yaml"
        path.write_text(yaml.safe_dump({"trees": {}}))
        with pytest.raises(ModelLoadError):
            load_classifiers(path)
