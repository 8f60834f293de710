'''
Usage
pytest -q testing/test_data_loading.py
'''

from pandas.testing import assert_frame_equal, assert_series_equal
from signature_analysis.data_loading import (
    create_series_of_phenotypes,
    load_expression_data_frame,
    load_phenotypes,
    load_reference_probe_distribution,
    map_genes_onto_model,
    normalize_to_reference_distribution,
    parse_phenotypes,
    zero_one_normalize
)
from signature_analysis.errors import PhenotypeAlignmentError
import numpy as np
import pandas as pd
import pytest


def test_that_duplicated_genes_are_averaged(tmp_path):
    path_of_expression_table = tmp_path / "expression.tsv"
    path_of_expression_table.write_text("gene\tS1\tS2\nA\t1\t2\nB\t3\t4\nA\t3\t6\n")
    expression_data_frame = load_expression_data_frame(path_of_expression_table)
    expected_data_frame = pd.DataFrame(
        {"S1": [2.0, 3.0], "S2": [4.0, 4.0]},
        index = pd.Index(["A", "B"], name = "gene")
    )
    assert_frame_equal(expression_data_frame, expected_data_frame)


def test_that_gene_IDs_are_read_as_strings(tmp_path):
    path_of_expression_table = tmp_path / "expression.tsv"
    path_of_expression_table.write_text("gene\tS1\n100\t0.5\n200\t0.25\n")
    expression_data_frame = load_expression_data_frame(path_of_expression_table)
    assert expression_data_frame.index.tolist() == ["100", "200"]


def test_parse_phenotypes():
    assert parse_phenotypes("control, treatment,,control ") == ["control", "treatment", "control"]


def test_load_phenotypes_from_lines_and_commas(tmp_path):
    path_of_phenotypes = tmp_path / "phenotypes.txt"
    path_of_phenotypes.write_text("control\ncontrol\n\ntreatment,treatment\n")
    assert load_phenotypes(path_of_phenotypes) == ["control", "control", "treatment", "treatment"]


def test_that_phenotypes_are_paired_with_samples(expression_data_frame, list_of_phenotypes):
    series_of_phenotypes = create_series_of_phenotypes(expression_data_frame, list_of_phenotypes, "control", "treatment")
    assert_series_equal(
        series_of_phenotypes,
        pd.Series(list_of_phenotypes, index = expression_data_frame.columns, name = "phenotype")
    )


@pytest.mark.parametrize(
    "list_of_phenotypes, reference_group, test_group",
    [
        (["control"] * 3 + ["treatment"] * 2, "control", "treatment"),
        (["control"] * 3 + ["treatment"] * 4, "control", "treatment"),
        (["control"] * 3 + ["treatment"] * 3, "control", "control"),
        (["control"] * 3 + ["treatment"] * 2 + ["other"], "control", "treatment"),
        (["control"] * 6, "control", "treatment")
    ]
)
def test_that_misaligned_phenotypes_are_rejected(expression_data_frame, list_of_phenotypes, reference_group, test_group):
    with pytest.raises(PhenotypeAlignmentError):
        create_series_of_phenotypes(expression_data_frame, list_of_phenotypes, reference_group, test_group)


def test_that_phenotype_alignment_errors_are_value_errors(expression_data_frame):
    with pytest.raises(ValueError):
        create_series_of_phenotypes(expression_data_frame, ["control"], "control", "treatment")


def test_that_genes_are_mapped_onto_model_and_missing_genes_are_filled_with_medians():
    expression_data_frame = pd.DataFrame(
        {"S1": [0.2, 0.4, 9.0], "S2": [0.3, 0.5, 9.0]},
        index = pd.Index(["A", "B", "X"], name = "gene")
    )
    reference_compendium = pd.DataFrame(
        {"R1": [0.0, 0.0, 1.0], "R2": [1.0, 1.0, 3.0], "R3": [2.0, 2.0, 5.0]},
        index = ["A", "B", "C"]
    )
    mapped_expression_data_frame = map_genes_onto_model(expression_data_frame, ["B", "A", "C"], reference_compendium)
    expected_data_frame = pd.DataFrame(
        {"S1": [0.4, 0.2, 3.0], "S2": [0.5, 0.3, 3.0]},
        index = pd.Index(["B", "A", "C"], name = "gene")
    )
    assert_frame_equal(mapped_expression_data_frame, expected_data_frame)


def test_that_unmeasured_genes_without_compendium_are_rejected():
    expression_data_frame = pd.DataFrame({"S1": [0.2]}, index = pd.Index(["A"], name = "gene"))
    with pytest.raises(ValueError):
        map_genes_onto_model(expression_data_frame, ["A", "B"])


def test_zero_one_normalization_stays_strictly_between_0_and_1():
    expression_data_frame = pd.DataFrame(
        {"S1": [5.0, 7.0], "S2": [20.0, 7.0], "S3": [-1.0, 7.0]},
        index = pd.Index(["A", "B"], name = "gene")
    )
    reference_compendium = pd.DataFrame(
        {"R1": [0.0, 7.0], "R2": [10.0, 7.0]},
        index = ["A", "B"]
    )
    epsilon = 1e-6
    normalized_expression_data_frame = zero_one_normalize(expression_data_frame, reference_compendium, epsilon)
    expected_data_frame = pd.DataFrame(
        {"S1": [0.5, 0.5], "S2": [1.0 - epsilon, 0.5], "S3": [epsilon, 0.5]},
        index = pd.Index(["A", "B"], name = "gene")
    )
    assert_frame_equal(normalized_expression_data_frame, expected_data_frame)
    array_of_values = normalized_expression_data_frame.to_numpy()
    assert ((array_of_values > 0.0) & (array_of_values < 1.0)).all()


def test_that_genes_missing_from_compendium_cannot_be_zero_one_normalized():
    expression_data_frame = pd.DataFrame({"S1": [0.5]}, index = pd.Index(["A"], name = "gene"))
    reference_compendium = pd.DataFrame({"R1": [0.0]}, index = ["B"])
    with pytest.raises(ValueError):
        zero_one_normalize(expression_data_frame, reference_compendium)


@pytest.mark.parametrize(
    "list_of_values, list_of_expected_values",
    [
        ([3.0, 1.0, 2.0], [30.0, 10.0, 20.0]),
        ([1.0, 1.0, 2.0], [15.0, 15.0, 30.0])
    ]
)
def test_normalization_to_reference_distribution(list_of_values, list_of_expected_values):
    expression_data_frame = pd.DataFrame({"S1": list_of_values}, index = pd.Index(["A", "B", "C"], name = "gene"))
    normalized_expression_data_frame = normalize_to_reference_distribution(expression_data_frame, np.array([20.0, 10.0, 30.0]))
    np.testing.assert_allclose(normalized_expression_data_frame["S1"].to_numpy(), list_of_expected_values)


def test_that_reference_probe_distribution_is_sorted(tmp_path):
    path_of_distribution = tmp_path / "distribution.txt"
    path_of_distribution.write_text("3.0\n1.0\n2.0\n")
    np.testing.assert_array_equal(load_reference_probe_distribution(path_of_distribution), [1.0, 2.0, 3.0])
