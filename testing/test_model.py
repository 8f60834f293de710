from pandas.testing import assert_series_equal
from signature_analysis.model import create_data_frame_of_signatures_and_genes, extract_signatures, load_model
import numpy as np
import pandas as pd


def create_model() -> pd.DataFrame:
    list_of_genes = [f"G{index}" for index in range(20)]
    array_of_weights_of_node_0 = np.zeros(20)
    array_of_weights_of_node_0[0] = 10.0
    array_of_weights_of_node_0[19] = -10.0
    return pd.DataFrame(
        {
            "N0": array_of_weights_of_node_0,
            "N1": np.zeros(20)
        },
        index = pd.Index(list_of_genes, name = "gene")
    )


def test_that_signatures_are_high_weight_genes_of_nodes():
    dictionary_of_signatures_and_series_of_weights = extract_signatures(create_model(), high_weight_cutoff = 2.5)
    assert list(dictionary_of_signatures_and_series_of_weights) == ["N0pos", "N0neg"]
    assert_series_equal(
        dictionary_of_signatures_and_series_of_weights["N0pos"],
        pd.Series([10.0], index = pd.Index(["G0"], name = "gene"), name = "N0pos")
    )
    assert dictionary_of_signatures_and_series_of_weights["N0neg"].index.tolist() == ["G19"]


def test_that_higher_cutoffs_give_no_more_genes():
    model = create_model()
    model.loc["G1", "N0"] = 6.0
    dictionary_for_low_cutoff = extract_signatures(model, high_weight_cutoff = 1.0)
    dictionary_for_high_cutoff = extract_signatures(model, high_weight_cutoff = 2.5)
    for signature, series_of_weights in dictionary_for_high_cutoff.items():
        assert set(series_of_weights.index) <= set(dictionary_for_low_cutoff[signature].index)
    assert "G1" in dictionary_for_low_cutoff["N0pos"].index
    assert "G1" not in dictionary_for_high_cutoff["N0pos"].index


def test_load_model(tmp_path):
    path_of_model = tmp_path / "model.tsv"
    path_of_model.write_text("gene\tN0\tN1\n1\t0.5\t-0.5\n2\t1.5\t0.0\n")
    model = load_model(path_of_model)
    assert model.index.tolist() == ["1", "2"]
    assert model.index.name == "gene"
    assert model.columns.tolist() == ["N0", "N1"]


def test_data_frame_of_signatures_and_genes(dictionary_of_signatures_and_series_of_weights):
    data_frame = create_data_frame_of_signatures_and_genes(dictionary_of_signatures_and_series_of_weights)
    assert data_frame.columns.tolist() == ["signature", "gene", "weight"]
    assert len(data_frame) == 7
    assert data_frame.loc[data_frame["signature"] == "Y", "gene"].tolist() == ["B", "C", "D"]


def test_that_no_signatures_give_an_empty_data_frame():
    data_frame = create_data_frame_of_signatures_and_genes({})
    assert data_frame.empty
    assert data_frame.columns.tolist() == ["signature", "gene", "weight"]
