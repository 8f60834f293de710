import matplotlib
matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def list_of_samples() -> list[str]:
    return ["S1", "S2", "S3", "S4", "S5", "S6"]


@pytest.fixture
def list_of_phenotypes() -> list[str]:
    return ["control", "control", "control", "treatment", "treatment", "treatment"]


@pytest.fixture
def expression_data_frame(list_of_samples) -> pd.DataFrame:
    '''
    Genes A through J with values strictly between 0 and 1.
    '''
    random_number_generator = np.random.default_rng(0)
    array_of_values = random_number_generator.uniform(0.1, 0.9, size = (10, len(list_of_samples)))
    return pd.DataFrame(
        array_of_values,
        index = pd.Index(list("ABCDEFGHIJ"), name = "gene"),
        columns = list_of_samples
    )


@pytest.fixture
def dictionary_of_signatures_and_series_of_weights() -> dict[str, pd.Series]:
    return {
        "X": pd.Series({"A": 1.0, "B": 2.0, "C": 0.5}),
        "Y": pd.Series({"B": 1.5, "C": 1.0, "D": 3.0}),
        "Z": pd.Series({"E": 2.0})
    }


@pytest.fixture
def universe_of_genes() -> list[str]:
    return list("ABCDEFGHIJ")
