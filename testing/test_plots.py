from signature_analysis.activity import calculate_activity
from signature_analysis.plots import (
    create_box_plots_of_activities,
    create_heatmap_of_activities,
    create_volcano_plot_of_signatures
)
import pandas as pd
import pytest


@pytest.fixture
def activity_matrix(expression_data_frame, dictionary_of_signatures_and_series_of_weights) -> pd.DataFrame:
    return calculate_activity(expression_data_frame, dictionary_of_signatures_and_series_of_weights)


@pytest.fixture
def series_of_phenotypes(list_of_samples, list_of_phenotypes) -> pd.Series:
    return pd.Series(list_of_phenotypes, index = list_of_samples, name = "phenotype")


def test_heatmap_of_activities_is_saved(tmp_path, activity_matrix, series_of_phenotypes):
    path_of_plot = tmp_path / "heatmap.png"
    create_heatmap_of_activities(
        activity_matrix,
        ["X", "Y"],
        series_of_phenotypes,
        "control",
        "treatment",
        "Activities",
        path_of_plot
    )
    assert path_of_plot.exists()


def test_volcano_plot_of_signatures_is_saved(tmp_path):
    data_frame_of_results = pd.DataFrame(
        {
            "effect_size": [0.3, -0.2, 0.01, float("nan")],
            "p_value": [0.001, 0.01, 0.8, float("nan")],
            "adjusted_p_value": [0.003, 0.015, 0.8, float("nan")]
        },
        index = ["X", "Y", "Z", "W"]
    )
    path_of_plot = tmp_path / "volcano.png"
    create_volcano_plot_of_signatures(data_frame_of_results, ["X"], "Volcano", path_of_plot)
    assert path_of_plot.exists()


def test_box_plots_are_saved_per_signature(tmp_path, activity_matrix, series_of_phenotypes):
    list_of_paths_of_plots = create_box_plots_of_activities(
        activity_matrix,
        ["X", "Z"],
        series_of_phenotypes,
        tmp_path / "box_plots"
    )
    assert [path.name for path in list_of_paths_of_plots] == [
        "box_plot_of_activity_of_X.png",
        "box_plot_of_activity_of_Z.png"
    ]
    assert all(path.exists() for path in list_of_paths_of_plots)
