'''
`plots.py`

Plots of activities and differential results of signatures for human inspection.
'''

from signature_analysis.config import SIGNIFICANCE_CUTOFF
import logging
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from pathlib import Path


logger = logging.getLogger(__name__)


def create_heatmap_of_activities(
    activity_matrix: pd.DataFrame,
    list_of_signatures: list[str],
    series_of_phenotypes: pd.Series,
    reference_group: str,
    test_group: str,
    title: str,
    path_of_plot
):
    '''
    Draw z scored activities of signatures with samples of the reference group before samples of the test group.
    '''
    list_of_samples_ordered_by_phenotype = (
        list(series_of_phenotypes[series_of_phenotypes == reference_group].index) +
        list(series_of_phenotypes[series_of_phenotypes == test_group].index)
    )
    submatrix_of_activities = activity_matrix.loc[list_of_signatures, list_of_samples_ordered_by_phenotype]
    series_of_standard_deviations = submatrix_of_activities.std(axis = 1, ddof = 1).replace(0.0, np.nan)
    z_scored_activity_matrix = (
        submatrix_of_activities
        .sub(submatrix_of_activities.mean(axis = 1), axis = 0)
        .div(series_of_standard_deviations, axis = 0)
        .fillna(0.0)
    )
    series_of_samples_and_colors = series_of_phenotypes.loc[list_of_samples_ordered_by_phenotype].map(
        {
            reference_group: "#1f77b4", # blue
            test_group: "#d62728" # red
        }
    )
    series_of_samples_and_colors.name = "phenotype"
    _ = sns.clustermap(
        z_scored_activity_matrix,
        row_cluster = False,
        col_cluster = False,
        col_colors = series_of_samples_and_colors,
        center = 0,
        cmap = "RdBu_r",
        vmin = -2,
        vmax = 2,
        xticklabels = False,
        yticklabels = True
    )
    plt.suptitle(title)
    plt.savefig(path_of_plot)
    plt.close()
    logger.info(f"Heatmap of activities was saved to {path_of_plot}.")


def create_volcano_plot_of_signatures(
    data_frame_of_results: pd.DataFrame,
    list_of_selected_signatures: list[str],
    title: str,
    path_of_plot,
    significance_level: float = SIGNIFICANCE_CUTOFF
):
    data_frame = data_frame_of_results.dropna(subset = ["effect_size", "p_value"]).copy()
    data_frame["negative_log_base_10_of_p_value"] = -np.log10(data_frame["p_value"].astype(float))
    data_frame["indicator_of_whether_signature_is_selected"] = data_frame.index.isin(list_of_selected_signatures)
    plt.figure()
    ax = sns.scatterplot(
        data = data_frame,
        x = "effect_size",
        y = "negative_log_base_10_of_p_value",
        hue = "indicator_of_whether_signature_is_selected",
        s = 10
    )
    ax.axhline(-np.log10(significance_level), lw = 1, c = "black")
    ax.set_xlabel("difference in mean activity")
    ax.set_ylabel("-log_10(p value)")
    ax.set_title(title)
    ax.legend(title = "selected")
    for signature in data_frame.index[data_frame["indicator_of_whether_signature_is_selected"]]:
        horizontal_coordinate = data_frame.at[signature, "effect_size"]
        vertical_coordinate = data_frame.at[signature, "negative_log_base_10_of_p_value"]
        ax.text(horizontal_coordinate, vertical_coordinate, signature, fontsize = 7)
    plt.tight_layout()
    plt.savefig(path_of_plot)
    plt.close()
    logger.info(f"Volcano plot of signatures was saved to {path_of_plot}.")


def plot_activity_vs_phenotype(
    series_of_activities: pd.Series,
    series_of_phenotypes: pd.Series,
    title: str,
    path_of_plot
):
    data_frame_of_activities_and_phenotypes = pd.DataFrame(
        {
            "activity": series_of_activities,
            "phenotype": series_of_phenotypes
        }
    ).dropna()
    plt.figure()
    ax = sns.boxplot(data = data_frame_of_activities_and_phenotypes, x = "phenotype", y = "activity")
    sns.stripplot(data = data_frame_of_activities_and_phenotypes, x = "phenotype", y = "activity", color = "black")
    ax.set_title(title)
    plt.tight_layout()
    plt.savefig(path_of_plot)
    plt.close()


def create_box_plots_of_activities(
    activity_matrix: pd.DataFrame,
    list_of_signatures: list[str],
    series_of_phenotypes: pd.Series,
    directory_of_plots
) -> list[Path]:
    directory_of_plots = Path(directory_of_plots)
    directory_of_plots.mkdir(parents = True, exist_ok = True)
    list_of_paths_of_plots = []
    for signature in list_of_signatures:
        path_of_plot = directory_of_plots / f"box_plot_of_activity_of_{signature}.png"
        plot_activity_vs_phenotype(
            activity_matrix.loc[signature],
            series_of_phenotypes,
            f"Activity of {signature} by Phenotype",
            path_of_plot
        )
        list_of_paths_of_plots.append(path_of_plot)
    logger.info(f"{len(list_of_paths_of_plots)} box plots of activities were saved to {directory_of_plots}.")
    return list_of_paths_of_plots
