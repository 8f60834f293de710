'''
`overlap.py`

Measure how much pairs of signatures overlap in genes.

For each pair of signatures, a one-sided Fisher's exact test compares the number of shared genes
with the number expected if the 2 signatures drew genes independently from a universe of genes.
'''

from itertools import combinations
from scipy.stats import fisher_exact
import logging
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns


logger = logging.getLogger(__name__)


def compute_signature_overlap(
    dictionary_of_signatures_and_series_of_weights: dict[str, pd.Series],
    list_of_signatures: list[str],
    universe_of_genes
) -> pd.DataFrame:
    set_of_genes_in_universe = set(universe_of_genes)
    number_of_genes_in_universe = len(set_of_genes_in_universe)
    list_of_rows = []
    for signature_1, signature_2 in combinations(list_of_signatures, 2):
        set_of_genes_1 = set(dictionary_of_signatures_and_series_of_weights[signature_1].index) & set_of_genes_in_universe
        set_of_genes_2 = set(dictionary_of_signatures_and_series_of_weights[signature_2].index) & set_of_genes_in_universe
        number_of_shared_genes = len(set_of_genes_1 & set_of_genes_2)
        contingency_table = [
            [number_of_shared_genes, len(set_of_genes_1) - number_of_shared_genes],
            [len(set_of_genes_2) - number_of_shared_genes, number_of_genes_in_universe - len(set_of_genes_1 | set_of_genes_2)]
        ]
        odds_ratio, p_value = fisher_exact(contingency_table, alternative = "greater")
        list_of_rows.append(
            {
                "signature_1": signature_1,
                "signature_2": signature_2,
                "number_of_shared_genes": number_of_shared_genes,
                "odds_ratio": odds_ratio,
                "p_value": p_value
            }
        )
    data_frame_of_overlap = pd.DataFrame(
        list_of_rows,
        columns = ["signature_1", "signature_2", "number_of_shared_genes", "odds_ratio", "p_value"]
    )
    logger.info(
        f"{(data_frame_of_overlap['number_of_shared_genes'] > 0).sum()} of {len(data_frame_of_overlap)} pairs of signatures share genes."
    )
    return data_frame_of_overlap


def create_matrix_of_odds_ratios(data_frame_of_overlap: pd.DataFrame, list_of_signatures: list[str]) -> pd.DataFrame:
    matrix_of_odds_ratios = pd.DataFrame(np.nan, index = list_of_signatures, columns = list_of_signatures)
    for _, row in data_frame_of_overlap.iterrows():
        matrix_of_odds_ratios.at[row["signature_1"], row["signature_2"]] = row["odds_ratio"]
        matrix_of_odds_ratios.at[row["signature_2"], row["signature_1"]] = row["odds_ratio"]
    return matrix_of_odds_ratios


def create_heatmap_of_signature_overlap(
    data_frame_of_overlap: pd.DataFrame,
    list_of_signatures: list[str],
    path_of_plot
):
    matrix_of_odds_ratios = create_matrix_of_odds_ratios(data_frame_of_overlap, list_of_signatures)
    # Infinite odds ratios of signatures nested in other signatures are drawn at the largest finite value.
    array_of_finite_odds_ratios = matrix_of_odds_ratios.to_numpy()[np.isfinite(matrix_of_odds_ratios.to_numpy())]
    maximum_finite_odds_ratio = array_of_finite_odds_ratios.max() if array_of_finite_odds_ratios.size > 0 else 1.0
    matrix_of_logs_of_odds_ratios = np.log2(
        matrix_of_odds_ratios.replace(np.inf, maximum_finite_odds_ratio) + 1.0
    )
    size = max(4, 0.4 * len(list_of_signatures))
    plt.figure(figsize = (size + 2, size))
    ax = sns.heatmap(matrix_of_logs_of_odds_ratios, cmap = "Reds", square = True, cbar_kws = {"label": "log_2(odds ratio + 1)"})
    ax.set_title("Overlap of Genes of Signatures")
    plt.tight_layout()
    plt.savefig(path_of_plot)
    plt.close()
