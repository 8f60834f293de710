'''
`selection.py`

Select active signatures by combining effect size and significance without a single arbitrary threshold.

Signatures are partitioned into Pareto fronts over 2 objectives:
maximize the absolute value of effect size and minimize adjusted p value.
Signature A dominates signature B if A is at least as good as B for both objectives and strictly better for at least one.
Front 1 is the set of signatures not dominated by any other signature.
Front k is the set of signatures not dominated after removing fronts 1 through k - 1.
Signatures with identical statistics share a front.
Active signatures are the signatures in fronts 1 through N.
'''

from collections import namedtuple
from signature_analysis.config import NUMBER_OF_PARETO_FRONTS
import logging
import numpy as np
import pandas as pd


logger = logging.getLogger(__name__)


SelectionResult = namedtuple(
    "SelectionResult",
    ["selected_signatures", "series_of_ranks", "excluded_signatures"]
)


def find_signatures_with_missing_statistics(
    data_frame_of_results: pd.DataFrame,
    name_of_column_of_effect_sizes: str = "effect_size",
    name_of_column_of_adjusted_p_values: str = "adjusted_p_value"
) -> list[str]:
    array_of_effect_sizes = pd.to_numeric(data_frame_of_results[name_of_column_of_effect_sizes], errors = "coerce").to_numpy(dtype = float)
    array_of_adjusted_p_values = pd.to_numeric(data_frame_of_results[name_of_column_of_adjusted_p_values], errors = "coerce").to_numpy(dtype = float)
    array_of_indicators_that_statistics_are_missing = ~(np.isfinite(array_of_effect_sizes) & np.isfinite(array_of_adjusted_p_values))
    return sorted(data_frame_of_results.index[array_of_indicators_that_statistics_are_missing].tolist())


def compute_pareto_front_ranks(
    data_frame_of_results: pd.DataFrame,
    name_of_column_of_effect_sizes: str = "effect_size",
    name_of_column_of_adjusted_p_values: str = "adjusted_p_value"
) -> pd.Series:
    '''
    Return a series of ranks of Pareto fronts indexed by signature and sorted by signature.
    Signatures with missing or non-finite statistics are not ranked.
    '''
    list_of_excluded_signatures = find_signatures_with_missing_statistics(
        data_frame_of_results,
        name_of_column_of_effect_sizes,
        name_of_column_of_adjusted_p_values
    )
    data_frame = (
        data_frame_of_results
        .loc[~data_frame_of_results.index.isin(list_of_excluded_signatures)]
        .sort_index()
    )
    array_of_absolute_effect_sizes = data_frame[name_of_column_of_effect_sizes].astype(float).abs().to_numpy()
    array_of_adjusted_p_values = data_frame[name_of_column_of_adjusted_p_values].astype(float).to_numpy()
    array_of_ranks = np.zeros(len(data_frame), dtype = int)
    array_of_indicators_that_signatures_remain = np.ones(len(data_frame), dtype = bool)
    rank = 0
    while array_of_indicators_that_signatures_remain.any():
        rank += 1
        array_of_remaining_indices = np.flatnonzero(array_of_indicators_that_signatures_remain)
        absolute_effect_sizes = array_of_absolute_effect_sizes[array_of_remaining_indices]
        adjusted_p_values = array_of_adjusted_p_values[array_of_remaining_indices]
        # Element [i, j] indicates that signature j dominates signature i.
        matrix_of_indicators_of_weak_dominance = (
            (absolute_effect_sizes[None, :] >= absolute_effect_sizes[:, None]) &
            (adjusted_p_values[None, :] <= adjusted_p_values[:, None])
        )
        matrix_of_indicators_of_strict_improvement = (
            (absolute_effect_sizes[None, :] > absolute_effect_sizes[:, None]) |
            (adjusted_p_values[None, :] < adjusted_p_values[:, None])
        )
        array_of_indicators_that_signatures_are_dominated = (
            matrix_of_indicators_of_weak_dominance & matrix_of_indicators_of_strict_improvement
        ).any(axis = 1)
        array_of_indices_in_front = array_of_remaining_indices[~array_of_indicators_that_signatures_are_dominated]
        array_of_ranks[array_of_indices_in_front] = rank
        array_of_indicators_that_signatures_remain[array_of_indices_in_front] = False
    return pd.Series(array_of_ranks, index = data_frame.index, name = "rank_of_Pareto_front")


def select_active_signatures(
    data_frame_of_results: pd.DataFrame,
    number_of_fronts: int = NUMBER_OF_PARETO_FRONTS,
    phenotype_group: str = "both",
    name_of_column_of_effect_sizes: str = "effect_size",
    name_of_column_of_adjusted_p_values: str = "adjusted_p_value"
) -> SelectionResult:
    '''
    Return the signatures in the first `number_of_fronts` Pareto fronts.

    `phenotype_group` is
    "up" to rank only signatures with nonnegative effect sizes,
    "down" to rank only signatures with negative effect sizes, or
    "both" to rank signatures with nonnegative and negative effect sizes separately and take the union.

    Selected signatures are ordered by rank, adjusted p value, descending absolute effect size, and signature.
    '''
    if number_of_fronts < 1:
        raise ValueError(f"Number of fronts must be at least 1 and is {number_of_fronts}.")
    if phenotype_group not in ("up", "down", "both"):
        raise ValueError(f"Phenotype group must be up, down, or both and is {phenotype_group}.")
    list_of_excluded_signatures = find_signatures_with_missing_statistics(
        data_frame_of_results,
        name_of_column_of_effect_sizes,
        name_of_column_of_adjusted_p_values
    )
    if list_of_excluded_signatures:
        logger.info(f"{len(list_of_excluded_signatures)} signatures with missing statistics were excluded from ranking: {list_of_excluded_signatures}")
    data_frame = data_frame_of_results.loc[~data_frame_of_results.index.isin(list_of_excluded_signatures)]
    series_of_effect_sizes = data_frame[name_of_column_of_effect_sizes].astype(float)
    dictionary_of_groups_and_data_frames = {
        "up": data_frame.loc[series_of_effect_sizes >= 0.0],
        "down": data_frame.loc[series_of_effect_sizes < 0.0]
    }
    list_of_groups = ["up", "down"] if phenotype_group == "both" else [phenotype_group]
    list_of_series_of_ranks = [
        compute_pareto_front_ranks(
            dictionary_of_groups_and_data_frames[group],
            name_of_column_of_effect_sizes,
            name_of_column_of_adjusted_p_values
        )
        for group in list_of_groups
    ]
    series_of_ranks = pd.concat(list_of_series_of_ranks).sort_index()
    series_of_ranks.name = "rank_of_Pareto_front"
    data_frame_of_selected_signatures = pd.DataFrame(
        {
            "signature": series_of_ranks.index,
            "rank_of_Pareto_front": series_of_ranks.to_numpy(),
            "adjusted_p_value": data_frame.loc[series_of_ranks.index, name_of_column_of_adjusted_p_values].astype(float).to_numpy(),
            "absolute_effect_size": data_frame.loc[series_of_ranks.index, name_of_column_of_effect_sizes].astype(float).abs().to_numpy()
        }
    )
    data_frame_of_selected_signatures = (
        data_frame_of_selected_signatures[data_frame_of_selected_signatures["rank_of_Pareto_front"] <= number_of_fronts]
        .sort_values(
            ["rank_of_Pareto_front", "adjusted_p_value", "absolute_effect_size", "signature"],
            ascending = [True, True, False, True],
            kind = "mergesort"
        )
    )
    list_of_selected_signatures = data_frame_of_selected_signatures["signature"].tolist()
    logger.info(
        f"{len(list_of_selected_signatures)} of {len(series_of_ranks)} ranked signatures are in the first {number_of_fronts} Pareto fronts for phenotype group {phenotype_group}."
    )
    return SelectionResult(list_of_selected_signatures, series_of_ranks, list_of_excluded_signatures)
