'''
`activity.py`

Score activities of signatures for samples.

The activity of a signature for a sample is the sum of products of weights and normalized expressions
of the genes of the signature, divided by the number of those genes.

The marginal activity of signature A given signature B is the activity of A after removing
the genes A shares with B. Marginal activities are used to decide whether A is redundant with B.
'''

from signature_analysis.errors import ExpressionRangeError
import logging
import numpy as np
import pandas as pd


logger = logging.getLogger(__name__)


def validate_expression_is_in_open_unit_interval(expression_data_frame: pd.DataFrame):
    array_of_values = expression_data_frame.to_numpy(dtype = float)
    array_of_indicators_that_values_are_invalid = ~np.isfinite(array_of_values) | (array_of_values <= 0.0) | (array_of_values >= 1.0)
    number_of_invalid_values = int(array_of_indicators_that_values_are_invalid.sum())
    if number_of_invalid_values > 0:
        raise ExpressionRangeError(
            f"{number_of_invalid_values} expression values are not strictly between 0 and 1. Normalize expressions before scoring activities."
        )


def compute_series_of_activities(expression_data_frame: pd.DataFrame, series_of_weights: pd.Series) -> pd.Series:
    series_of_weights = series_of_weights[series_of_weights.index.isin(expression_data_frame.index)]
    if series_of_weights.empty:
        return pd.Series(np.nan, index = expression_data_frame.columns)
    return expression_data_frame.loc[series_of_weights.index].T.dot(series_of_weights) / len(series_of_weights)


def calculate_activity(
    expression_data_frame: pd.DataFrame,
    dictionary_of_signatures_and_series_of_weights: dict[str, pd.Series]
) -> pd.DataFrame:
    validate_expression_is_in_open_unit_interval(expression_data_frame)
    activity_matrix = pd.DataFrame(
        {
            signature: compute_series_of_activities(expression_data_frame, series_of_weights)
            for signature, series_of_weights in dictionary_of_signatures_and_series_of_weights.items()
        }
    ).T
    activity_matrix = activity_matrix.reindex(columns = expression_data_frame.columns)
    activity_matrix.index.name = "signature"
    logger.info(f"Activity matrix has {activity_matrix.shape[0]} signatures and {activity_matrix.shape[1]} samples.")
    return activity_matrix


def calculate_marginal_activity(
    expression_data_frame: pd.DataFrame,
    dictionary_of_signatures_and_series_of_weights: dict[str, pd.Series],
    list_of_signatures: list[str]
) -> pd.DataFrame:
    '''
    Return a data frame with one row per ordered pair (signature, removed_signature) and one column per sample.
    Row (A, A) holds the unmodified activity of A.
    A row is NaN when A has no genes left after removing the genes of B.
    '''
    validate_expression_is_in_open_unit_interval(expression_data_frame)
    dictionary_of_pairs_and_series_of_activities = {}
    for signature in list_of_signatures:
        series_of_weights = dictionary_of_signatures_and_series_of_weights[signature]
        for removed_signature in list_of_signatures:
            if removed_signature == signature:
                series_of_remaining_weights = series_of_weights
            else:
                index_of_removed_genes = dictionary_of_signatures_and_series_of_weights[removed_signature].index
                series_of_remaining_weights = series_of_weights[~series_of_weights.index.isin(index_of_removed_genes)]
            dictionary_of_pairs_and_series_of_activities[(signature, removed_signature)] = compute_series_of_activities(
                expression_data_frame,
                series_of_remaining_weights
            )
    if not dictionary_of_pairs_and_series_of_activities:
        return pd.DataFrame(
            columns = expression_data_frame.columns,
            index = pd.MultiIndex.from_tuples([], names = ["signature", "removed_signature"])
        )
    marginal_activity_matrix = pd.DataFrame(dictionary_of_pairs_and_series_of_activities).T
    marginal_activity_matrix = marginal_activity_matrix.reindex(columns = expression_data_frame.columns)
    marginal_activity_matrix.index = marginal_activity_matrix.index.set_names(["signature", "removed_signature"])
    logger.info(f"Marginal activities were calculated for {len(marginal_activity_matrix)} pairs of {len(list_of_signatures)} signatures.")
    return marginal_activity_matrix
