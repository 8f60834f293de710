'''
`differential.py`

Test rows of a data frame of values (signatures × samples or genes × samples) for differences between a reference group and a test group of samples.

Every tester returns a data frame indexed like the tested values with columns
`effect_size` (mean value for test group minus mean value for reference group),
`p_value`, and
`adjusted_p_value` (Benjamini-Hochberg procedure across rows with finite p values).
'''

from abc import ABC, abstractmethod
from signature_analysis.config import SIGNIFICANCE_CUTOFF
from signature_analysis.data_loading import create_series_of_phenotypes
from statsmodels.stats.multitest import multipletests
import logging
import numpy as np
import pandas as pd
import statsmodels.formula.api as smf


logger = logging.getLogger(__name__)


LIST_OF_COLUMNS_OF_RESULTS = ["effect_size", "p_value", "adjusted_p_value"]


def add_adjusted_p_values(data_frame_of_results: pd.DataFrame) -> pd.DataFrame:
    series_of_indicators_that_p_values_are_finite = np.isfinite(data_frame_of_results["p_value"].astype(float))
    data_frame_of_results["adjusted_p_value"] = np.nan
    if series_of_indicators_that_p_values_are_finite.any():
        _, array_of_adjusted_p_values, _, _ = multipletests(
            data_frame_of_results.loc[series_of_indicators_that_p_values_are_finite, "p_value"],
            method = "fdr_bh"
        )
        data_frame_of_results.loc[series_of_indicators_that_p_values_are_finite, "adjusted_p_value"] = array_of_adjusted_p_values
    return data_frame_of_results


class DifferentialTester(ABC):
    '''
    Class DifferentialTester is a template for an object that tests each row of a data frame of values for a difference between groups.
    '''

    @abstractmethod
    def test(
        self,
        data_frame_of_values: pd.DataFrame,
        series_of_phenotypes: pd.Series,
        reference_group: str,
        test_group: str
    ) -> pd.DataFrame:
        ...


class LinearModelDifferentialTester(DifferentialTester):
    '''
    Fit for every row an ordinary least squares model of value vs. indicator that a sample is in the test group.
    '''

    def test(self, data_frame_of_values, series_of_phenotypes, reference_group, test_group):
        series_of_indicators = (series_of_phenotypes == test_group).astype(int)
        list_of_results = []
        for _, series_of_values in data_frame_of_values.iterrows():
            data_frame = pd.DataFrame(
                {
                    "value": pd.to_numeric(series_of_values, errors = "raise"),
                    "indicator": series_of_indicators
                }
            )
            if data_frame["value"].isna().any():
                list_of_results.append((np.nan, np.nan))
                continue
            regression_results_wrapper = smf.ols("value ~ indicator", data = data_frame).fit()
            list_of_results.append(
                (
                    regression_results_wrapper.params["indicator"],
                    regression_results_wrapper.pvalues["indicator"]
                )
            )
        data_frame_of_results = pd.DataFrame(
            list_of_results,
            columns = ["effect_size", "p_value"],
            index = data_frame_of_values.index
        )
        return add_adjusted_p_values(data_frame_of_results)


def run_differential_test(
    differential_tester: DifferentialTester,
    data_frame_of_values: pd.DataFrame,
    list_of_phenotypes: list[str],
    reference_group: str,
    test_group: str
) -> pd.DataFrame:
    series_of_phenotypes = create_series_of_phenotypes(data_frame_of_values, list_of_phenotypes, reference_group, test_group)
    logger.info(
        f"{len(data_frame_of_values)} rows will be tested for differences between {test_group} and {reference_group} with {type(differential_tester).__name__}."
    )
    data_frame_of_results = differential_tester.test(data_frame_of_values, series_of_phenotypes, reference_group, test_group)
    data_frame_of_results = data_frame_of_results[LIST_OF_COLUMNS_OF_RESULTS]
    logger.info(
        f"{(data_frame_of_results['adjusted_p_value'] < SIGNIFICANCE_CUTOFF).sum()} of {len(data_frame_of_results)} rows have adjusted p values less than {SIGNIFICANCE_CUTOFF}."
    )
    return data_frame_of_results
