'''
`data_loading.py`

Load an expression table and the phenotypes of its samples,
map genes onto the gene space of a model,
and normalize expressions against a reference compendium
so that every expression value lies strictly between 0 and 1.
'''

from signature_analysis.config import EPSILON
from signature_analysis.errors import PhenotypeAlignmentError
import logging
import numpy as np
import pandas as pd

from pathlib import Path


logger = logging.getLogger(__name__)


def load_expression_data_frame(path_of_expression_table) -> pd.DataFrame:
    index_of_columns_of_expression_data_frame = pd.read_csv(
        path_of_expression_table,
        sep = '\t',
        nrows = 0
    ).columns
    name_of_column_of_genes = index_of_columns_of_expression_data_frame[0]
    dictionary_of_names_of_columns_and_data_types = {
        name_of_column: float
        for name_of_column in index_of_columns_of_expression_data_frame[1:]
    }
    dictionary_of_names_of_columns_and_data_types[name_of_column_of_genes] = str
    expression_data_frame = pd.read_csv(
        path_of_expression_table,
        sep = '\t',
        dtype = dictionary_of_names_of_columns_and_data_types,
        index_col = name_of_column_of_genes
    )
    expression_data_frame.index.name = "gene"
    logger.info(f"Expression data frame from {path_of_expression_table} has shape {expression_data_frame.shape}.")
    if expression_data_frame.index.has_duplicates:
        number_of_duplicated_genes = expression_data_frame.index.duplicated().sum()
        logger.info(f"{number_of_duplicated_genes} duplicated genes will be collapsed by averaging.")
        expression_data_frame = expression_data_frame.groupby(level = 0, sort = False).mean()
    return expression_data_frame


def parse_phenotypes(string_of_phenotypes: str) -> list[str]:
    return [phenotype.strip() for phenotype in string_of_phenotypes.split(',') if phenotype.strip()]


def load_phenotypes(path_of_phenotypes) -> list[str]:
    '''
    Phenotypes are listed in the order of the columns of the expression matrix,
    either one per line or comma separated.
    '''
    text = Path(path_of_phenotypes).read_text(encoding = "utf-8")
    list_of_phenotypes = []
    for line in text.splitlines():
        list_of_phenotypes.extend(parse_phenotypes(line))
    logger.info(f"{len(list_of_phenotypes)} phenotypes were loaded from {path_of_phenotypes}.")
    return list_of_phenotypes


def create_series_of_phenotypes(
    data_frame_of_values: pd.DataFrame,
    list_of_phenotypes: list[str],
    reference_group: str,
    test_group: str
) -> pd.Series:
    '''
    Pair phenotypes with the columns of a genes × samples or signatures × samples data frame.
    A mismatch is fatal and is raised before any statistics are computed.
    '''
    number_of_samples = data_frame_of_values.shape[1]
    if len(list_of_phenotypes) != number_of_samples:
        raise PhenotypeAlignmentError(
            f"{len(list_of_phenotypes)} phenotypes were provided for {number_of_samples} samples."
        )
    if reference_group == test_group:
        raise PhenotypeAlignmentError(f"Reference group and test group are both {reference_group}.")
    set_of_unknown_phenotypes = set(list_of_phenotypes) - {reference_group, test_group}
    if set_of_unknown_phenotypes:
        raise PhenotypeAlignmentError(
            f"Phenotypes {sorted(set_of_unknown_phenotypes)} are neither reference group {reference_group} nor test group {test_group}."
        )
    series_of_phenotypes = pd.Series(list_of_phenotypes, index = data_frame_of_values.columns, name = "phenotype")
    for group in [reference_group, test_group]:
        if not (series_of_phenotypes == group).any():
            raise PhenotypeAlignmentError(f"Group {group} has no samples.")
    logger.info(
        f"Phenotypes were paired with samples: {(series_of_phenotypes == reference_group).sum()} {reference_group} samples and {(series_of_phenotypes == test_group).sum()} {test_group} samples."
    )
    return series_of_phenotypes


def load_reference_compendium(path_of_reference_compendium) -> pd.DataFrame:
    reference_compendium = pd.read_csv(path_of_reference_compendium, sep = '\t', index_col = 0)
    reference_compendium.index = reference_compendium.index.astype(str)
    logger.info(f"Reference compendium has shape {reference_compendium.shape}.")
    return reference_compendium


def load_reference_probe_distribution(path_of_reference_probe_distribution) -> np.ndarray:
    array_of_values = np.sort(
        pd.read_csv(path_of_reference_probe_distribution, header = None).iloc[:, 0].astype(float).to_numpy()
    )
    logger.info(f"Reference probe distribution has {len(array_of_values)} values.")
    return array_of_values


def map_genes_onto_model(
    expression_data_frame: pd.DataFrame,
    list_of_model_genes: list[str],
    reference_compendium: pd.DataFrame | None = None
) -> pd.DataFrame:
    '''
    Reorder rows into the gene order of the model.
    Genes of the model that were not measured are filled with their median in the reference compendium.
    '''
    index_of_model_genes = pd.Index(list_of_model_genes, name = expression_data_frame.index.name)
    number_of_extra_genes = (~expression_data_frame.index.isin(index_of_model_genes)).sum()
    mapped_expression_data_frame = expression_data_frame.reindex(index_of_model_genes)
    series_of_indicators_that_genes_are_missing = mapped_expression_data_frame.isna().all(axis = 1)
    list_of_missing_genes = series_of_indicators_that_genes_are_missing[series_of_indicators_that_genes_are_missing].index.tolist()
    logger.info(
        f"{len(index_of_model_genes) - len(list_of_missing_genes)} of {len(index_of_model_genes)} model genes were measured. {number_of_extra_genes} measured genes are not in the model and were dropped."
    )
    if list_of_missing_genes:
        if reference_compendium is None:
            raise ValueError(f"{len(list_of_missing_genes)} model genes were not measured and no reference compendium was provided.")
        series_of_medians = reference_compendium.median(axis = 1).reindex(list_of_missing_genes)
        if series_of_medians.isna().any():
            raise ValueError(f"Genes {series_of_medians[series_of_medians.isna()].index.tolist()} are in neither the data nor the reference compendium.")
        for gene in list_of_missing_genes:
            mapped_expression_data_frame.loc[gene] = series_of_medians[gene]
        logger.info(f"{len(list_of_missing_genes)} unmeasured genes were filled with their medians in the reference compendium.")
    return mapped_expression_data_frame


def normalize_to_reference_distribution(expression_data_frame: pd.DataFrame, array_of_reference_values: np.ndarray) -> pd.DataFrame:
    '''
    Quantile normalize every sample onto the reference probe distribution.
    Tied values receive the same normalized value.
    '''
    array_of_sorted_reference_values = np.sort(np.asarray(array_of_reference_values, dtype = float))
    array_of_reference_quantiles = np.linspace(0.0, 1.0, len(array_of_sorted_reference_values))
    number_of_genes = expression_data_frame.shape[0]
    normalized_expression_data_frame = expression_data_frame.copy()
    for sample in expression_data_frame.columns:
        series_of_ranks = expression_data_frame[sample].rank(method = "average")
        if number_of_genes > 1:
            array_of_quantiles = ((series_of_ranks - 1) / (number_of_genes - 1)).to_numpy()
        else:
            array_of_quantiles = np.full(number_of_genes, 0.5)
        normalized_expression_data_frame[sample] = np.interp(
            array_of_quantiles,
            array_of_reference_quantiles,
            array_of_sorted_reference_values
        )
    logger.info(f"{expression_data_frame.shape[1]} samples were normalized to the reference probe distribution.")
    return normalized_expression_data_frame


def zero_one_normalize(
    expression_data_frame: pd.DataFrame,
    reference_compendium: pd.DataFrame,
    epsilon: float = EPSILON
) -> pd.DataFrame:
    '''
    Rescale each gene linearly with the minimum and maximum of that gene in the reference compendium,
    then clip into [epsilon, 1 - epsilon].
    '''
    series_of_minima = reference_compendium.min(axis = 1).reindex(expression_data_frame.index)
    series_of_maxima = reference_compendium.max(axis = 1).reindex(expression_data_frame.index)
    series_of_indicators_that_genes_are_missing = series_of_minima.isna() | series_of_maxima.isna()
    if series_of_indicators_that_genes_are_missing.any():
        raise ValueError(
            f"{series_of_indicators_that_genes_are_missing.sum()} genes are not in the reference compendium."
        )
    series_of_ranges = series_of_maxima - series_of_minima
    normalized_expression_data_frame = (
        expression_data_frame
        .sub(series_of_minima, axis = 0)
        .div(series_of_ranges.where(series_of_ranges != 0.0), axis = 0)
    )
    # Genes that are constant in the compendium carry no information.
    normalized_expression_data_frame.loc[series_of_ranges == 0.0] = 0.5
    normalized_expression_data_frame = normalized_expression_data_frame.clip(lower = epsilon, upper = 1.0 - epsilon)
    logger.info(f"Normalized expression matrix has shape {normalized_expression_data_frame.shape}.")
    return normalized_expression_data_frame
