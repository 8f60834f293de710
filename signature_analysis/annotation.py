'''
`annotation.py`

Annotate signatures with genes and with pathways.

Gene sets (e.g., KEGG pathways) are loaded from GMT or JSON files and filtered to gene sets
with numbers of genes in the universe of model genes within a window.
A signature is associated with a gene set if the genes of the signature are enriched in the gene set
per a one-sided Fisher's exact test with p values adjusted across gene sets with the Benjamini-Hochberg procedure.
'''

from abc import ABC, abstractmethod
from gseapy.parser import read_gmt
from signature_analysis.config import MAXIMUM_SIZE_OF_GENE_SET, MINIMUM_SIZE_OF_GENE_SET, SIGNIFICANCE_CUTOFF
from signature_analysis.model import create_data_frame_of_signatures_and_genes
from scipy.stats import fisher_exact
from statsmodels.stats.multitest import multipletests
import json
import logging
import numpy as np
import pandas as pd

from pathlib import Path


logger = logging.getLogger(__name__)


LIST_OF_COLUMNS_OF_ASSOCIATIONS = [
    "signature",
    "gene_set",
    "number_of_overlapping_genes",
    "odds_ratio",
    "p_value",
    "adjusted_p_value",
    "overlapping_genes"
]


def load_gene_sets_from_GMT(path_of_GMT_file) -> dict[str, list[str]]:
    '''
    Every line of a GMT file is a name of a gene set, a description, and genes, separated by tabs.
    Gene sets without genes are skipped, and repeated genes are kept once.
    '''
    dictionary_of_names_of_sets_of_genes_and_lists_of_genes = {}
    for name_of_set_of_genes, list_of_genes in read_gmt(str(path_of_GMT_file)).items():
        list_of_unique_genes = list(dict.fromkeys(gene for gene in list_of_genes if gene))
        if name_of_set_of_genes and list_of_unique_genes:
            dictionary_of_names_of_sets_of_genes_and_lists_of_genes[name_of_set_of_genes] = list_of_unique_genes
    logger.info(f"{len(dictionary_of_names_of_sets_of_genes_and_lists_of_genes)} gene sets were loaded from {path_of_GMT_file}.")
    return dictionary_of_names_of_sets_of_genes_and_lists_of_genes


def load_gene_sets_from_JSON(path_of_JSON_file) -> dict[str, list[str]]:
    string_representing_dictionary_of_names_of_sets_of_genes_and_lists_of_genes = Path(path_of_JSON_file).read_text(encoding = "utf-8")
    JSON_representing_dictionary_of_names_of_sets_of_genes_and_lists_of_genes = json.loads(
        string_representing_dictionary_of_names_of_sets_of_genes_and_lists_of_genes
    )
    return {
        name_of_set_of_genes: [str(gene) for gene in list_of_genes]
        for name_of_set_of_genes, list_of_genes
        in JSON_representing_dictionary_of_names_of_sets_of_genes_and_lists_of_genes.items()
    }


def load_gene_sets(path_of_gene_sets) -> dict[str, list[str]]:
    if Path(path_of_gene_sets).suffix.lower() == ".json":
        return load_gene_sets_from_JSON(path_of_gene_sets)
    return load_gene_sets_from_GMT(path_of_gene_sets)


def filter_gene_sets_by_size(
    dictionary_of_names_of_sets_of_genes_and_lists_of_genes: dict[str, list[str]],
    minimum_size: int = MINIMUM_SIZE_OF_GENE_SET,
    maximum_size: int = MAXIMUM_SIZE_OF_GENE_SET,
    universe_of_genes = None
) -> dict[str, list[str]]:
    '''
    Keep gene sets whose numbers of genes in the universe are between `minimum_size` and `maximum_size` inclusive.
    Genes outside the universe are removed from kept gene sets.
    '''
    set_of_genes_in_universe = set(universe_of_genes) if universe_of_genes is not None else None
    dictionary_of_filtered_gene_sets = {}
    for name_of_set_of_genes, list_of_genes in dictionary_of_names_of_sets_of_genes_and_lists_of_genes.items():
        if set_of_genes_in_universe is not None:
            list_of_genes = [gene for gene in list_of_genes if gene in set_of_genes_in_universe]
        if minimum_size <= len(list_of_genes) <= maximum_size:
            dictionary_of_filtered_gene_sets[name_of_set_of_genes] = list_of_genes
    logger.info(
        f"{len(dictionary_of_filtered_gene_sets)} of {len(dictionary_of_names_of_sets_of_genes_and_lists_of_genes)} gene sets have between {minimum_size} and {maximum_size} genes."
    )
    return dictionary_of_filtered_gene_sets


class GeneSetAnnotator(ABC):
    '''
    Class GeneSetAnnotator is a template for an object that associates signatures with gene sets.
    '''

    @abstractmethod
    def annotate(
        self,
        dictionary_of_signatures_and_series_of_weights: dict[str, pd.Series],
        list_of_signatures: list[str],
        dictionary_of_names_of_sets_of_genes_and_lists_of_genes: dict[str, list[str]],
        universe_of_genes
    ) -> pd.DataFrame:
        ...


class FisherExactGeneSetAnnotator(GeneSetAnnotator):

    def annotate(
        self,
        dictionary_of_signatures_and_series_of_weights,
        list_of_signatures,
        dictionary_of_names_of_sets_of_genes_and_lists_of_genes,
        universe_of_genes
    ):
        set_of_genes_in_universe = set(universe_of_genes)
        number_of_genes_in_universe = len(set_of_genes_in_universe)
        list_of_data_frames = []
        for signature in list_of_signatures:
            set_of_genes_of_signature = set(dictionary_of_signatures_and_series_of_weights[signature].index) & set_of_genes_in_universe
            list_of_rows = []
            for name_of_set_of_genes, list_of_genes in dictionary_of_names_of_sets_of_genes_and_lists_of_genes.items():
                set_of_genes_of_gene_set = set(list_of_genes) & set_of_genes_in_universe
                set_of_overlapping_genes = set_of_genes_of_signature & set_of_genes_of_gene_set
                number_of_overlapping_genes = len(set_of_overlapping_genes)
                contingency_table = [
                    [number_of_overlapping_genes, len(set_of_genes_of_signature) - number_of_overlapping_genes],
                    [
                        len(set_of_genes_of_gene_set) - number_of_overlapping_genes,
                        number_of_genes_in_universe - len(set_of_genes_of_signature | set_of_genes_of_gene_set)
                    ]
                ]
                odds_ratio, p_value = fisher_exact(contingency_table, alternative = "greater")
                list_of_rows.append(
                    (
                        signature,
                        name_of_set_of_genes,
                        number_of_overlapping_genes,
                        odds_ratio,
                        p_value,
                        np.nan,
                        ";".join(sorted(set_of_overlapping_genes))
                    )
                )
            data_frame = pd.DataFrame(list_of_rows, columns = LIST_OF_COLUMNS_OF_ASSOCIATIONS)
            if not data_frame.empty:
                data_frame["adjusted_p_value"] = multipletests(data_frame["p_value"], method = "fdr_bh")[1]
            list_of_data_frames.append(data_frame)
        if not list_of_data_frames:
            return pd.DataFrame(columns = LIST_OF_COLUMNS_OF_ASSOCIATIONS)
        data_frame_of_associations = pd.concat(list_of_data_frames, ignore_index = True)
        return data_frame_of_associations.sort_values(["signature", "adjusted_p_value", "gene_set"], ignore_index = True)


def annotate_signatures_with_genes(
    dictionary_of_signatures_and_series_of_weights: dict[str, pd.Series],
    list_of_signatures: list[str],
    gene_information: pd.DataFrame | None = None
) -> pd.DataFrame:
    '''
    Return a long data frame of signatures, genes, and weights,
    joined with columns of `gene_information` (e.g., symbol and description) indexed by gene.
    '''
    data_frame = create_data_frame_of_signatures_and_genes(
        {
            signature: dictionary_of_signatures_and_series_of_weights[signature]
            for signature in list_of_signatures
        }
    )
    if gene_information is not None:
        data_frame = data_frame.merge(
            gene_information,
            how = "left",
            left_on = "gene",
            right_index = True,
            validate = "many_to_one"
        )
    return data_frame


def list_significant_pathways(
    data_frame_of_associations: pd.DataFrame,
    significance_cutoff: float = SIGNIFICANCE_CUTOFF
) -> list[str]:
    return sorted(
        data_frame_of_associations.loc[
            data_frame_of_associations["adjusted_p_value"] < significance_cutoff,
            "gene_set"
        ].unique().tolist()
    )


def combine_pathways_and_differential_results(
    data_frame_of_associations: pd.DataFrame,
    data_frame_of_differential_results: pd.DataFrame,
    significance_cutoff: float = SIGNIFICANCE_CUTOFF
) -> pd.DataFrame:
    '''
    Return one row per pathway significantly associated with at least one signature,
    with the associated signatures and the differential result of the associated signature with the smallest adjusted p value.
    '''
    data_frame_of_significant_associations = (
        data_frame_of_associations[data_frame_of_associations["adjusted_p_value"] < significance_cutoff]
        [["signature", "gene_set", "adjusted_p_value"]]
        .rename(columns = {"adjusted_p_value": "adjusted_p_value_of_association"})
        .merge(
            data_frame_of_differential_results[["effect_size", "adjusted_p_value"]],
            how = "left",
            left_on = "signature",
            right_index = True,
            validate = "many_to_one"
        )
        .sort_values(["gene_set", "adjusted_p_value", "signature"], kind = "mergesort")
    )
    list_of_rows = []
    for name_of_set_of_genes, data_frame in data_frame_of_significant_associations.groupby("gene_set", sort = True):
        row_of_best_signature = data_frame.iloc[0]
        list_of_rows.append(
            {
                "gene_set": name_of_set_of_genes,
                "signatures": ",".join(data_frame["signature"]),
                "number_of_signatures": len(data_frame),
                "minimum_adjusted_p_value_of_association": data_frame["adjusted_p_value_of_association"].min(),
                "most_significant_signature": row_of_best_signature["signature"],
                "effect_size_of_most_significant_signature": row_of_best_signature["effect_size"],
                "adjusted_p_value_of_most_significant_signature": row_of_best_signature["adjusted_p_value"]
            }
        )
    data_frame_of_pathways = pd.DataFrame(
        list_of_rows,
        columns = [
            "gene_set",
            "signatures",
            "number_of_signatures",
            "minimum_adjusted_p_value_of_association",
            "most_significant_signature",
            "effect_size_of_most_significant_signature",
            "adjusted_p_value_of_most_significant_signature"
        ]
    )
    logger.info(f"{len(data_frame_of_pathways)} pathways are significantly associated with signatures.")
    return data_frame_of_pathways.sort_values(
        ["adjusted_p_value_of_most_significant_signature", "gene_set"],
        ignore_index = True
    )
