'''
`comparison.py`

Compare pathways associated with signatures with pathways found by GSEA.

GSEA upper-cases names of gene sets, so names are compared after case folding.
Results are reported with the names of pathways associated with signatures where a name is shared.
'''

from collections import namedtuple
from matplotlib_venn import venn2
import logging
import matplotlib.pyplot as plt
import pandas as pd


logger = logging.getLogger(__name__)


ComparisonOfPathways = namedtuple(
    "ComparisonOfPathways",
    ["shared_pathways", "pathways_only_from_signatures", "pathways_only_from_GSEA"]
)


def create_dictionary_of_folded_names_and_names(iterable_of_pathways) -> dict[str, str]:
    dictionary_of_folded_names_and_names = {}
    for pathway in iterable_of_pathways:
        dictionary_of_folded_names_and_names.setdefault(str(pathway).casefold(), str(pathway))
    return dictionary_of_folded_names_and_names


def compare_sets_of_pathways(pathways_from_signatures, pathways_from_GSEA) -> ComparisonOfPathways:
    dictionary_of_folded_names_and_names_from_signatures = create_dictionary_of_folded_names_and_names(pathways_from_signatures)
    dictionary_of_folded_names_and_names_from_GSEA = create_dictionary_of_folded_names_and_names(pathways_from_GSEA)
    set_of_folded_names_from_signatures = set(dictionary_of_folded_names_and_names_from_signatures)
    set_of_folded_names_from_GSEA = set(dictionary_of_folded_names_and_names_from_GSEA)
    comparison_of_pathways = ComparisonOfPathways(
        sorted(
            dictionary_of_folded_names_and_names_from_signatures[folded_name]
            for folded_name in set_of_folded_names_from_signatures & set_of_folded_names_from_GSEA
        ),
        sorted(
            dictionary_of_folded_names_and_names_from_signatures[folded_name]
            for folded_name in set_of_folded_names_from_signatures - set_of_folded_names_from_GSEA
        ),
        sorted(
            dictionary_of_folded_names_and_names_from_GSEA[folded_name]
            for folded_name in set_of_folded_names_from_GSEA - set_of_folded_names_from_signatures
        )
    )
    logger.info(
        f"{len(comparison_of_pathways.shared_pathways)} pathways are shared, " +
        f"{len(comparison_of_pathways.pathways_only_from_signatures)} are found only from signatures, and " +
        f"{len(comparison_of_pathways.pathways_only_from_GSEA)} are found only by GSEA."
    )
    return comparison_of_pathways


def create_data_frame_of_comparison(comparison_of_pathways: ComparisonOfPathways) -> pd.DataFrame:
    return pd.DataFrame(
        [(pathway, "shared") for pathway in comparison_of_pathways.shared_pathways] +
        [(pathway, "signatures_only") for pathway in comparison_of_pathways.pathways_only_from_signatures] +
        [(pathway, "GSEA_only") for pathway in comparison_of_pathways.pathways_only_from_GSEA],
        columns = ["pathway", "source"]
    )


def create_venn_diagram(
    comparison_of_pathways: ComparisonOfPathways,
    path_of_plot,
    label_of_signatures: str = "Signatures",
    label_of_GSEA: str = "GSEA"
):
    tuple_of_sizes_of_subsets = (
        len(comparison_of_pathways.pathways_only_from_signatures),
        len(comparison_of_pathways.pathways_only_from_GSEA),
        len(comparison_of_pathways.shared_pathways)
    )
    plt.figure(figsize = (6, 6))
    if sum(tuple_of_sizes_of_subsets) > 0:
        venn2(subsets = tuple_of_sizes_of_subsets, set_labels = (label_of_signatures, label_of_GSEA))
    else:
        logger.warning("Neither signatures nor GSEA found pathways. Venn diagram will be empty.")
        plt.axis("off")
    plt.title("Pathways from Signatures and from GSEA")
    plt.tight_layout()
    plt.savefig(path_of_plot)
    plt.close()
    logger.info(f"Venn diagram of pathways was saved to {path_of_plot}.")
