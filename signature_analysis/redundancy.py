'''
`redundancy.py`

Remove active signatures that are redundant with other active signatures.

Signature B masks signature A if A is significant on its own
but is not significant after the genes A shares with B are removed.
Masking is a directed graph with an edge from B to A for every B that masks A.

Signatures are decided in a deterministic order:
strongly connected components of the masking graph in topological order (ties broken by the smallest signature in a component),
and signatures within a component in sorted order.
A backtracking search keeps the first set of retained signatures in that order, preferring to retain earlier signatures,
such that no retained signature masks another retained signature and every dropped signature is masked by a retained signature.
When masking is acyclic, this is the set a single greedy pass finds.
For 2 signatures that mask each other, the signature that sorts first is retained.
Some cycles, such as a cycle of 3 signatures, admit no such set.
Then a signature is dropped if a signature retained before it masks it and is retained otherwise,
and retained signatures that still mask each other are logged.
'''

from collections import namedtuple
from signature_analysis.config import MAXIMUM_NUMBER_OF_STEPS_OF_SEARCH, SIGNIFICANCE_CUTOFF
import logging
import networkx as nx
import numpy as np
import pandas as pd


logger = logging.getLogger(__name__)


RedundancyResult = namedtuple(
    "RedundancyResult",
    ["retained_signatures", "dictionary_of_dropped_signatures_and_masking_signatures", "masking_graph"]
)


def create_matrix_of_marginal_adjusted_p_values(
    data_frame_of_marginal_results: pd.DataFrame,
    name_of_column_of_adjusted_p_values: str = "adjusted_p_value"
) -> pd.DataFrame:
    '''
    Pivot results indexed by (signature, removed_signature) into a matrix
    with rows of signatures, columns of removed signatures, and adjusted p values of signatures on their own on the diagonal.
    '''
    if data_frame_of_marginal_results.empty:
        return pd.DataFrame(
            index = pd.Index([], name = "signature"),
            columns = pd.Index([], name = "removed_signature"),
            dtype = float
        )
    matrix_of_adjusted_p_values = (
        data_frame_of_marginal_results[name_of_column_of_adjusted_p_values]
        .astype(float)
        .unstack(level = "removed_signature")
    )
    list_of_signatures = list(dict.fromkeys(data_frame_of_marginal_results.index.get_level_values("signature")))
    matrix_of_adjusted_p_values = matrix_of_adjusted_p_values.reindex(index = list_of_signatures, columns = list_of_signatures)
    matrix_of_adjusted_p_values.index.name = "signature"
    matrix_of_adjusted_p_values.columns.name = "removed_signature"
    return matrix_of_adjusted_p_values


def is_significant(adjusted_p_value, significance_cutoff: float) -> bool:
    return bool(np.isfinite(adjusted_p_value) and adjusted_p_value < significance_cutoff)


def build_masking_graph(
    matrix_of_adjusted_p_values: pd.DataFrame,
    significance_cutoff: float = SIGNIFICANCE_CUTOFF
) -> nx.DiGraph:
    masking_graph = nx.DiGraph()
    masking_graph.add_nodes_from(matrix_of_adjusted_p_values.index)
    for signature in matrix_of_adjusted_p_values.index:
        if not is_significant(matrix_of_adjusted_p_values.at[signature, signature], significance_cutoff):
            continue
        for removed_signature in matrix_of_adjusted_p_values.columns:
            if removed_signature == signature or removed_signature not in masking_graph:
                continue
            # A missing marginal p value means no genes remain, which counts as not significant.
            if not is_significant(matrix_of_adjusted_p_values.at[signature, removed_signature], significance_cutoff):
                masking_graph.add_edge(removed_signature, signature)
    logger.info(
        f"Masking graph has {masking_graph.number_of_nodes()} signatures and {masking_graph.number_of_edges()} masking relations."
    )
    return masking_graph


def order_signatures_for_resolution(masking_graph: nx.DiGraph) -> list:
    condensation = nx.condensation(masking_graph)
    list_of_signatures = []
    for component in nx.lexicographical_topological_sort(
        condensation,
        key = lambda component: min(condensation.nodes[component]["members"])
    ):
        list_of_signatures.extend(sorted(condensation.nodes[component]["members"]))
    return list_of_signatures


def search_for_conflict_free_retention(
    masking_graph: nx.DiGraph,
    list_of_signatures: list,
    maximum_number_of_steps: int = MAXIMUM_NUMBER_OF_STEPS_OF_SEARCH
):
    '''
    Return a set of signatures to retain such that no retained signature masks another retained signature
    and every other signature is masked by a retained signature, or None if no such set is found.

    Signatures are decided in the order of `list_of_signatures`, and retaining a signature is tried before dropping it,
    so the set found is the first such set in that order.
    For an acyclic masking graph, the search never backtracks and retains what a greedy pass retains.
    '''
    dictionary_of_signatures_and_indicators_of_retention = {}
    number_of_steps = 0

    def may_be_masked_by_a_retained_signature(signature) -> bool:
        return any(
            dictionary_of_signatures_and_indicators_of_retention.get(masking_signature, True)
            for masking_signature in masking_graph.predecessors(signature)
        )

    def is_consistent(signature) -> bool:
        if dictionary_of_signatures_and_indicators_of_retention[signature]:
            return not any(
                dictionary_of_signatures_and_indicators_of_retention.get(neighbor, False)
                for neighbor in [*masking_graph.predecessors(signature), *masking_graph.successors(signature)]
            )
        if not may_be_masked_by_a_retained_signature(signature):
            return False
        return all(
            dictionary_of_signatures_and_indicators_of_retention[masked_signature] or
            may_be_masked_by_a_retained_signature(masked_signature)
            for masked_signature in masking_graph.successors(signature)
            if masked_signature in dictionary_of_signatures_and_indicators_of_retention
        )

    def decide(index) -> bool:
        nonlocal number_of_steps
        if index == len(list_of_signatures):
            return True
        signature = list_of_signatures[index]
        for indicator_of_retention in (True, False):
            number_of_steps += 1
            if number_of_steps > maximum_number_of_steps:
                return False
            dictionary_of_signatures_and_indicators_of_retention[signature] = indicator_of_retention
            if is_consistent(signature) and decide(index + 1):
                return True
            del dictionary_of_signatures_and_indicators_of_retention[signature]
        return False

    if decide(0):
        return {
            signature
            for signature, indicator_of_retention in dictionary_of_signatures_and_indicators_of_retention.items()
            if indicator_of_retention
        }
    if number_of_steps > maximum_number_of_steps:
        logger.warning(f"Search for a conflict-free set of retained signatures stopped after {maximum_number_of_steps} steps.")
    return None


def retain_signatures_greedily(masking_graph: nx.DiGraph, list_of_signatures: list) -> set:
    '''
    Drop a signature if a signature retained before it masks it and retain it otherwise.
    '''
    set_of_retained_signatures = set()
    for signature in list_of_signatures:
        if not any(masking_signature in set_of_retained_signatures for masking_signature in masking_graph.predecessors(signature)):
            set_of_retained_signatures.add(signature)
    return set_of_retained_signatures


def remove_redundant_signatures(
    matrix_of_adjusted_p_values: pd.DataFrame,
    significance_cutoff: float = SIGNIFICANCE_CUTOFF
) -> RedundancyResult:
    masking_graph = build_masking_graph(matrix_of_adjusted_p_values, significance_cutoff)
    list_of_signatures_in_order_of_resolution = order_signatures_for_resolution(masking_graph)
    set_of_retained_signatures = search_for_conflict_free_retention(masking_graph, list_of_signatures_in_order_of_resolution)
    if set_of_retained_signatures is None:
        set_of_retained_signatures = retain_signatures_greedily(masking_graph, list_of_signatures_in_order_of_resolution)
    dictionary_of_dropped_signatures_and_masking_signatures = {
        signature: sorted(
            masking_signature
            for masking_signature in masking_graph.predecessors(signature)
            if masking_signature in set_of_retained_signatures
        )
        for signature in list_of_signatures_in_order_of_resolution
        if signature not in set_of_retained_signatures
    }
    list_of_conflicts = sorted(
        (masking_signature, signature)
        for masking_signature, signature in masking_graph.edges
        if masking_signature in set_of_retained_signatures and signature in set_of_retained_signatures
    )
    if list_of_conflicts:
        logger.warning(
            f"Masking could not be resolved without conflicts; {len(list_of_conflicts)} retained signatures mask other retained signatures: {list_of_conflicts}"
        )
    list_of_retained_signatures = [
        signature
        for signature in matrix_of_adjusted_p_values.index
        if signature in set_of_retained_signatures
    ]
    logger.info(
        f"{len(list_of_retained_signatures)} of {len(matrix_of_adjusted_p_values)} signatures were retained and {len(dictionary_of_dropped_signatures_and_masking_signatures)} redundant signatures were dropped."
    )
    return RedundancyResult(list_of_retained_signatures, dictionary_of_dropped_signatures_and_masking_signatures, masking_graph)


def create_data_frame_of_dropped_signatures(dictionary_of_dropped_signatures_and_masking_signatures: dict) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "signature": list(dictionary_of_dropped_signatures_and_masking_signatures.keys()),
            "masking_signatures": [
                ",".join(list_of_masking_signatures)
                for list_of_masking_signatures in dictionary_of_dropped_signatures_and_masking_signatures.values()
            ]
        }
    )
