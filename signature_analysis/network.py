'''
`network.py`

Build and draw a network of genes in chosen signatures.

Genes are nodes. 2 genes are connected if the Pearson correlation of their weights across the nodes of the model
is at least `CORRELATION_CUTOFF_FOR_NETWORK` in magnitude.
Edges record the correlation and its sign.
Genes may be colored by effect sizes of a differential test of genes.
'''

from signature_analysis.config import CORRELATION_CUTOFF_FOR_NETWORK
import logging
import matplotlib.pyplot as plt
import networkx as nx
import numpy as np
import pandas as pd


logger = logging.getLogger(__name__)


def build_gene_gene_network(
    model: pd.DataFrame,
    dictionary_of_signatures_and_series_of_weights: dict[str, pd.Series],
    list_of_signatures: list[str],
    correlation_cutoff: float = CORRELATION_CUTOFF_FOR_NETWORK,
    series_of_gene_effect_sizes: pd.Series | None = None
) -> nx.Graph:
    list_of_genes = sorted(
        {
            gene
            for signature in list_of_signatures
            for gene in dictionary_of_signatures_and_series_of_weights[signature].index
            if gene in model.index
        }
    )
    graph = nx.Graph()
    for gene in list_of_genes:
        list_of_signatures_of_gene = [
            signature
            for signature in list_of_signatures
            if gene in dictionary_of_signatures_and_series_of_weights[signature].index
        ]
        effect_size = np.nan
        if series_of_gene_effect_sizes is not None and gene in series_of_gene_effect_sizes.index:
            effect_size = float(series_of_gene_effect_sizes[gene])
        graph.add_node(gene, signatures = ",".join(list_of_signatures_of_gene), effect_size = effect_size)
    if len(list_of_genes) < 2:
        logger.info(f"Gene-gene network has {graph.number_of_nodes()} genes and no edges.")
        return graph
    # Rows of weights with no variance have undefined correlations and get no edges.
    with np.errstate(divide = "ignore", invalid = "ignore"):
        matrix_of_correlations = np.corrcoef(model.loc[list_of_genes].to_numpy(dtype = float))
    array_of_row_indices, array_of_column_indices = np.triu_indices(len(list_of_genes), k = 1)
    for row_index, column_index in zip(array_of_row_indices, array_of_column_indices):
        correlation = matrix_of_correlations[row_index, column_index]
        if np.isfinite(correlation) and abs(correlation) >= correlation_cutoff:
            graph.add_edge(
                list_of_genes[row_index],
                list_of_genes[column_index],
                correlation = float(correlation),
                sign = "positive" if correlation > 0 else "negative"
            )
    logger.info(
        f"Gene-gene network has {graph.number_of_nodes()} genes and {graph.number_of_edges()} edges with |correlation| >= {correlation_cutoff}."
    )
    return graph


def create_data_frame_of_edges(graph: nx.Graph) -> pd.DataFrame:
    return pd.DataFrame(
        [
            (gene_1, gene_2, attributes["correlation"], attributes["sign"])
            for gene_1, gene_2, attributes in graph.edges(data = True)
        ],
        columns = ["gene_1", "gene_2", "correlation", "sign"]
    )


def write_edges_of_network(graph: nx.Graph, path_of_edges):
    create_data_frame_of_edges(graph).to_csv(path_of_edges, index = False)
    logger.info(f"Edges of gene-gene network were saved to {path_of_edges}.")


def draw_gene_gene_network(graph: nx.Graph, path_of_plot, title: str = "Gene-Gene Network of Signatures"):
    plt.figure(figsize = (10, 10))
    if graph.number_of_nodes() > 0:
        positions = nx.spring_layout(graph, seed = 0)
        array_of_effect_sizes = np.array([graph.nodes[gene]["effect_size"] for gene in graph.nodes], dtype = float)
        list_of_colors_of_edges = [
            "#d62728" if attributes["sign"] == "positive" else "#1f77b4" # red or blue
            for _, _, attributes in graph.edges(data = True)
        ]
        list_of_widths_of_edges = [
            1 + 2 * abs(attributes["correlation"])
            for _, _, attributes in graph.edges(data = True)
        ]
        if np.isfinite(array_of_effect_sizes).any():
            maximum_absolute_effect_size = np.nanmax(np.abs(array_of_effect_sizes))
            if maximum_absolute_effect_size == 0.0:
                maximum_absolute_effect_size = 1.0
            collection_of_nodes = nx.draw_networkx_nodes(
                graph,
                positions,
                node_color = np.nan_to_num(array_of_effect_sizes),
                cmap = "RdBu_r",
                vmin = -maximum_absolute_effect_size,
                vmax = maximum_absolute_effect_size,
                node_size = 300
            )
            plt.colorbar(collection_of_nodes, label = "effect size")
        else:
            nx.draw_networkx_nodes(graph, positions, node_color = "lightgray", node_size = 300)
        nx.draw_networkx_edges(graph, positions, edge_color = list_of_colors_of_edges, width = list_of_widths_of_edges)
        nx.draw_networkx_labels(graph, positions, font_size = 7)
    plt.title(title)
    plt.axis("off")
    plt.tight_layout()
    plt.savefig(path_of_plot)
    plt.close()
    logger.info(f"Plot of gene-gene network was saved to {path_of_plot}.")
