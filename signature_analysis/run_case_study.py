'''
`run_case_study.py`

Run a case study of signatures of a pretrained model for an experiment with 2 groups of samples.

Pipeline:
1. Load an expression table (or raw CEL files) and the phenotypes of its samples.
2. Map genes onto the genes of the model, optionally quantile normalize samples onto a reference probe distribution,
   and zero-one normalize expressions against a reference compendium.
3. Extract signatures of high weight genes from the model and score activities of signatures for samples.
4. Test activities of signatures and expressions of genes for differences between the test group and the reference group.
5. Select active signatures in the first Pareto fronts of absolute effect size and adjusted p value.
6. Score and test marginal activities of active signatures and remove redundant signatures.
7. Measure overlap of genes of active signatures.
8. Annotate nonredundant signatures with genes and pathways and join pathways with differential results.
9. Build and draw a gene-gene network of nonredundant signatures.
10. Plot activities and differential results.
11. Optionally run GSEA and compare pathways found by GSEA with pathways associated with signatures.

Usage:
python -m signature_analysis.run_case_study --expression data/expression.tsv --phenotypes data/phenotypes.txt --reference_group control --test_group treatment
'''

from signature_analysis.activity import calculate_activity, calculate_marginal_activity
from signature_analysis.annotation import (
    FisherExactGeneSetAnnotator,
    annotate_signatures_with_genes,
    combine_pathways_and_differential_results,
    filter_gene_sets_by_size,
    list_significant_pathways,
    load_gene_sets
)
from signature_analysis.comparison import compare_sets_of_pathways, create_data_frame_of_comparison, create_venn_diagram
from signature_analysis.config import (
    CORRELATION_CUTOFF_FOR_NETWORK,
    FDR_CUTOFF_FOR_GSEA,
    HIGH_WEIGHT_CUTOFF,
    MAXIMUM_SIZE_OF_GENE_SET,
    MINIMUM_SIZE_OF_GENE_SET,
    NUMBER_OF_PARETO_FRONTS,
    SIGNIFICANCE_CUTOFF,
    TIMEOUT_OF_GSEA_IN_SECONDS,
    Paths
)
from signature_analysis.data_loading import (
    create_series_of_phenotypes,
    load_expression_data_frame,
    load_phenotypes,
    load_reference_compendium,
    load_reference_probe_distribution,
    map_genes_onto_model,
    normalize_to_reference_distribution,
    parse_phenotypes,
    zero_one_normalize
)
from signature_analysis.differential import LinearModelDifferentialTester, run_differential_test
from signature_analysis.gsea import WorkingDirectory, collect_significant_gene_sets, run_GSEA
from signature_analysis.model import create_data_frame_of_signatures_and_genes, extract_signatures, load_model
from signature_analysis.network import build_gene_gene_network, draw_gene_gene_network, write_edges_of_network
from signature_analysis.overlap import compute_signature_overlap, create_heatmap_of_signature_overlap
from signature_analysis.plots import (
    create_box_plots_of_activities,
    create_heatmap_of_activities,
    create_volcano_plot_of_signatures
)
from signature_analysis.redundancy import (
    create_data_frame_of_dropped_signatures,
    create_matrix_of_marginal_adjusted_p_values,
    remove_redundant_signatures
)
from signature_analysis.selection import select_active_signatures
import argparse
import logging
import pandas as pd


logging.basicConfig(
    level = logging.INFO,
    format = "%(asctime)s – %(levelname)s – %(message)s"
)
logger = logging.getLogger(__name__)


def create_differential_tester(name_of_backend: str):
    if name_of_backend == "limma":
        from signature_analysis.R_backends import LimmaDifferentialTester
        return LimmaDifferentialTester()
    return LinearModelDifferentialTester()


def load_expression(args) -> pd.DataFrame:
    if args.CEL_directory is not None:
        from signature_analysis.R_backends import load_microarray_expression_data_frame
        return load_microarray_expression_data_frame(args.CEL_directory)
    return load_expression_data_frame(args.expression)


def load_list_of_phenotypes(args) -> list[str]:
    if args.list_of_phenotypes is not None:
        return parse_phenotypes(args.list_of_phenotypes)
    return load_phenotypes(args.phenotypes)


def prepare_normalized_expression_matrix(args, paths: Paths, model: pd.DataFrame) -> pd.DataFrame:
    expression_data_frame = load_expression(args)
    reference_compendium = load_reference_compendium(paths.reference_compendium)
    mapped_expression_data_frame = map_genes_onto_model(expression_data_frame, list(model.index), reference_compendium)
    if args.normalize_to_reference_distribution:
        array_of_reference_values = load_reference_probe_distribution(paths.reference_probe_distribution)
        mapped_expression_data_frame = normalize_to_reference_distribution(mapped_expression_data_frame, array_of_reference_values)
    normalized_expression_matrix = zero_one_normalize(mapped_expression_data_frame, reference_compendium)
    normalized_expression_matrix.to_csv(paths.normalized_expression_matrix)
    return normalized_expression_matrix


def run_GSEA_and_compare_pathways(
    args,
    paths: Paths,
    normalized_expression_matrix: pd.DataFrame,
    list_of_phenotypes: list[str],
    dictionary_of_filtered_gene_sets: dict[str, list[str]],
    data_frame_of_associations: pd.DataFrame
):
    paths.ensure_dependencies_for_running_GSEA_exist(args.GSEA_jar)
    with WorkingDirectory(paths.working_directory_of_GSEA, clean_up = args.clean_up_working_directory_of_GSEA) as working_directory:
        result_directory = run_GSEA(
            args.GSEA_jar,
            normalized_expression_matrix,
            list_of_phenotypes,
            args.reference_group,
            args.test_group,
            dictionary_of_filtered_gene_sets,
            working_directory,
            args.GSEA_label,
            output_directory = paths.outputs_of_running_GSEA,
            timeout_in_seconds = args.GSEA_timeout,
            minimum_size = args.minimum_size_of_gene_set,
            maximum_size = args.maximum_size_of_gene_set
        )
    data_frame_of_significant_gene_sets = collect_significant_gene_sets(
        result_directory,
        [args.test_group, args.reference_group],
        FDR_CUTOFF_FOR_GSEA
    )
    data_frame_of_significant_gene_sets.to_csv(paths.significant_gene_sets_per_GSEA, index = False)
    comparison_of_pathways = compare_sets_of_pathways(
        list_significant_pathways(data_frame_of_associations, args.significance_cutoff),
        data_frame_of_significant_gene_sets["gene_set"].unique().tolist()
    )
    create_data_frame_of_comparison(comparison_of_pathways).to_csv(paths.comparison_of_pathways, index = False)
    create_venn_diagram(comparison_of_pathways, paths.venn_diagram_of_pathways)


def main():
    parser = argparse.ArgumentParser(description = "Run a case study of signatures of a pretrained model for 2 groups of samples.")
    group_of_sources_of_expressions = parser.add_mutually_exclusive_group(required = True)
    group_of_sources_of_expressions.add_argument("--expression", help = "Tab separated table of genes and samples.")
    group_of_sources_of_expressions.add_argument("--CEL_directory", help = "Directory of raw CEL files to summarize with RMA (requires R).")
    group_of_phenotypes = parser.add_mutually_exclusive_group(required = True)
    group_of_phenotypes.add_argument("--phenotypes", help = "File of phenotypes of samples in the order of samples.")
    group_of_phenotypes.add_argument("--list_of_phenotypes", help = "Comma separated phenotypes of samples in the order of samples.")
    parser.add_argument("--reference_group", required = True)
    parser.add_argument("--test_group", required = True)
    parser.add_argument("--root", default = None, help = "Directory with `data` and `output`. Defaults to SIGNATURE_ANALYSIS_ROOT or the current directory.")
    parser.add_argument("--backend", choices = ["OLS", "limma"], default = "OLS", help = "Differential tester.")
    parser.add_argument("--normalize_to_reference_distribution", action = "store_true", help = "Quantile normalize samples onto the reference probe distribution first.")
    parser.add_argument("--high_weight_cutoff", type = float, default = HIGH_WEIGHT_CUTOFF)
    parser.add_argument("--number_of_fronts", type = int, default = NUMBER_OF_PARETO_FRONTS)
    parser.add_argument("--phenotype_group", choices = ["up", "down", "both"], default = "both")
    parser.add_argument("--significance_cutoff", type = float, default = SIGNIFICANCE_CUTOFF)
    parser.add_argument("--minimum_size_of_gene_set", type = int, default = MINIMUM_SIZE_OF_GENE_SET)
    parser.add_argument("--maximum_size_of_gene_set", type = int, default = MAXIMUM_SIZE_OF_GENE_SET)
    parser.add_argument("--correlation_cutoff", type = float, default = CORRELATION_CUTOFF_FOR_NETWORK)
    parser.add_argument("--gene_information", default = None, help = "Tab separated table of genes with symbols and descriptions.")
    parser.add_argument("--GSEA_jar", default = None, help = "Path of a GSEA jar. GSEA is run only if provided.")
    parser.add_argument("--GSEA_label", default = "case_study")
    parser.add_argument("--GSEA_timeout", type = float, default = TIMEOUT_OF_GSEA_IN_SECONDS)
    parser.add_argument("--clean_up_working_directory_of_GSEA", action = "store_true")
    args = parser.parse_args()

    paths = Paths(args.root)
    paths.ensure_dependencies_for_running_case_study_exist()

    model = load_model(paths.model)
    dictionary_of_signatures_and_series_of_weights = extract_signatures(model, args.high_weight_cutoff)
    create_data_frame_of_signatures_and_genes(dictionary_of_signatures_and_series_of_weights).to_csv(
        paths.data_frame_of_signatures_and_genes,
        index = False
    )

    normalized_expression_matrix = prepare_normalized_expression_matrix(args, paths, model)
    list_of_phenotypes = load_list_of_phenotypes(args)
    series_of_phenotypes = create_series_of_phenotypes(
        normalized_expression_matrix,
        list_of_phenotypes,
        args.reference_group,
        args.test_group
    )

    activity_matrix = calculate_activity(normalized_expression_matrix, dictionary_of_signatures_and_series_of_weights)
    activity_matrix.to_csv(paths.activity_matrix)

    differential_tester = create_differential_tester(args.backend)
    data_frame_of_differential_results = run_differential_test(
        differential_tester,
        activity_matrix,
        list_of_phenotypes,
        args.reference_group,
        args.test_group
    )
    data_frame_of_differential_results.to_csv(paths.results_of_differential_test_of_signatures)
    data_frame_of_differential_results_of_genes = run_differential_test(
        differential_tester,
        normalized_expression_matrix,
        list_of_phenotypes,
        args.reference_group,
        args.test_group
    )
    data_frame_of_differential_results_of_genes.to_csv(paths.results_of_differential_test_of_genes)

    selection_result = select_active_signatures(
        data_frame_of_differential_results,
        args.number_of_fronts,
        args.phenotype_group
    )
    selection_result.series_of_ranks.to_csv(paths.ranks_of_signatures)
    pd.DataFrame({"signature": selection_result.selected_signatures}).to_csv(paths.active_signatures, index = False)

    marginal_activity_matrix = calculate_marginal_activity(
        normalized_expression_matrix,
        dictionary_of_signatures_and_series_of_weights,
        selection_result.selected_signatures
    )
    data_frame_of_marginal_results = run_differential_test(
        differential_tester,
        marginal_activity_matrix,
        list_of_phenotypes,
        args.reference_group,
        args.test_group
    )
    data_frame_of_marginal_results.to_csv(paths.results_of_differential_test_of_marginal_activities)
    matrix_of_marginal_adjusted_p_values = create_matrix_of_marginal_adjusted_p_values(data_frame_of_marginal_results)
    matrix_of_marginal_adjusted_p_values.to_csv(paths.matrix_of_marginal_adjusted_p_values)
    redundancy_result = remove_redundant_signatures(matrix_of_marginal_adjusted_p_values, args.significance_cutoff)
    list_of_nonredundant_signatures = redundancy_result.retained_signatures
    data_frame_of_differential_results.loc[list_of_nonredundant_signatures].to_csv(paths.nonredundant_signatures)
    create_data_frame_of_dropped_signatures(
        redundancy_result.dictionary_of_dropped_signatures_and_masking_signatures
    ).to_csv(paths.dropped_signatures, index = False)

    data_frame_of_overlap = compute_signature_overlap(
        dictionary_of_signatures_and_series_of_weights,
        selection_result.selected_signatures,
        model.index
    )
    data_frame_of_overlap.to_csv(paths.overlap_of_signatures, index = False)
    if len(selection_result.selected_signatures) > 1:
        create_heatmap_of_signature_overlap(
            data_frame_of_overlap,
            selection_result.selected_signatures,
            paths.heatmap_of_overlap_of_signatures
        )

    gene_information = None
    if args.gene_information is not None:
        gene_information = pd.read_csv(args.gene_information, sep = '\t', index_col = 0)
        gene_information.index = gene_information.index.astype(str)
    annotate_signatures_with_genes(
        dictionary_of_signatures_and_series_of_weights,
        list_of_nonredundant_signatures,
        gene_information
    ).to_csv(paths.data_frame_of_signatures_genes_and_annotations, index = False)
    dictionary_of_filtered_gene_sets = filter_gene_sets_by_size(
        load_gene_sets(paths.gene_sets),
        args.minimum_size_of_gene_set,
        args.maximum_size_of_gene_set,
        model.index
    )
    data_frame_of_associations = FisherExactGeneSetAnnotator().annotate(
        dictionary_of_signatures_and_series_of_weights,
        list_of_nonredundant_signatures,
        dictionary_of_filtered_gene_sets,
        model.index
    )
    data_frame_of_associations.to_csv(paths.associations_of_signatures_and_pathways, index = False)
    combine_pathways_and_differential_results(
        data_frame_of_associations,
        data_frame_of_differential_results,
        args.significance_cutoff
    ).to_csv(paths.pathways_and_differential_results, index = False)

    graph = build_gene_gene_network(
        model,
        dictionary_of_signatures_and_series_of_weights,
        list_of_nonredundant_signatures,
        args.correlation_cutoff,
        data_frame_of_differential_results_of_genes["effect_size"]
    )
    write_edges_of_network(graph, paths.edges_of_gene_gene_network)
    draw_gene_gene_network(graph, paths.plot_of_gene_gene_network)

    if list_of_nonredundant_signatures:
        create_heatmap_of_activities(
            activity_matrix,
            list_of_nonredundant_signatures,
            series_of_phenotypes,
            args.reference_group,
            args.test_group,
            f"Activities of Nonredundant Signatures for {args.test_group} vs. {args.reference_group}",
            paths.heatmap_of_activities_of_active_signatures
        )
    create_volcano_plot_of_signatures(
        data_frame_of_differential_results,
        list_of_nonredundant_signatures,
        f"Differential Activities of Signatures for {args.test_group} vs. {args.reference_group}",
        paths.volcano_plot_of_signatures
    )
    create_box_plots_of_activities(
        activity_matrix,
        list_of_nonredundant_signatures,
        series_of_phenotypes,
        paths.box_plots_of_activities_of_active_signatures
    )

    if args.GSEA_jar is not None:
        run_GSEA_and_compare_pathways(
            args,
            paths,
            normalized_expression_matrix,
            list_of_phenotypes,
            dictionary_of_filtered_gene_sets,
            data_frame_of_associations
        )
    logger.info(f"Case study is complete. {len(list_of_nonredundant_signatures)} nonredundant active signatures were found.")


if __name__ == "__main__":
    main()
