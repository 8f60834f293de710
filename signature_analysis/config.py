from pathlib import Path
import os


# Number of dominance layers of signatures to keep when selecting active signatures.
NUMBER_OF_PARETO_FRONTS = 3
# Adjusted p values below this cutoff are significant.
SIGNIFICANCE_CUTOFF = 0.05
# Search for a set of retained signatures without masking among them gives up after this many decisions.
MAXIMUM_NUMBER_OF_STEPS_OF_SEARCH = 100000
# A gene is a high weight gene of a node if its weight is at least this many standard deviations from the mean weight of the node.
HIGH_WEIGHT_CUTOFF = 2.5
MINIMUM_SIZE_OF_GENE_SET = 5
MAXIMUM_SIZE_OF_GENE_SET = 100
FDR_CUTOFF_FOR_GSEA = 0.05
TIMEOUT_OF_GSEA_IN_SECONDS = 3600
NUMBER_OF_PERMUTATIONS_FOR_GSEA = 1000
CORRELATION_CUTOFF_FOR_NETWORK = 0.5
# Normalized expression values are kept at least this far from 0 and 1.
EPSILON = 1e-6


class Paths():
    '''
    Class Paths is a template for a singleton that records dependencies and outputs of and ensures dependencies exist for
    `signature_analysis/run_case_study.py` and the GSEA bridge in `signature_analysis/gsea.py`.
    '''

    def __init__(self, root = None):

        # signature_analysis
        # dependencies
        self.root = Path(root) if root is not None else Path(os.environ.get("SIGNATURE_ANALYSIS_ROOT", "."))
        self.data = self.root / "data"
        self.output = self.root / "output"
        # -----
        self.model = self.data / "model.tsv"
        self.reference_compendium = self.data / "reference_compendium.tsv"
        self.reference_probe_distribution = self.data / "reference_probe_distribution.txt"
        self.gene_sets = self.data / "gene_sets.gmt"
        # outputs
        # <no files>

        # signature_analysis/run_case_study.py
        # dependencies
        self.outputs_of_loading_data = self.output / "loading_data"
        self.outputs_of_scoring_activities = self.output / "scoring_activities"
        self.outputs_of_testing_differential_activities = self.output / "testing_differential_activities"
        self.outputs_of_selecting_signatures = self.output / "selecting_signatures"
        self.outputs_of_annotating_signatures = self.output / "annotating_signatures"
        # -----
        # self.model, which is defined above
        # self.reference_compendium, which is defined above
        # self.gene_sets, which is defined above
        # outputs
        self.normalized_expression_matrix = self.outputs_of_loading_data / "normalized_expression_matrix.csv"
        self.data_frame_of_signatures_and_genes = self.outputs_of_scoring_activities / "data_frame_of_signatures_and_genes.csv"
        self.activity_matrix = self.outputs_of_scoring_activities / "activity_matrix.csv"
        self.heatmap_of_activities_of_active_signatures = self.outputs_of_scoring_activities / "heatmap_of_activities_of_active_signatures.png"
        self.box_plots_of_activities_of_active_signatures = self.outputs_of_scoring_activities / "box_plots_of_activities_of_active_signatures"
        self.results_of_differential_test_of_signatures = self.outputs_of_testing_differential_activities / "results_of_differential_test_of_signatures.csv"
        self.results_of_differential_test_of_genes = self.outputs_of_testing_differential_activities / "results_of_differential_test_of_genes.csv"
        self.volcano_plot_of_signatures = self.outputs_of_testing_differential_activities / "volcano_plot_of_signatures.png"
        self.results_of_differential_test_of_marginal_activities = self.outputs_of_testing_differential_activities / "results_of_differential_test_of_marginal_activities.csv"
        self.ranks_of_signatures = self.outputs_of_selecting_signatures / "ranks_of_signatures.csv"
        self.active_signatures = self.outputs_of_selecting_signatures / "active_signatures.csv"
        self.matrix_of_marginal_adjusted_p_values = self.outputs_of_selecting_signatures / "matrix_of_marginal_adjusted_p_values.csv"
        self.nonredundant_signatures = self.outputs_of_selecting_signatures / "nonredundant_signatures.csv"
        self.dropped_signatures = self.outputs_of_selecting_signatures / "dropped_signatures.csv"
        self.overlap_of_signatures = self.outputs_of_selecting_signatures / "overlap_of_signatures.csv"
        self.heatmap_of_overlap_of_signatures = self.outputs_of_selecting_signatures / "heatmap_of_overlap_of_signatures.png"
        self.data_frame_of_signatures_genes_and_annotations = self.outputs_of_annotating_signatures / "data_frame_of_signatures_genes_and_annotations.csv"
        self.associations_of_signatures_and_pathways = self.outputs_of_annotating_signatures / "associations_of_signatures_and_pathways.csv"
        self.pathways_and_differential_results = self.outputs_of_annotating_signatures / "pathways_and_differential_results.csv"
        self.edges_of_gene_gene_network = self.outputs_of_annotating_signatures / "edges_of_gene_gene_network.csv"
        self.plot_of_gene_gene_network = self.outputs_of_annotating_signatures / "plot_of_gene_gene_network.png"

        # signature_analysis/gsea.py
        # dependencies
        self.outputs_of_running_GSEA = self.output / "running_GSEA"
        self.working_directory_of_GSEA = self.outputs_of_running_GSEA / "working_directory"
        # -----
        # self.normalized_expression_matrix, which is defined above
        # self.gene_sets, which is defined above
        # outputs
        # Directories with names of the form {label}.Gsea.{timestamp} are created by GSEA.
        self.significant_gene_sets_per_GSEA = self.outputs_of_running_GSEA / "significant_gene_sets_per_GSEA.csv"
        self.comparison_of_pathways = self.outputs_of_running_GSEA / "comparison_of_pathways.csv"
        self.venn_diagram_of_pathways = self.outputs_of_running_GSEA / "venn_diagram_of_pathways.png"


    def ensure_dependencies_for_running_case_study_exist(self):
        for path in [
            self.outputs_of_loading_data,
            self.outputs_of_scoring_activities,
            self.box_plots_of_activities_of_active_signatures,
            self.outputs_of_testing_differential_activities,
            self.outputs_of_selecting_signatures,
            self.outputs_of_annotating_signatures
        ]:
            os.makedirs(path, exist_ok = True)
        for path in [
            self.model,
            self.reference_compendium,
            self.gene_sets
        ]:
            assert os.path.exists(path), f"The dependency of running the case study `{path}` does not exist."


    def ensure_dependencies_for_running_GSEA_exist(self, path_of_GSEA_jar):
        for path in [
            self.outputs_of_running_GSEA
        ]:
            os.makedirs(path, exist_ok = True)
        for path in [
            path_of_GSEA_jar,
            self.gene_sets
        ]:
            assert os.path.exists(path), f"The dependency of running GSEA `{path}` does not exist."


paths = Paths()
