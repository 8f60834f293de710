'''
`gsea.py`

Run Gene Set Enrichment Analysis (GSEA) from the Broad Institute's Java distribution as an external process
so that pathways found by GSEA may be compared with pathways associated with signatures.

Inputs of GSEA are written into an explicit working directory:
a phenotype label file in CLS format,
an expression file in TXT format with columns NAME, DESCRIPTION, and samples, and
a gene set file in GMT format.

GSEA writes results into a directory named `<label>.Gsea.<timestamp>`.
If no such directory exists, GSEA is run.
If exactly 1 such directory exists, its results are reused.
If more than 1 such directory exists, which results to use is ambiguous and the run fails.

Usage:
java must be on the path, and the path of a GSEA jar must be provided to `run_GSEA`.
'''

from signature_analysis.annotation import load_gene_sets_from_GMT
from signature_analysis.config import (
    FDR_CUTOFF_FOR_GSEA,
    MAXIMUM_SIZE_OF_GENE_SET,
    MINIMUM_SIZE_OF_GENE_SET,
    NUMBER_OF_PERMUTATIONS_FOR_GSEA,
    TIMEOUT_OF_GSEA_IN_SECONDS
)
from signature_analysis.errors import AmbiguousResultsError, ExternalToolError, ExternalToolTimeoutError
import logging
import pandas as pd
import re
import shutil
import subprocess
import tempfile

from pathlib import Path


logger = logging.getLogger(__name__)


NAME_OF_PHENOTYPE_LABEL_FILE = "phenotypes.cls"
NAME_OF_EXPRESSION_FILE = "expression.txt"
NAME_OF_GENE_SET_FILE = "gene_sets.gmt"


class WorkingDirectory():
    '''
    Class WorkingDirectory is a template for a context manager that provides a directory for files of an external tool.
    A temporary directory is created when no path is provided and is always removed on exit.
    A provided directory is created if necessary and is removed on exit only if `clean_up` is true.
    '''

    def __init__(self, path = None, clean_up = False):
        self.path = Path(path) if path is not None else None
        self.clean_up = clean_up
        self.directory_is_temporary = path is None

    def __enter__(self) -> Path:
        if self.directory_is_temporary:
            self.path = Path(tempfile.mkdtemp(prefix = "GSEA_"))
        else:
            self.path.mkdir(parents = True, exist_ok = True)
        logger.info(f"Working directory {self.path} was prepared.")
        return self.path

    def __exit__(self, exc_type, exc_value, traceback):
        if self.directory_is_temporary or self.clean_up:
            shutil.rmtree(self.path, ignore_errors = True)
            logger.info(f"Working directory {self.path} was removed.")
        return False


def write_phenotype_labels_file(list_of_phenotypes: list[str], path_of_file) -> Path:
    '''
    Line 1 has numbers of samples and classes and the number 1.
    Line 2 has `#` and names of classes in order of first appearance.
    Line 3 has the class of every sample.
    Fields are separated by spaces, so a class with whitespace is rejected.
    '''
    list_of_invalid_classes = sorted({phenotype for phenotype in list_of_phenotypes if re.search(r"\s", phenotype) or not phenotype})
    if list_of_invalid_classes:
        raise ValueError(f"Phenotype classes of GSEA may not be empty or contain whitespace: {list_of_invalid_classes}")
    list_of_classes = list(dict.fromkeys(list_of_phenotypes))
    text = (
        f"{len(list_of_phenotypes)} {len(list_of_classes)} 1\n"
        f"# {' '.join(list_of_classes)}\n"
        f"{' '.join(list_of_phenotypes)}\n"
    )
    path_of_file = Path(path_of_file)
    path_of_file.write_text(text, encoding = "utf-8")
    return path_of_file


def write_expression_file(expression_data_frame: pd.DataFrame, path_of_file) -> Path:
    data_frame = expression_data_frame.copy()
    data_frame.insert(0, "DESCRIPTION", "na")
    data_frame.index = data_frame.index.astype(str)
    data_frame.index.name = "NAME"
    path_of_file = Path(path_of_file)
    data_frame.to_csv(path_of_file, sep = '\t')
    return path_of_file


def write_gene_sets_file(dictionary_of_names_of_sets_of_genes_and_lists_of_genes: dict[str, list[str]], path_of_file) -> Path:
    path_of_file = Path(path_of_file)
    with open(path_of_file, 'w', encoding = "utf-8") as file:
        for name_of_set_of_genes, list_of_genes in dictionary_of_names_of_sets_of_genes_and_lists_of_genes.items():
            file.write('\t'.join([name_of_set_of_genes, "na", *list_of_genes]) + '\n')
    return path_of_file


def read_gene_sets_file(path_of_file) -> dict[str, list[str]]:
    return load_gene_sets_from_GMT(path_of_file)


def create_GSEA_command(
    path_of_GSEA_jar,
    path_of_expression_file,
    path_of_phenotype_labels_file,
    path_of_gene_sets_file,
    reference_group: str,
    test_group: str,
    label: str,
    output_directory,
    number_of_permutations: int = NUMBER_OF_PERMUTATIONS_FOR_GSEA,
    minimum_size: int = MINIMUM_SIZE_OF_GENE_SET,
    maximum_size: int = MAXIMUM_SIZE_OF_GENE_SET,
    random_seed: int = 0,
    maximum_heap_size: str = "2048m"
) -> list[str]:
    return [
        "java",
        f"-Xmx{maximum_heap_size}",
        "-cp", str(path_of_GSEA_jar),
        "xtools.gsea.Gsea",
        "-res", str(path_of_expression_file),
        "-cls", f"{path_of_phenotype_labels_file}#{test_group}_versus_{reference_group}",
        "-gmx", str(path_of_gene_sets_file),
        "-collapse", "false",
        "-norm", "meandiv",
        "-nperm", str(number_of_permutations),
        # Permuting gene sets instead of phenotypes suits experiments with few samples.
        "-permute", "gene_set",
        "-rnd_type", "no_balance",
        "-scoring_scheme", "weighted",
        "-metric", "Signal2Noise",
        "-sort", "real",
        "-order", "descending",
        "-set_min", str(minimum_size),
        "-set_max", str(maximum_size),
        "-rnd_seed", str(random_seed),
        "-plot_top_x", "0",
        "-zip_report", "false",
        "-rpt_label", label,
        "-out", str(output_directory),
        "-gui", "false"
    ]


def find_result_directories(output_directory, label: str) -> list[Path]:
    output_directory = Path(output_directory)
    if not output_directory.exists():
        return []
    return sorted(path for path in output_directory.glob(f"{label}.Gsea.*") if path.is_dir())


def find_single_result_directory(output_directory, label: str) -> Path:
    list_of_result_directories = find_result_directories(output_directory, label)
    if len(list_of_result_directories) != 1:
        raise AmbiguousResultsError(
            f"Exactly 1 result directory of GSEA with label {label} was expected in {output_directory}, but {len(list_of_result_directories)} were found: {[str(path) for path in list_of_result_directories]}"
        )
    return list_of_result_directories[0]


def run_GSEA(
    path_of_GSEA_jar,
    expression_data_frame: pd.DataFrame,
    list_of_phenotypes: list[str],
    reference_group: str,
    test_group: str,
    dictionary_of_names_of_sets_of_genes_and_lists_of_genes: dict[str, list[str]],
    working_directory,
    label: str,
    output_directory = None,
    timeout_in_seconds: float = TIMEOUT_OF_GSEA_IN_SECONDS,
    **keyword_arguments_of_command
) -> Path:
    '''
    Return the result directory of GSEA with label `label`, running GSEA only if no result directory exists.
    '''
    working_directory = Path(working_directory)
    output_directory = Path(output_directory) if output_directory is not None else working_directory
    list_of_result_directories = find_result_directories(output_directory, label)
    if len(list_of_result_directories) > 1:
        raise AmbiguousResultsError(
            f"{len(list_of_result_directories)} result directories of GSEA with label {label} exist in {output_directory}; remove all but 1: {[str(path) for path in list_of_result_directories]}"
        )
    if len(list_of_result_directories) == 1:
        logger.info(f"Results of GSEA in {list_of_result_directories[0]} will be reused.")
        return list_of_result_directories[0]

    if len(list_of_phenotypes) != expression_data_frame.shape[1]:
        raise ValueError(f"{len(list_of_phenotypes)} phenotypes were provided for {expression_data_frame.shape[1]} samples.")
    path_of_phenotype_labels_file = write_phenotype_labels_file(list_of_phenotypes, working_directory / NAME_OF_PHENOTYPE_LABEL_FILE)
    path_of_expression_file = write_expression_file(expression_data_frame, working_directory / NAME_OF_EXPRESSION_FILE)
    path_of_gene_sets_file = write_gene_sets_file(
        dictionary_of_names_of_sets_of_genes_and_lists_of_genes,
        working_directory / NAME_OF_GENE_SET_FILE
    )
    command = create_GSEA_command(
        path_of_GSEA_jar,
        path_of_expression_file,
        path_of_phenotype_labels_file,
        path_of_gene_sets_file,
        reference_group,
        test_group,
        label,
        output_directory,
        **keyword_arguments_of_command
    )
    logger.info(f"GSEA will be run with command {' '.join(command)}")
    try:
        completed_process = subprocess.run(
            command,
            cwd = working_directory,
            capture_output = True,
            text = True,
            timeout = timeout_in_seconds,
            check = False
        )
    except subprocess.TimeoutExpired as exception:
        raise ExternalToolTimeoutError(f"GSEA did not complete within {timeout_in_seconds} seconds.") from exception
    except OSError as exception:
        raise ExternalToolError(f"GSEA could not be started: {exception}") from exception
    if completed_process.returncode != 0:
        raise ExternalToolError(
            f"GSEA exited with status {completed_process.returncode}.\n{(completed_process.stderr or '')[-2000:]}"
        )
    result_directory = find_single_result_directory(output_directory, label)
    logger.info(f"Results of GSEA were saved to {result_directory}.")
    return result_directory


def find_report_file(result_directory, phenotype_class: str) -> Path:
    '''
    A report of GSEA is named `gsea_report_for_<class>_<timestamp>.xls` or `.tsv`.
    The timestamp must follow the class directly so that a class that starts with another class is not mistaken for it.
    '''
    pattern_of_name_of_report = re.compile(rf"gsea_report_for_{re.escape(phenotype_class)}_\d+\.(xls|tsv)")
    list_of_report_files = sorted(
        path
        for path in Path(result_directory).glob("gsea_report_for_*")
        if pattern_of_name_of_report.fullmatch(path.name)
    )
    if len(list_of_report_files) != 1:
        raise AmbiguousResultsError(
            f"Exactly 1 report of GSEA for class {phenotype_class} was expected in {result_directory}, but {len(list_of_report_files)} were found."
        )
    return list_of_report_files[0]


def read_GSEA_report(path_of_report, FDR_cutoff: float = FDR_CUTOFF_FOR_GSEA) -> pd.DataFrame:
    '''
    Return rows of a GSEA report with FDR q values less than `FDR_cutoff`.
    '''
    data_frame = pd.read_csv(path_of_report, sep = '\t')
    for name_of_column in ["NAME", "NES", "FDR q-val"]:
        if name_of_column not in data_frame.columns:
            raise ValueError(f"Column {name_of_column} is missing from report of GSEA {path_of_report}.")
    data_frame["FDR q-val"] = pd.to_numeric(data_frame["FDR q-val"], errors = "coerce")
    data_frame["NES"] = pd.to_numeric(data_frame["NES"], errors = "coerce")
    return data_frame.loc[data_frame["FDR q-val"] < FDR_cutoff].reset_index(drop = True)


def collect_significant_gene_sets(
    result_directory,
    list_of_phenotype_classes: list[str],
    FDR_cutoff: float = FDR_CUTOFF_FOR_GSEA
) -> pd.DataFrame:
    '''
    Return a data frame of phenotype classes, gene sets, normalized enrichment scores, and FDRs
    for gene sets enriched in each phenotype class.
    '''
    list_of_data_frames = []
    for phenotype_class in list_of_phenotype_classes:
        data_frame = read_GSEA_report(find_report_file(result_directory, phenotype_class), FDR_cutoff)
        list_of_data_frames.append(
            pd.DataFrame(
                {
                    "phenotype_class": phenotype_class,
                    "gene_set": data_frame["NAME"].astype(str),
                    "NES": data_frame["NES"],
                    "FDR": data_frame["FDR q-val"]
                }
            )
        )
        logger.info(f"{len(data_frame)} gene sets are enriched in {phenotype_class} at FDR < {FDR_cutoff}.")
    return pd.concat(list_of_data_frames, ignore_index = True)
