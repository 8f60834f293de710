'''
`R_backends.py`

Backends that call Bioconductor packages through rpy2.

`LimmaDifferentialTester` fits linear models with empirical Bayes moderation with limma.
`load_microarray_expression_data_frame` reads raw CEL files and summarizes them with RMA with affy.

Both require R with packages limma and affy.
'''

from rpy2.robjects import default_converter
from rpy2.robjects import numpy2ri, pandas2ri
from rpy2.robjects.conversion import localconverter
from rpy2.robjects.packages import importr
from signature_analysis.differential import DifferentialTester
import logging
import numpy as np
import pandas as pd
import rpy2.robjects as ro

from pathlib import Path


logger = logging.getLogger(__name__)


class LimmaDifferentialTester(DifferentialTester):

    def test(self, data_frame_of_values, series_of_phenotypes, reference_group, test_group):
        limma = importr("limma")
        series_of_indicators_that_rows_are_complete = data_frame_of_values.notna().all(axis = 1)
        complete_data_frame_of_values = data_frame_of_values.loc[series_of_indicators_that_rows_are_complete].astype(float)
        data_frame_of_results = pd.DataFrame(np.nan, index = data_frame_of_values.index, columns = ["effect_size", "p_value"])
        if complete_data_frame_of_values.empty:
            data_frame_of_results["adjusted_p_value"] = np.nan
            return data_frame_of_results
        list_of_names_of_rows = [str(name_of_row) for name_of_row in complete_data_frame_of_values.index]
        number_of_rows, number_of_samples = complete_data_frame_of_values.shape
        r_matrix_of_values = ro.r["matrix"](
            ro.FloatVector(complete_data_frame_of_values.to_numpy().flatten(order = "F")),
            nrow = number_of_rows,
            ncol = number_of_samples
        )
        r_matrix_of_values.rownames = ro.StrVector(list_of_names_of_rows)
        r_matrix_of_values.colnames = ro.StrVector([str(sample) for sample in complete_data_frame_of_values.columns])
        r_factor_of_groups = ro.r["factor"](
            ro.StrVector(series_of_phenotypes.tolist()),
            levels = ro.StrVector([reference_group, test_group])
        )
        ro.globalenv["group"] = r_factor_of_groups
        r_design_matrix = ro.r("model.matrix(~ group)")
        r_fit = limma.lmFit(r_matrix_of_values, r_design_matrix)
        r_fit = limma.eBayes(r_fit)
        r_data_frame_of_results = limma.topTable(
            r_fit,
            coef = 2,
            number = np.inf,
            sort_by = "none",
            adjust_method = "BH"
        )
        with localconverter(default_converter + pandas2ri.converter):
            data_frame_of_limma_results = ro.conversion.rpy2py(r_data_frame_of_results)
        # Rows of topTable follow the order of rows of the matrix when sort.by is "none".
        data_frame_of_results.loc[series_of_indicators_that_rows_are_complete, "effect_size"] = data_frame_of_limma_results["logFC"].to_numpy()
        data_frame_of_results.loc[series_of_indicators_that_rows_are_complete, "p_value"] = data_frame_of_limma_results["P.Value"].to_numpy()
        data_frame_of_results["adjusted_p_value"] = np.nan
        data_frame_of_results.loc[series_of_indicators_that_rows_are_complete, "adjusted_p_value"] = data_frame_of_limma_results["adj.P.Val"].to_numpy()
        return data_frame_of_results


def load_microarray_expression_data_frame(directory_of_CEL_files) -> pd.DataFrame:
    list_of_paths_of_CEL_files = sorted(
        path
        for path in Path(directory_of_CEL_files).iterdir()
        if path.suffix.lower() == ".cel"
    )
    logger.info(f"{len(list_of_paths_of_CEL_files)} CEL files were found in {directory_of_CEL_files}.")
    if not list_of_paths_of_CEL_files:
        raise FileNotFoundError(f"No CEL files were found in {directory_of_CEL_files}.")
    affy = importr("affy")
    Biobase = importr("Biobase")
    r_affy_batch = affy.ReadAffy(filenames = ro.StrVector([str(path) for path in list_of_paths_of_CEL_files]))
    r_expression_set = affy.rma(r_affy_batch)
    r_matrix_of_expressions = Biobase.exprs(r_expression_set)
    list_of_probes = [str(probe) for probe in ro.r["rownames"](r_matrix_of_expressions)]
    with localconverter(default_converter + numpy2ri.converter):
        array_of_expressions = ro.conversion.rpy2py(r_matrix_of_expressions)
    expression_data_frame = pd.DataFrame(
        array_of_expressions,
        index = pd.Index(list_of_probes, name = "gene"),
        columns = [path.stem for path in list_of_paths_of_CEL_files]
    )
    logger.info(f"Expression data frame from CEL files has shape {expression_data_frame.shape}.")
    return expression_data_frame
