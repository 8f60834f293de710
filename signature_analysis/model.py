'''
`model.py`

Load a pretrained model of weights of genes for nodes and derive signatures from it.

A model is a genes × nodes matrix of weights.
The high weight genes of a node are genes with weights at least `HIGH_WEIGHT_CUTOFF` standard deviations
above (signature `<node>pos`) or below (signature `<node>neg`) the mean weight of the node.
The model is read only.
'''

from signature_analysis.config import HIGH_WEIGHT_CUTOFF
import logging
import pandas as pd


logger = logging.getLogger(__name__)


def load_model(path_of_model) -> pd.DataFrame:
    model = pd.read_csv(path_of_model, sep = '\t', index_col = 0)
    model.index = model.index.astype(str)
    model.index.name = "gene"
    model.columns = model.columns.astype(str)
    logger.info(f"Model has {model.shape[0]} genes and {model.shape[1]} nodes.")
    return model


def extract_signatures(model: pd.DataFrame, high_weight_cutoff: float = HIGH_WEIGHT_CUTOFF) -> dict[str, pd.Series]:
    dictionary_of_signatures_and_series_of_weights = {}
    for node in model.columns:
        series_of_weights = model[node]
        mean_weight = series_of_weights.mean()
        standard_deviation_of_weights = series_of_weights.std(ddof = 1)
        series_of_positive_weights = series_of_weights[series_of_weights >= mean_weight + high_weight_cutoff * standard_deviation_of_weights]
        series_of_negative_weights = series_of_weights[series_of_weights <= mean_weight - high_weight_cutoff * standard_deviation_of_weights]
        for suffix, series_of_high_weights in [("pos", series_of_positive_weights), ("neg", series_of_negative_weights)]:
            if series_of_high_weights.empty or standard_deviation_of_weights == 0.0:
                continue
            dictionary_of_signatures_and_series_of_weights[f"{node}{suffix}"] = series_of_high_weights.rename(f"{node}{suffix}")
    logger.info(f"{len(dictionary_of_signatures_and_series_of_weights)} signatures were extracted from {model.shape[1]} nodes.")
    return dictionary_of_signatures_and_series_of_weights


def create_data_frame_of_signatures_and_genes(dictionary_of_signatures_and_series_of_weights: dict[str, pd.Series]) -> pd.DataFrame:
    list_of_data_frames = [
        pd.DataFrame(
            {
                "signature": signature,
                "gene": series_of_weights.index,
                "weight": series_of_weights.to_numpy()
            }
        )
        for signature, series_of_weights in dictionary_of_signatures_and_series_of_weights.items()
    ]
    if not list_of_data_frames:
        return pd.DataFrame(columns = ["signature", "gene", "weight"])
    return pd.concat(list_of_data_frames, ignore_index = True)
