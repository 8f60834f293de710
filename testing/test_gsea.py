'''
Usage
pytest -q testing/test_gsea.py

GSEA itself is never run. `subprocess.run` is replaced by fakes that create or withhold result directories.
'''

from pathlib import Path
from signature_analysis import gsea
from signature_analysis.errors import AmbiguousResultsError, ExternalToolError, ExternalToolTimeoutError
import pandas as pd
import pytest
import subprocess


LABEL = "case_study"


@pytest.fixture
def keyword_arguments_of_run(tmp_path, expression_data_frame, list_of_phenotypes) -> dict:
    return {
        "path_of_GSEA_jar": tmp_path / "gsea.jar",
        "expression_data_frame": expression_data_frame,
        "list_of_phenotypes": list_of_phenotypes,
        "reference_group": "control",
        "test_group": "treatment",
        "dictionary_of_names_of_sets_of_genes_and_lists_of_genes": {"KEGG_APOPTOSIS": ["A", "B", "C"]},
        "working_directory": tmp_path / "working_directory",
        "label": LABEL,
        "output_directory": tmp_path / "output",
        "timeout_in_seconds": 5
    }


def create_fake_run(list_of_commands: list, number_of_result_directories: int = 1, return_code: int = 0):
    def fake_run(command, **keyword_arguments):
        list_of_commands.append(command)
        output_directory = command[command.index("-out") + 1]
        for index in range(number_of_result_directories):
            (Path(output_directory) / f"{LABEL}.Gsea.{1000 + index}").mkdir(parents = True)
        return subprocess.CompletedProcess(command, return_code, stdout = "", stderr = "error of GSEA")
    return fake_run


def test_phenotype_labels_file_is_in_CLS_format(tmp_path):
    path_of_file = gsea.write_phenotype_labels_file(["control", "control", "treatment"], tmp_path / "phenotypes.cls")
    assert path_of_file.read_text() == "3 2 1\n# control treatment\ncontrol control treatment\n"


def test_expression_file_has_name_and_description_columns(tmp_path, expression_data_frame):
    path_of_file = gsea.write_expression_file(expression_data_frame, tmp_path / "expression.txt")
    list_of_lines = path_of_file.read_text().splitlines()
    assert list_of_lines[0].split('\t') == ["NAME", "DESCRIPTION", *expression_data_frame.columns]
    assert list_of_lines[1].split('\t')[:2] == ["A", "na"]
    assert len(list_of_lines) == len(expression_data_frame) + 1


def test_that_gene_sets_survive_a_round_trip_modulo_case(tmp_path):
    dictionary_of_gene_sets = {"KEGG_Apoptosis": ["A", "B"], "REACTOME_CELL_CYCLE": ["C"]}
    path_of_file = gsea.write_gene_sets_file(dictionary_of_gene_sets, tmp_path / "gene_sets.gmt")
    dictionary_of_read_gene_sets = gsea.read_gene_sets_file(path_of_file)
    assert (
        {name.casefold(): set(list_of_genes) for name, list_of_genes in dictionary_of_read_gene_sets.items()} ==
        {name.casefold(): set(list_of_genes) for name, list_of_genes in dictionary_of_gene_sets.items()}
    )


def test_GSEA_command(tmp_path):
    command = gsea.create_GSEA_command(
        tmp_path / "gsea.jar",
        tmp_path / "expression.txt",
        tmp_path / "phenotypes.cls",
        tmp_path / "gene_sets.gmt",
        "control",
        "treatment",
        LABEL,
        tmp_path / "output",
        minimum_size = 5,
        maximum_size = 100
    )
    assert command[:5] == ["java", "-Xmx2048m", "-cp", str(tmp_path / "gsea.jar"), "xtools.gsea.Gsea"]
    assert command[command.index("-cls") + 1] == f"{tmp_path / 'phenotypes.cls'}#treatment_versus_control"
    assert command[command.index("-rpt_label") + 1] == LABEL
    assert command[command.index("-permute") + 1] == "gene_set"
    assert command[command.index("-set_min") + 1] == "5"
    assert command[command.index("-set_max") + 1] == "100"
    assert command[command.index("-gui") + 1] == "false"


def test_that_GSEA_is_run_when_no_results_exist(monkeypatch, keyword_arguments_of_run):
    list_of_commands = []
    monkeypatch.setattr(gsea.subprocess, "run", create_fake_run(list_of_commands))
    keyword_arguments_of_run["working_directory"].mkdir()
    result_directory = gsea.run_GSEA(**keyword_arguments_of_run)
    assert len(list_of_commands) == 1
    assert result_directory == keyword_arguments_of_run["output_directory"] / f"{LABEL}.Gsea.1000"
    for name_of_file in [gsea.NAME_OF_PHENOTYPE_LABEL_FILE, gsea.NAME_OF_EXPRESSION_FILE, gsea.NAME_OF_GENE_SET_FILE]:
        assert (keyword_arguments_of_run["working_directory"] / name_of_file).exists()


def test_that_existing_results_are_reused(monkeypatch, keyword_arguments_of_run):
    list_of_commands = []
    monkeypatch.setattr(gsea.subprocess, "run", create_fake_run(list_of_commands))
    result_directory = keyword_arguments_of_run["output_directory"] / f"{LABEL}.Gsea.42"
    result_directory.mkdir(parents = True)
    assert gsea.run_GSEA(**keyword_arguments_of_run) == result_directory
    assert list_of_commands == []


def test_that_multiple_existing_results_are_ambiguous(monkeypatch, keyword_arguments_of_run):
    list_of_commands = []
    monkeypatch.setattr(gsea.subprocess, "run", create_fake_run(list_of_commands))
    for timestamp in ["1", "2"]:
        (keyword_arguments_of_run["output_directory"] / f"{LABEL}.Gsea.{timestamp}").mkdir(parents = True)
    with pytest.raises(AmbiguousResultsError):
        gsea.run_GSEA(**keyword_arguments_of_run)
    assert list_of_commands == []


@pytest.mark.parametrize("number_of_result_directories", [0, 2])
def test_that_run_without_exactly_1_result_directory_is_ambiguous(monkeypatch, keyword_arguments_of_run, number_of_result_directories):
    monkeypatch.setattr(gsea.subprocess, "run", create_fake_run([], number_of_result_directories))
    keyword_arguments_of_run["working_directory"].mkdir()
    with pytest.raises(AmbiguousResultsError):
        gsea.run_GSEA(**keyword_arguments_of_run)


def test_that_nonzero_exit_status_is_an_external_tool_error(monkeypatch, keyword_arguments_of_run):
    monkeypatch.setattr(gsea.subprocess, "run", create_fake_run([], 0, return_code = 1))
    keyword_arguments_of_run["working_directory"].mkdir()
    with pytest.raises(ExternalToolError, match = "error of GSEA"):
        gsea.run_GSEA(**keyword_arguments_of_run)


def test_that_timeout_is_reported(monkeypatch, keyword_arguments_of_run):
    def fake_run(command, **keyword_arguments):
        raise subprocess.TimeoutExpired(command, keyword_arguments["timeout"])
    monkeypatch.setattr(gsea.subprocess, "run", fake_run)
    keyword_arguments_of_run["working_directory"].mkdir()
    with pytest.raises(ExternalToolTimeoutError):
        gsea.run_GSEA(**keyword_arguments_of_run)


def test_that_missing_java_is_an_external_tool_error(monkeypatch, keyword_arguments_of_run):
    def fake_run(command, **keyword_arguments):
        raise FileNotFoundError("java")
    monkeypatch.setattr(gsea.subprocess, "run", fake_run)
    keyword_arguments_of_run["working_directory"].mkdir()
    with pytest.raises(ExternalToolError):
        gsea.run_GSEA(**keyword_arguments_of_run)


def test_that_temporary_working_directory_is_removed_on_error():
    with pytest.raises(RuntimeError):
        with gsea.WorkingDirectory() as working_directory:
            assert working_directory.is_dir()
            raise RuntimeError("failure")
    assert not working_directory.exists()


@pytest.mark.parametrize("clean_up", [True, False])
def test_that_provided_working_directory_is_removed_only_on_request(tmp_path, clean_up):
    with gsea.WorkingDirectory(tmp_path / "working_directory", clean_up = clean_up) as working_directory:
        (working_directory / "file.txt").write_text("content")
    assert working_directory.exists() != clean_up


def write_report(path_of_report, list_of_names, list_of_FDRs):
    pd.DataFrame(
        {
            "NAME": list_of_names,
            "GS<br> follow link to MSigDB": list_of_names,
            "SIZE": [10] * len(list_of_names),
            "ES": [0.5] * len(list_of_names),
            "NES": [1.5] * len(list_of_names),
            "NOM p-val": [0.001] * len(list_of_names),
            "FDR q-val": list_of_FDRs
        }
    ).to_csv(path_of_report, sep = '\t', index = False)


def test_that_reports_are_filtered_by_FDR(tmp_path):
    path_of_report = tmp_path / "gsea_report_for_treatment_1000.tsv"
    write_report(path_of_report, ["KEGG_APOPTOSIS", "KEGG_CELL_CYCLE", "KEGG_RIBOSOME"], [0.01, 0.05, 0.2])
    data_frame = gsea.read_GSEA_report(path_of_report, 0.05)
    assert data_frame["NAME"].tolist() == ["KEGG_APOPTOSIS"]


def test_collection_of_significant_gene_sets_per_class(tmp_path):
    write_report(tmp_path / "gsea_report_for_treatment_1000.xls", ["KEGG_APOPTOSIS", "KEGG_RIBOSOME"], [0.01, 0.3])
    write_report(tmp_path / "gsea_report_for_control_1000.xls", ["KEGG_CELL_CYCLE"], [0.001])
    (tmp_path / "gsea_report_for_treatment_1000.html").write_text("<html></html>")
    data_frame = gsea.collect_significant_gene_sets(tmp_path, ["treatment", "control"], 0.05)
    assert data_frame[["phenotype_class", "gene_set"]].values.tolist() == [
        ["treatment", "KEGG_APOPTOSIS"],
        ["control", "KEGG_CELL_CYCLE"]
    ]


def test_that_missing_report_is_ambiguous(tmp_path):
    with pytest.raises(AmbiguousResultsError):
        gsea.find_report_file(tmp_path, "treatment")


def test_that_report_of_class_is_not_confused_with_report_of_class_with_longer_name(tmp_path):
    write_report(tmp_path / "gsea_report_for_ctrl_1700000000000.tsv", ["KEGG_APOPTOSIS"], [0.01])
    write_report(tmp_path / "gsea_report_for_ctrl_high_1700000000000.tsv", ["KEGG_RIBOSOME"], [0.01])
    assert gsea.find_report_file(tmp_path, "ctrl").name == "gsea_report_for_ctrl_1700000000000.tsv"
    assert gsea.find_report_file(tmp_path, "ctrl_high").name == "gsea_report_for_ctrl_high_1700000000000.tsv"


@pytest.mark.parametrize("invalid_class", ["high dose", "high\tdose", ""])
def test_that_classes_with_whitespace_are_rejected_in_phenotype_labels_file(tmp_path, invalid_class):
    path_of_file = tmp_path / "phenotypes.cls"
    with pytest.raises(ValueError):
        gsea.write_phenotype_labels_file(["control", invalid_class], path_of_file)
    assert not path_of_file.exists()
