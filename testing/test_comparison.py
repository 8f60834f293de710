from signature_analysis.comparison import compare_sets_of_pathways, create_data_frame_of_comparison, create_venn_diagram


def test_that_pathways_are_compared_after_case_folding():
    comparison_of_pathways = compare_sets_of_pathways(
        ["KEGG_Apoptosis", "Reactome_DNA_Repair"],
        ["KEGG_APOPTOSIS", "HALLMARK_HYPOXIA"]
    )
    assert comparison_of_pathways.shared_pathways == ["KEGG_Apoptosis"]
    assert comparison_of_pathways.pathways_only_from_signatures == ["Reactome_DNA_Repair"]
    assert comparison_of_pathways.pathways_only_from_GSEA == ["HALLMARK_HYPOXIA"]


def test_data_frame_of_comparison():
    comparison_of_pathways = compare_sets_of_pathways(["P1", "P2"], ["p2", "P3"])
    data_frame = create_data_frame_of_comparison(comparison_of_pathways)
    assert data_frame.values.tolist() == [["P2", "shared"], ["P1", "signatures_only"], ["P3", "GSEA_only"]]


def test_venn_diagrams_are_saved(tmp_path):
    path_of_plot = tmp_path / "venn.png"
    create_venn_diagram(compare_sets_of_pathways(["P1", "P2"], ["p2", "P3"]), path_of_plot)
    assert path_of_plot.exists()
    path_of_empty_plot = tmp_path / "empty_venn.png"
    create_venn_diagram(compare_sets_of_pathways([], []), path_of_empty_plot)
    assert path_of_empty_plot.exists()
