"""Tests for the batch gene tree stage."""

from pathlib import Path

import pytest

from phylo_pipeline.config.settings import ComputeSettings, ExecutableSettings, Settings
from phylo_pipeline.core.exceptions import ComputeError, ConfigurationError
from phylo_pipeline.core.types import AlignmentFile, BatchState, InputFormat
from phylo_pipeline.inference import gene_trees
from phylo_pipeline.inference.gene_trees import GeneTreeBatch, build_gene_trees
from phylo_pipeline.inference.species_tree import SpeciesTree


pytestmark = pytest.mark.integration


def call_count(settings: Settings) -> int:
    calls = settings.work_dir / "iqtree_calls.txt"
    if not calls.exists():
        return 0
    return len(calls.read_text().splitlines())


def test_two_loci_end_to_end(test_settings, alignment_dir, lines_of):
    batch = GeneTreeBatch(alignment_dir, settings=test_settings)

    summary = batch.run()

    work = test_settings.work_dir
    assert summary.total_jobs == 2
    assert summary.failed_prefixes == []
    assert summary.trees_written == 2
    assert batch.state == BatchState.DONE

    assert sorted(p.name for p in (work / "gene-treefiles").iterdir()) == [
        "geneA.treefile", "geneB.treefile",
    ]
    for prefix in ("geneA", "geneB"):
        archived = sorted(p.name for p in (work / "iqtree-genes" / prefix).iterdir())
        assert archived == [f"{prefix}.iqtree", f"{prefix}.log"]

    # Trimmed trees in discovery order, one per line
    expected = [
        f"({aln.prefix}_A,{aln.prefix}_B,C);"
        for aln in gene_trees.find_alignments(alignment_dir, InputFormat.NEXUS)
    ]
    assert lines_of(work / "genes.treefiles") == expected
    assert (work / "genes.treefiles").read_text().endswith(";\n")


def test_one_job_per_alignment(test_settings, tmp_path, make_alignments, lines_of):
    names = [f"locus{i:02d}.nex" for i in range(12)]
    make_alignments(tmp_path / "many", names)

    summary = GeneTreeBatch(tmp_path / "many", settings=test_settings).run()

    assert summary.total_jobs == 12
    assert call_count(test_settings) == 12
    assert len(lines_of(test_settings.gene_tree_collection)) == 12


def test_single_alignment_aborts_before_dispatch(test_settings, tmp_path, make_alignments):
    make_alignments(tmp_path / "one", ["only.nexus"])
    batch = GeneTreeBatch(tmp_path / "one", settings=test_settings)

    with pytest.raises(ConfigurationError):
        batch.run()

    assert call_count(test_settings) == 0
    assert not test_settings.gene_tree_collection.exists()
    assert not test_settings.gene_tree_dir.exists()


def test_empty_directory_aborts(test_settings, tmp_path):
    empty = tmp_path / "empty"
    empty.mkdir()

    with pytest.raises(ConfigurationError):
        GeneTreeBatch(empty, settings=test_settings).run()


def test_failed_locus_is_skipped(test_settings, tmp_path, make_alignments, lines_of, log_messages):
    make_alignments(tmp_path / "mixed", ["geneA.nexus", "broken.nexus", "geneB.nexus"])

    summary = GeneTreeBatch(tmp_path / "mixed", settings=test_settings).run()

    assert summary.total_jobs == 3
    assert summary.failed_prefixes == ["broken"]
    assert summary.trees_written == 2
    assert summary.succeeded == 2

    lines = lines_of(test_settings.gene_tree_collection)
    assert len(lines) == 2
    assert not any("broken" in line for line in lines)

    # Partial output of the failed job is still archived
    assert (test_settings.gene_archive_dir / "broken" / "broken.log").is_file()
    assert not (test_settings.gene_tree_dir / "broken.treefile").exists()

    errors = [m for m in log_messages if m.startswith("ERROR")]
    assert any("failed to process" in m and "broken.nexus" in m for m in errors)
    assert any("alignment parse failure" in m for m in errors)


def test_parameter_override_reaches_every_job(test_settings, alignment_dir):
    GeneTreeBatch(alignment_dir, params="-m GTR -B 1000", settings=test_settings).run()

    calls = (test_settings.work_dir / "iqtree_calls.txt").read_text().splitlines()
    assert len(calls) == 2
    for call in calls:
        assert call.endswith("-m GTR -B 1000")
        assert "-T" not in call.split()


def test_duplicate_stems_are_rejected(test_settings, tmp_path, make_alignments):
    make_alignments(tmp_path / "dups", ["geneA.nex", "geneA.nexus", "geneB.nex"])

    with pytest.raises(ConfigurationError) as exc_info:
        GeneTreeBatch(tmp_path / "dups", settings=test_settings).run()

    assert "geneA" in exc_info.value.message
    assert call_count(test_settings) == 0


@pytest.mark.parametrize("stem", ["concat", "concord", "msc_astral"])
def test_stage_prefix_stems_are_rejected(test_settings, tmp_path, make_alignments, stem):
    make_alignments(tmp_path / "loci", [f"{stem}.nexus", "geneB.nexus"])
    test_settings.species_tree_file.write_text("(A,B,C);\n")

    with pytest.raises(ConfigurationError) as exc_info:
        GeneTreeBatch(tmp_path / "loci", settings=test_settings).run()

    assert stem in exc_info.value.message
    assert call_count(test_settings) == 0
    assert test_settings.species_tree_file.read_text() == "(A,B,C);\n"


def test_species_tree_survives_gene_stage(test_settings, alignment_dir):
    SpeciesTree(alignment_dir, settings=test_settings).run()
    species_tree = test_settings.species_tree_file.read_text()

    summary = GeneTreeBatch(alignment_dir, settings=test_settings).run()

    assert summary.trees_written == summary.succeeded == 2
    assert test_settings.species_tree_file.read_text() == species_tree


def test_fasta_input_format(test_settings, tmp_path, make_alignments, lines_of):
    make_alignments(tmp_path / "fasta", ["geneA.fasta", "geneB.fa", "notes.txt"])

    summary = GeneTreeBatch(
        tmp_path / "fasta", input_format=InputFormat.FASTA, settings=test_settings
    ).run()

    assert summary.total_jobs == 2
    assert len(lines_of(test_settings.gene_tree_collection)) == 2


def test_collection_follows_discovery_order(test_settings, alignment_dir, monkeypatch, lines_of):
    discovered = [
        AlignmentFile(alignment_dir / "geneB.nexus"),
        AlignmentFile(alignment_dir / "geneA.nexus"),
    ]
    monkeypatch.setattr(gene_trees, "find_alignments", lambda directory, fmt: discovered)

    GeneTreeBatch(alignment_dir, settings=test_settings).run()

    assert lines_of(test_settings.gene_tree_collection) == [
        "(geneB_A,geneB_B,C);",
        "(geneA_A,geneA_B,C);",
    ]


def test_rerun_clears_previous_output(test_settings, alignment_dir, lines_of):
    stale = test_settings.gene_tree_dir / "oldlocus.treefile"
    stale.parent.mkdir(parents=True)
    stale.write_text("(x,y,z);\n")

    GeneTreeBatch(alignment_dir, settings=test_settings).run()
    GeneTreeBatch(alignment_dir, settings=test_settings).run()

    assert not stale.exists()
    assert len(lines_of(test_settings.gene_tree_collection)) == 2
    assert sorted(p.name for p in test_settings.gene_archive_dir.iterdir()) == ["geneA", "geneB"]


def test_single_worker_processes_everything(work_dir, fake_iqtree, alignment_dir, lines_of):
    settings = Settings(
        work_dir=work_dir,
        executables=ExecutableSettings(iqtree=str(fake_iqtree)),
        compute=ComputeSettings(max_workers=1),
    )

    summary = GeneTreeBatch(alignment_dir, settings=settings).run()

    assert summary.trees_written == 2
    assert len(lines_of(settings.gene_tree_collection)) == 2


def test_missing_executable_is_fatal(work_dir, alignment_dir):
    settings = Settings(
        work_dir=work_dir,
        executables=ExecutableSettings(iqtree=str(work_dir / "missing-iqtree")),
        compute=ComputeSettings(max_workers=2),
    )
    batch = GeneTreeBatch(alignment_dir, settings=settings)

    with pytest.raises(ComputeError):
        batch.run()

    assert batch.state == BatchState.DISPATCHING
    assert not settings.gene_tree_collection.exists()


def test_previous_collection_is_not_archived(test_settings, tmp_path, make_alignments, lines_of):
    # A locus whose prefix matches the combined tree file name
    make_alignments(tmp_path / "loci", ["genes.nexus", "geneB.nexus"])
    test_settings.gene_tree_collection.write_text("(old,tree,here);\n")

    GeneTreeBatch(tmp_path / "loci", settings=test_settings).run()

    assert (test_settings.gene_tree_dir / "genes.treefile").is_file()
    archived = sorted(p.name for p in (test_settings.gene_archive_dir / "genes").iterdir())
    assert archived == ["genes.iqtree", "genes.log"]
    assert len(lines_of(test_settings.gene_tree_collection)) == 2


def test_build_gene_trees_wrapper(test_settings, alignment_dir):
    assert build_gene_trees(alignment_dir, settings=test_settings) is None
    assert test_settings.gene_tree_collection.is_file()


def test_discover_returns_alignment_files(test_settings, alignment_dir):
    batch = GeneTreeBatch(alignment_dir, settings=test_settings)

    alignments = batch.discover()

    assert batch.state == BatchState.DISCOVERING
    assert sorted(aln.prefix for aln in alignments) == ["geneA", "geneB"]
    assert all(isinstance(aln.path, Path) for aln in alignments)


def test_similar_stems_do_not_share_outputs(test_settings, tmp_path, make_alignments):
    make_alignments(tmp_path / "loci", ["gene1.nex", "gene10.nex", "gene1a.nex"])

    GeneTreeBatch(tmp_path / "loci", settings=test_settings).run()

    for prefix in ("gene1", "gene10", "gene1a"):
        archived = sorted(p.name for p in (test_settings.gene_archive_dir / prefix).iterdir())
        assert archived == [f"{prefix}.iqtree", f"{prefix}.log"]
    assert sorted(p.name for p in test_settings.gene_tree_dir.iterdir()) == [
        "gene1.treefile", "gene10.treefile", "gene1a.treefile",
    ]


def test_dotted_prefix_overlap_is_rejected(test_settings, tmp_path, make_alignments):
    make_alignments(tmp_path / "loci", ["gene.nex", "gene.v2.nex", "other.nex"])

    with pytest.raises(ConfigurationError) as exc_info:
        GeneTreeBatch(tmp_path / "loci", settings=test_settings).run()

    assert "gene/gene.v2" in exc_info.value.message
    assert call_count(test_settings) == 0


def test_overlapping_prefixes():
    assert gene_trees.overlapping_prefixes(["a", "a.b", "a.b.c", "ab"]) == ["a.b/a.b.c", "a/a.b", "a/a.b.c"]
    assert gene_trees.overlapping_prefixes(["gene1", "gene10", "gene1a"]) == []
