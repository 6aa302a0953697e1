"""
Test configuration and fixtures for the phylogenetic batch pipeline.

The external programs are replaced by small shell scripts that mimic the files
IQ-TREE and ASTRAL write, so the stages run end to end without the real tools.
"""

import os
import stat
import sys
from pathlib import Path
from typing import Callable, Iterable, List

import pytest
from loguru import logger

from phylo_pipeline.config.settings import ComputeSettings, ExecutableSettings, Settings


NEXUS_ALIGNMENT = """#NEXUS
begin data;
    dimensions ntax=3 nchar=8;
    format datatype=dna missing=? gap=-;
    matrix
    A ACGTACGT
    B ACGTACGA
    C ACGTACGG
    ;
end;
"""

FASTA_ALIGNMENT = """>A
ACGTACGT
>B
ACGTACGA
>C
ACGTACGG
"""

# Mimics iqtree2: every output lands in the cwd as <prefix>.<ext>. Alignments
# whose path contains "broken" fail after writing only the log file.
FAKE_IQTREE = r"""#!/bin/sh
echo "$*" >> iqtree_calls.txt
prefix=""
aln=""
gcf=""
while [ $# -gt 0 ]; do
    case "$1" in
        --prefix) prefix="$2"; shift 2 ;;
        -s) aln="$2"; shift 2 ;;
        --gcf) gcf="$2"; shift 2 ;;
        *) shift ;;
    esac
done
echo "IQ-TREE log for $prefix" > "$prefix.log"
case "$aln" in
    *broken*)
        echo "ERROR: cannot read alignment $aln"
        echo "alignment parse failure" >&2
        exit 2
        ;;
esac
if [ -n "$gcf" ]; then
    echo "(A,B,C);" > "$prefix.cf.tree"
    echo "ID gCF sCF" > "$prefix.cf.stat"
    exit 0
fi
echo "report for $prefix" > "$prefix.iqtree"
printf '  (%s_A,%s_B,C);\n\n' "$prefix" "$prefix" > "$prefix.treefile"
"""

FAKE_ASTRAL = r"""#!/bin/sh
echo "$*" >> astral_calls.txt
input=""
output=""
while [ $# -gt 0 ]; do
    case "$1" in
        -i) input="$2"; shift 2 ;;
        -o) output="$2"; shift 2 ;;
        *) shift ;;
    esac
done
if [ ! -f "$input" ]; then
    echo "input file not found: $input" >&2
    exit 1
fi
echo "(A,B,C);" > "$output"
echo "Final quartet score is: 42" >&2
"""


def write_executable(path: Path, content: str) -> Path:
    path.write_text(content)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    """Directory the external programs run in."""
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def bin_dir(tmp_path: Path) -> Path:
    path = tmp_path / "bin"
    path.mkdir()
    return path


@pytest.fixture
def fake_iqtree(bin_dir: Path) -> Path:
    return write_executable(bin_dir / "iqtree2", FAKE_IQTREE)


@pytest.fixture
def fake_astral(bin_dir: Path) -> Path:
    return write_executable(bin_dir / "astral.sh", FAKE_ASTRAL)


@pytest.fixture
def make_alignments() -> Callable[..., List[Path]]:
    """Factory writing alignment files into a directory, FASTA for .fa* names."""
    def _make(directory: Path, names: Iterable[str]) -> List[Path]:
        directory.mkdir(parents=True, exist_ok=True)
        paths = []
        for name in names:
            path = directory / name
            is_fasta = Path(name).suffix.startswith(".fa")
            path.write_text(FASTA_ALIGNMENT if is_fasta else NEXUS_ALIGNMENT)
            paths.append(path)
        return paths
    return _make


@pytest.fixture
def alignment_dir(tmp_path: Path, make_alignments) -> Path:
    """Two NEXUS loci, geneA and geneB."""
    directory = tmp_path / "alignments"
    make_alignments(directory, ["geneA.nexus", "geneB.nexus"])
    return directory


@pytest.fixture
def test_settings(work_dir: Path, fake_iqtree: Path, fake_astral: Path) -> Settings:
    """Settings pointing at the fake executables and the temporary work dir."""
    return Settings(
        work_dir=work_dir,
        executables=ExecutableSettings(iqtree=str(fake_iqtree), astral=str(fake_astral)),
        compute=ComputeSettings(max_workers=4, physical_cores=2),
    )


@pytest.fixture
def log_messages() -> List[str]:
    """Collect formatted loguru messages emitted during a test."""
    messages: List[str] = []
    handler_id = logger.add(messages.append, format="{level} {message}", level="DEBUG")
    yield messages
    logger.remove(handler_id)


def read_lines(path: Path) -> List[str]:
    return path.read_text().splitlines()


@pytest.fixture
def lines_of() -> Callable[[Path], List[str]]:
    return read_lines


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep user configuration and CLI logging setup out of the tests."""
    for key in list(os.environ):
        if key.startswith("PHYLO_PIPELINE_"):
            monkeypatch.delenv(key)
    yield
    logger.remove()
    logger.add(sys.stderr, level="INFO")


# Test markers for different test categories
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as running the fake external programs")
    config.addinivalue_line("markers", "slow: mark test as slow running")
