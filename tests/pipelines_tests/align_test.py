#
# Copyright (c) 2023 Mikkel Schubert <MikkelSch@gmail.com>
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.
#
from __future__ import annotations

import stat
from pathlib import Path

import pytest

from rnavc.pipelines.align import GENE_COUNTS_FILENAME, default_output, main

# Minimal stand-in for STAR: records the call and writes the files STAR would write
_FAKE_STAR = r"""#!/bin/sh
echo "$*" >> "$(dirname "$0")/star_calls.txt"
prefix=""
while [ $# -gt 0 ]; do
    if [ "$1" = "--outFileNamePrefix" ]; then
        prefix="$2"
    fi
    shift
done

case "$prefix" in
    {failing}) exit 1;;
esac

mkdir -p "${prefix}STARtmp"
echo "bam" > "${prefix}Aligned.sortedByCoord.out.bam"
counts="${prefix}ReadsPerGene.out.tab"
printf 'N_unmapped\t1\t1\t1\nN_multimapping\t2\t2\t2\n' > "$counts"
printf 'N_noFeature\t3\t3\t3\nN_ambiguous\t4\t4\t4\n' >> "$counts"
printf 'geneB\t5\t0\t5\ngeneA\t10\t0\t10\n' >> "$counts"
"""


class _Setup:
    def __init__(self, root: Path, failing: str = "") -> None:
        self.root = root
        self.bin = root / "bin"
        self.bin.mkdir()

        self.star = self.bin / "STAR"
        self.star.write_text(_FAKE_STAR.replace("{failing}", failing or "NONE"))
        self.star.chmod(self.star.stat().st_mode | stat.S_IXUSR)

        self.reads = root / "reads"
        (self.reads / "lane1").mkdir(parents=True)
        for filename in ("s1_R1.fastq.gz", "s1_R2.fastq.gz", "lane1/s2.fq"):
            (self.reads / filename).write_text("@read\nACGT\n+\nIIII\n")

        self.genome = root / "genome"
        self.genome.mkdir()
        self.annotation = root / "genes.gtf"
        self.annotation.write_text("annotation\n")

        self.output = root / "output"

    def argv(self, *extra: str) -> list[str]:
        return [
            str(self.reads),
            str(self.genome),
            str(self.annotation),
            str(self.output),
            "2",
            *extra,
            "--star",
            str(self.star),
        ]

    def star_calls(self) -> list[str]:
        filename = self.bin / "star_calls.txt"
        if not filename.exists():
            return []

        return filename.read_text().splitlines()


def test_default_output() -> None:
    assert default_output("/data/reads") == "/data/reads_autoSTAR"
    assert default_output("/data/reads/") == "/data/reads_autoSTAR"


def test_main__no_arguments(capsys: pytest.CaptureFixture[str]) -> None:
    assert main([]) == 1
    assert "usage: rnavc align" in capsys.readouterr().err


def test_main__missing_input_dir(tmp_path: Path) -> None:
    setup = _Setup(tmp_path)
    argv = setup.argv()
    argv[0] = str(tmp_path / "missing")

    assert main(argv) == 1
    assert not setup.output.exists()


def test_main__missing_star(tmp_path: Path) -> None:
    setup = _Setup(tmp_path)
    argv = setup.argv()
    argv[-1] = str(tmp_path / "missing" / "STAR")

    assert main(argv) == 1
    assert not setup.output.exists()


def test_main__invalid_threads(tmp_path: Path) -> None:
    setup = _Setup(tmp_path)
    argv = setup.argv()
    argv[4] = "many"

    assert main(argv) == 1
    assert not setup.output.exists()


def test_main__full_run(tmp_path: Path) -> None:
    setup = _Setup(tmp_path)

    assert main(setup.argv()) == 0

    calls = setup.star_calls()
    assert len(calls) == 2
    assert "--readFilesCommand zcat" in calls[0]
    assert f"--readFilesIn {setup.reads}/s1_R1.fastq.gz {setup.reads}/s1_R2" in calls[0]
    assert "--runThreadN 2" in calls[0]
    assert "--readFilesCommand" not in calls[1]
    assert f"--outFileNamePrefix {setup.output}/s2_autoSTAR_" in calls[1]

    assert (setup.output / "s1_R1_autoSTAR_Aligned.sortedByCoord.out.bam").exists()
    assert not (setup.output / "s1_R1_autoSTAR_STARtmp").exists()
    assert not (setup.output / "s2_autoSTAR_STARtmp").exists()
    assert (setup.output / "logs" / "s1_R1.log").exists()
    assert (setup.output / "logs" / "s2.err").exists()

    assert (setup.output / GENE_COUNTS_FILENAME).read_text().splitlines() == [
        "GeneID\ts1\ts2",
        "geneA\t10\t10",
        "geneB\t5\t5",
    ]


def test_main__processed_samples_are_skipped(tmp_path: Path) -> None:
    setup = _Setup(tmp_path)
    setup.output.mkdir()
    (setup.output / "s1_R1_autoSTAR_Log.out").write_text("partial\n")

    assert main(setup.argv()) == 0
    assert len(setup.star_calls()) == 1
    assert "s2_autoSTAR_" in setup.star_calls()[0]


def test_main__rerun(tmp_path: Path) -> None:
    setup = _Setup(tmp_path)

    assert main(setup.argv()) == 0
    assert main(setup.argv()) == 0
    assert len(setup.star_calls()) == 2


def test_main__sample_list(tmp_path: Path) -> None:
    setup = _Setup(tmp_path)
    sample_list = tmp_path / "samples.txt"
    sample_list.write_text("lane1/s2\n\n")

    assert main(setup.argv(str(sample_list))) == 0
    assert len(setup.star_calls()) == 1
    assert (setup.output / GENE_COUNTS_FILENAME).read_text().splitlines() == [
        "GeneID\ts2",
        "geneA\t10",
        "geneB\t5",
    ]


def test_main__default_output(tmp_path: Path) -> None:
    setup = _Setup(tmp_path)
    argv = setup.argv()
    argv[3] = ""

    assert main(argv) == 0
    assert (tmp_path / "reads_autoSTAR" / GENE_COUNTS_FILENAME).exists()


def test_main__failed_sample(tmp_path: Path) -> None:
    setup = _Setup(tmp_path, failing="*s2_autoSTAR_")

    assert main(setup.argv()) == 1
    assert len(setup.star_calls()) == 2
    assert (setup.output / GENE_COUNTS_FILENAME).read_text().splitlines() == [
        "GeneID\ts1",
        "geneA\t10",
        "geneB\t5",
    ]
    log = (setup.output / "logs" / "s2.log").read_text()
    assert "X STAR failed with exit code 1" in log
