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

from rnavc.fastq import AlignmentJob
from rnavc.stages.star import star_alignment_stage

_PAIRED = AlignmentJob(
    name="S1_R1",
    files=("/in/S1_R1.fastq.gz", "/in/S1_R2.fastq.gz"),
    is_paired=True,
    is_compressed=True,
)

_SINGLE = AlignmentJob(
    name="S2",
    files=("/in/S2.fq",),
    is_paired=False,
    is_compressed=False,
)


def test_star_alignment_stage__paired_compressed() -> None:
    stage = star_alignment_stage(_PAIRED, "/genome", "/genes.gtf", "/out", threads=8)
    (command,) = stage.commands

    assert command.to_call() == [
        "STAR",
        "--runMode",
        "alignReads",
        "--genomeDir",
        "/genome",
        "--runThreadN",
        "8",
        "--readFilesCommand",
        "zcat",
        "--readFilesIn",
        "/in/S1_R1.fastq.gz",
        "/in/S1_R2.fastq.gz",
        "--sjdbGTFfile",
        "/genes.gtf",
        "--outFileNamePrefix",
        "/out/S1_R1_autoSTAR_",
        "--outSAMtype",
        "BAM",
        "SortedByCoordinate",
        "--quantMode",
        "GeneCounts",
    ]


def test_star_alignment_stage__single_uncompressed() -> None:
    stage = star_alignment_stage(
        _SINGLE,
        "/genome",
        "/genes.gtf",
        "/out",
        threads=2,
        executable="/opt/STAR",
    )
    call = stage.commands[0].to_call()

    assert call[0] == "/opt/STAR"
    assert "--readFilesCommand" not in call
    assert call[call.index("--readFilesIn") + 1] == "/in/S2.fq"
    assert call[call.index("--readFilesIn") + 2] == "--sjdbGTFfile"


def test_star_alignment_stage__files() -> None:
    stage = star_alignment_stage(_PAIRED, "/genome", "/genes.gtf", "/out", threads=8)

    assert stage.inputs == (
        "/in/S1_R1.fastq.gz",
        "/in/S1_R2.fastq.gz",
        "/genome",
        "/genes.gtf",
    )
    assert stage.outputs == (
        "/out/S1_R1_autoSTAR_Aligned.sortedByCoord.out.bam",
        "/out/S1_R1_autoSTAR_ReadsPerGene.out.tab",
    )
    assert stage.intermediate == (
        "/out/S1_R1_autoSTAR_STARtmp",
        "/out/S1_R1_autoSTAR_STARgenome",
    )
