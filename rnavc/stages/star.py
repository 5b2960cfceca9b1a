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

from rnavc.common.command import AuxiliaryFile, Command, InputFile, OutputFile
from rnavc.common.fileutils import PathTypes, fspath
from rnavc.fastq import AlignmentJob
from rnavc.stage import Stage


def star_command(
    job: AlignmentJob,
    genome_dir: PathTypes,
    annotation: PathTypes,
    prefix: str,
    threads: int,
    executable: str = "STAR",
) -> Command:
    command = Command(
        [executable, "--runMode", "alignReads"],
        extra_files=[
            OutputFile(prefix + "Aligned.sortedByCoord.out.bam"),
            OutputFile(prefix + "ReadsPerGene.out.tab"),
        ],
    )
    command.append("--genomeDir", AuxiliaryFile(genome_dir))
    command.append("--runThreadN", threads)
    if job.is_compressed:
        command.append("--readFilesCommand", "zcat")

    command.append("--readFilesIn", *(InputFile(filename) for filename in job.files))
    command.append("--sjdbGTFfile", AuxiliaryFile(annotation))
    command.append("--outFileNamePrefix", prefix)
    command.append("--outSAMtype", "BAM", "SortedByCoordinate")
    command.append("--quantMode", "GeneCounts")

    return command


def star_alignment_stage(
    job: AlignmentJob,
    genome_dir: PathTypes,
    annotation: PathTypes,
    out_dir: PathTypes,
    threads: int,
    executable: str = "STAR",
) -> Stage:
    """Aligns the reads of a job using STAR, writing a
    coordinate sorted BAM and per-gene read counts with the prefix
    '{out_dir}/{name}_autoSTAR_'. Temporary folders written by STAR are removed
    once the alignment has completed."""
    prefix = job.output_prefix(fspath(out_dir))

    return Stage(
        name="STAR",
        description=f"Aligning {job.name}",
        commands=star_command(
            job=job,
            genome_dir=genome_dir,
            annotation=annotation,
            prefix=prefix,
            threads=threads,
            executable=executable,
        ),
        intermediate=[prefix + "STARtmp", prefix + "STARgenome"],
    )
