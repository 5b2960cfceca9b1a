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
"""Alignment of RNA-seq reads using STAR.

FASTQ files (optionally gzip compressed) found in INPUT_DIR are aligned one sample
at a time. Files with 'R1' in their names are aligned together with the matching
'R2' file, and all other files are aligned as single-end reads. Samples with
output in OUT are skipped, and the per-gene read counts of all samples are merged
into '{OUT}/geneCounts.txt'.
"""

from __future__ import annotations

import logging
import os
import sys

import rnavc.common.logging
from rnavc.common.argparse import ArgumentParser, Namespace, config_files
from rnavc.common.fileutils import make_dirs, missing_executables
from rnavc.common.system import ResourceEstimator
from rnavc.context import SampleContext
from rnavc.counts import CountsError, find_count_files, merge_counts
from rnavc.fastq import group_inputs, read_sample_list
from rnavc.pipeline import PipelineRunner
from rnavc.pipelines.common import optional_positive_int, require_dir, require_file
from rnavc.stage import ArgumentError, PipelineError
from rnavc.stages.star import star_alignment_stage

GENE_COUNTS_FILENAME = "geneCounts.txt"


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="rnavc align",
        description=__doc__,
        default_config_files=config_files("align"),
    )

    parser.add_argument(
        "input_dir",
        nargs="?",
        metavar="INPUT_DIR",
        help="Folder containing FASTQ files; sub-folders are searched too",
    )
    parser.add_argument(
        "genome_dir",
        nargs="?",
        metavar="GENOME_DIR",
        help="STAR genome index folder",
    )
    parser.add_argument(
        "annotation",
        nargs="?",
        metavar="ANNOTATION",
        help="Gene annotation in GTF format",
    )
    parser.add_argument(
        "output",
        nargs="?",
        metavar="OUT",
        help="Output folder; defaults to INPUT_DIR with the suffix '_autoSTAR'",
    )
    parser.add_argument(
        "threads",
        nargs="?",
        metavar="THREADS",
        help="Number of threads used by STAR; defaults to all available cores",
    )
    parser.add_argument(
        "sample_list",
        nargs="?",
        metavar="SAMPLE_LIST",
        help="File containing regular expressions, one per line; only FASTQ files "
        "with paths matching one or more of these expressions are aligned",
    )

    parser.add_argument("--star", default="STAR", help="STAR executable")

    rnavc.common.logging.add_argument_group(parser)

    return parser


def default_output(input_dir: str) -> str:
    return os.path.normpath(input_dir) + "_autoSTAR"


def run(args: Namespace) -> int:
    log = logging.getLogger(__name__)

    input_dir = require_dir(args.input_dir, "input directory")
    genome_dir = require_dir(args.genome_dir, "reference directory")
    annotation = require_file(args.annotation, "annotation file")
    threads = optional_positive_int(args.threads, "number of threads")

    samples = None
    if args.sample_list:
        samples = read_sample_list(require_file(args.sample_list, "sample list"))

    if missing_executables([args.star]):
        raise ArgumentError(
            f"STAR could not be found ({args.star!r}); please install STAR and "
            "make sure that it is in your PATH"
        )

    if threads is None:
        threads = ResourceEstimator().estimate().threads
        log.info("Using all %i available threads", threads)

    output = args.output
    if not output:
        output = default_output(input_dir)
        log.info("No output directory provided; using %r", output)

    make_dirs(output)
    log_dir = os.path.join(output, "logs")
    make_dirs(log_dir)

    jobs = group_inputs(input_dir, samples=samples, out_dir=output)
    log.info("Aligning %i sample(s) using %i thread(s)", len(jobs), threads)

    runner = PipelineRunner()
    failed: list[str] = []
    for job in jobs:
        context = SampleContext(
            job.name,
            output,
            log_path=os.path.join(log_dir, job.name + ".log"),
            err_path=os.path.join(log_dir, job.name + ".err"),
        )

        stage = star_alignment_stage(
            job=job,
            genome_dir=genome_dir,
            annotation=annotation,
            out_dir=output,
            threads=threads,
            executable=args.star,
        )

        log.info("Processing %s", job.name)
        try:
            runner.run(
                [stage],
                context,
                parameters=[
                    ("Allocated threads", threads),
                    ("Input files", " ".join(job.files)),
                    ("Genome directory", genome_dir),
                    ("Annotation", annotation),
                    ("STAR executable", args.star),
                ],
            )
        except PipelineError as error:
            log.error("Error while aligning %r: %s", job.name, error)
            failed.append(job.name)

    filenames = find_count_files(output)
    if filenames:
        destination = os.path.join(output, GENE_COUNTS_FILENAME)
        log.info("Merging %i gene count tables into %r", len(filenames), destination)

        matrix = merge_counts(filenames)
        with open(destination, "w") as handle:
            matrix.write(handle)

    if failed:
        log.error("Alignment failed for %i sample(s):", len(failed))
        for name in failed:
            log.error("  - %s", name)
        return 1

    log.info("All done")
    return 0


def main(argv: list[str]) -> int:
    parser = build_parser()
    if not argv:
        parser.print_usage(sys.stderr)
        return 1

    args = parser.parse_args(argv)
    rnavc.common.logging.initialize(log_level=args.log_level, log_file=args.log_file)

    try:
        return run(args)
    except (PipelineError, CountsError) as error:
        logging.getLogger(__name__).error("%s", error)
        return 1
    except OSError as error:
        logging.getLogger(__name__).error("Error while aligning reads: %s", error)
        return 1
