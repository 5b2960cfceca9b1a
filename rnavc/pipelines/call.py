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
"""RNA-seq variant calling following the GATK best practices.

Duplicates are marked, reads spanning splice junctions are split, base qualities
are recalibrated, and variants are called using HaplotypeCaller and hard-filtered.
Results are written to '{OUT}/{sample}/', where the sample name is the name of
the BAM file up to the first '.'. Re-running the command on the same BAM file
resumes an interrupted run and does nothing if the run has already completed.
"""

from __future__ import annotations

import logging
import os
import sys

import rnavc.common.logging
from rnavc.common.argparse import ArgumentParser, Namespace, config_files
from rnavc.common.system import ResourceEstimator, Resources
from rnavc.context import SampleContext
from rnavc.pipeline import PipelineRunner
from rnavc.pipelines.common import optional_positive_int, require_file
from rnavc.stage import ArgumentError, PipelineError
from rnavc.stages.gatk import build_variant_calling_stages
from rnavc.stages.samtools import has_read_groups


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="rnavc call",
        description=__doc__,
        default_config_files=config_files("call"),
    )

    parser.add_argument("reference", nargs="?", metavar="REF", help="Reference FASTA")
    parser.add_argument("bam", nargs="?", metavar="BAM", help="Aligned RNA-seq reads")
    parser.add_argument(
        "known_sites",
        nargs="?",
        metavar="KNOWN",
        help="VCF containing known variant sites, used for base recalibration",
    )
    parser.add_argument(
        "output",
        nargs="?",
        metavar="OUT",
        help="Root folder for results; defaults to the folder containing BAM",
    )
    parser.add_argument(
        "threads",
        nargs="?",
        metavar="THREADS",
        help="Number of threads used by GATK; defaults to all available cores",
    )
    parser.add_argument(
        "memory",
        nargs="?",
        metavar="MEMORY",
        help="Max memory used by GATK, in GB; defaults to a percentage of the "
        "total system memory (see --memory-percent)",
    )
    parser.add_argument(
        "gatk",
        nargs="?",
        metavar="GATK",
        help="GATK 4.x executable [gatk]",
    )

    group = parser.add_argument_group("Resources")
    group.add_argument(
        "--reserve-core",
        default=False,
        action="store_true",
        help="Leave one core free for other processes when THREADS is not set",
    )
    group.add_argument(
        "--memory-percent",
        type=int,
        default=90,
        help="Percentage of total system memory used when MEMORY is not set",
    )

    group = parser.add_argument_group("Pipeline")
    group.add_argument(
        "--keep-logs",
        default=False,
        action="store_true",
        help="Append to existing .log and .err files instead of replacing them",
    )
    group.add_argument(
        "--keep-intermediate-files",
        default=False,
        action="store_true",
        help="Do not delete intermediate BAMs and tables after a successful run",
    )
    group.add_argument(
        "--remove-empty-files",
        default=True,
        action="store_true",
        help="Delete empty files in the output folder before resuming a run, so "
        "that the truncated output of an interrupted run is not mistaken for "
        "complete output (default)",
    )
    group.add_argument(
        "--no-remove-empty-files",
        dest="remove_empty_files",
        action="store_false",
        help="Keep empty files in the output folder",
    )
    group.add_argument(
        "--samtools",
        default="samtools",
        help="samtools executable, used to check the BAM for read groups",
    )

    rnavc.common.logging.add_argument_group(parser)

    return parser


def estimate_resources(args: Namespace) -> Resources:
    threads = optional_positive_int(args.threads, "number of threads")
    memory = optional_positive_int(args.memory, "amount of memory")

    try:
        estimator = ResourceEstimator(
            reserve_core=args.reserve_core,
            memory_percent=args.memory_percent,
        )

        return estimator.estimate(threads=threads, memory_gib=memory)
    except ValueError as error:
        raise ArgumentError(str(error)) from error


def needs_read_groups(context: SampleContext, bam: str, samtools: str) -> bool:
    """Returns true if read groups must be added to the input BAM. The check is
    skipped if read groups were added by an earlier run, or if the pipeline has
    already completed."""
    if os.path.exists(context.path(".rg.bam")):
        return True
    elif os.path.exists(context.path(".filtered.vcf.idx")):
        return False

    return not has_read_groups(bam, samtools)


def run(args: Namespace) -> int:
    log = logging.getLogger(__name__)

    reference = require_file(args.reference, "reference genome")
    bam = require_file(args.bam, "input BAM file")
    known_sites = require_file(args.known_sites, "known sites")
    resources = estimate_resources(args)
    gatk = args.gatk or "gatk"

    try:
        context = SampleContext.derive(bam, output_root=args.output or None)
    except ValueError as error:
        raise ArgumentError(f"Cannot name sample after BAM file {bam!r}") from error

    log.info("Writing results for %r to %r", context.sample_id, context.output_dir)

    add_read_groups = needs_read_groups(context, bam, args.samtools)
    if add_read_groups:
        log.info("Read groups not found in %r; adding read groups", bam)

    stages = build_variant_calling_stages(
        context=context,
        reference=reference,
        bam=bam,
        known_sites=known_sites,
        resources=resources,
        executable=gatk,
        add_read_groups=add_read_groups,
    )

    runner = PipelineRunner(
        reset_logs=not args.keep_logs,
        remove_empty_files=args.remove_empty_files,
        cleanup=not args.keep_intermediate_files,
    )

    result = runner.run(
        stages,
        context,
        completion_marker=[context.path(".filtered.vcf.idx")],
        parameters=[
            ("Allocated threads", resources.threads),
            ("Allocated memory", f"{resources.memory_gib}G"),
            ("Reference genome", reference),
            ("Input BAM file", bam),
            ("Known sites", known_sites),
            ("Output directory", context.output_dir),
            ("GATK executable", gatk),
        ],
    )

    if result.already_completed:
        log.info("The pipeline was already run for sample %r", context.sample_id)
    elif result.warnings:
        log.warning("Pipeline completed with %i warning(s)", len(result.warnings))

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
    except PipelineError as error:
        logging.getLogger(__name__).error("%s", error)
        return 1
    except OSError as error:
        logging.getLogger(__name__).error("Error while running pipeline: %s", error)
        return 1
