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
"""Merges STAR gene count tables ('*ReadsPerGene.out.tab') into a single table.

Columns are named after the part of each filename before the first '_', and
genes not found in a table are reported using the --missing-value.
"""

from __future__ import annotations

import logging
import os
import sys

import rnavc.common.logging
from rnavc.common.argparse import ArgumentParser, Namespace, config_files
from rnavc.common.fileutils import make_dirs
from rnavc.counts import COUNTS_GLOB, CountsError, find_count_files, merge_counts
from rnavc.pipelines.common import require_dir
from rnavc.stage import ArgumentError, PipelineError


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="rnavc merge_counts",
        description=__doc__,
        default_config_files=config_files("merge_counts"),
    )

    parser.add_argument(
        "folder",
        nargs="?",
        metavar="FOLDER",
        help="Folder containing STAR gene count tables",
    )
    parser.add_argument(
        "--output",
        metavar="FILE",
        help="Write merged table to this file; defaults to "
        "'{FOLDER}/merged/merged_counts.tab'",
    )
    parser.add_argument(
        "--missing-value",
        metavar="VALUE",
        default="NA",
        help="Value written for genes not found in a table",
    )

    rnavc.common.logging.add_argument_group(parser)

    return parser


def run(args: Namespace) -> int:
    log = logging.getLogger(__name__)

    folder = require_dir(args.folder, "input folder")
    filenames = find_count_files(folder)
    if not filenames:
        raise ArgumentError(f"No {COUNTS_GLOB!r} files found in {folder!r}")

    output = args.output
    if output is None:
        output = os.path.join(folder, "merged", "merged_counts.tab")

    dirname = os.path.dirname(output)
    if dirname:
        make_dirs(dirname)

    log.info("Merging %i gene count tables", len(filenames))
    matrix = merge_counts(filenames)

    with open(output, "w") as handle:
        matrix.write(handle, missing=args.missing_value)

    log.info("Wrote counts for %i genes to %r", len(matrix), output)

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
    except (PipelineError, CountsError, OSError) as error:
        logging.getLogger(__name__).error("%s", error)
        return 1
