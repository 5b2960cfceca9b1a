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

import glob
import os
from typing import IO, Iterable

from rnavc.common.fileutils import PathTypes, fspath

# STAR 'ReadsPerGene.out.tab' files start with the rows N_unmapped, N_multimapping,
# N_noFeature, and N_ambiguous, which are not genes
STAR_SUMMARY_ROWS = 4

COUNTS_GLOB = "*ReadsPerGene.out.tab"


class CountsError(RuntimeError):
    pass


def sample_name(filename: PathTypes) -> str:
    """Returns the sample name for a counts file, i.e. the part of the basename
    before the first '_'."""
    return os.path.basename(fspath(filename)).split("_", 1)[0]


def find_count_files(root: PathTypes) -> list[str]:
    """Returns the sorted list of STAR gene-count files in 'root' (not recursive)."""
    return sorted(glob.glob(os.path.join(glob.escape(fspath(root)), COUNTS_GLOB)))


def read_counts(
    filename: PathTypes,
    skip_rows: int = STAR_SUMMARY_ROWS,
) -> dict[str, int]:
    """Reads the first two columns of a tab-separated table of gene counts."""
    filename = fspath(filename)

    counts: dict[str, int] = {}
    with open(filename) as handle:
        for linenum, line in enumerate(handle, start=1):
            if linenum <= skip_rows or not line.strip():
                continue

            fields = line.rstrip("\r\n").split("\t")
            if len(fields) < 2:
                raise CountsError(f"Expected 2+ columns at {filename}:{linenum}")

            gene, value = fields[0], fields[1]
            if gene in counts:
                raise CountsError(f"Duplicate gene {gene!r} at {filename}:{linenum}")

            try:
                counts[gene] = int(value)
            except ValueError:
                raise CountsError(
                    f"Invalid count {value!r} at {filename}:{linenum}"
                ) from None

    return counts


class CountMatrix:
    """Table of gene counts, with one column per sample and one row per gene. Genes
    are sorted, and values are None for genes not found in a sample."""

    samples: list[str]
    genes: list[str]
    counts: dict[str, list[int | None]]

    def __init__(
        self,
        samples: Iterable[str],
        tables: Iterable[dict[str, int]],
    ) -> None:
        self.samples = list(samples)
        tables = list(tables)
        if len(self.samples) != len(tables):
            raise ValueError("number of samples and count tables differ")

        self.genes = sorted(set(gene for table in tables for gene in table))
        self.counts = {
            gene: [table.get(gene) for table in tables] for gene in self.genes
        }

    def write(self, handle: IO[str], missing: str = "NA") -> None:
        handle.write("\t".join(["GeneID", *self.samples]))
        handle.write("\n")

        for gene in self.genes:
            row = [gene]
            for value in self.counts[gene]:
                row.append(missing if value is None else str(value))

            handle.write("\t".join(row))
            handle.write("\n")

    def __len__(self) -> int:
        return len(self.genes)

    def __getitem__(self, gene: str) -> list[int | None]:
        return self.counts[gene]


def merge_counts(
    files: Iterable[PathTypes],
    skip_rows: int = STAR_SUMMARY_ROWS,
) -> CountMatrix:
    """Merges gene-count tables, naming each column after 'sample_name'."""
    files = [fspath(filename) for filename in files]

    return CountMatrix(
        samples=[sample_name(filename) for filename in files],
        tables=[read_counts(filename, skip_rows) for filename in files],
    )
