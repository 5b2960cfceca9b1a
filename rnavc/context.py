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

import os

from rnavc.common.fileutils import PathTypes, fspath, make_dirs


class SampleContext:
    """Identity and output layout of a single sample.

    All files written for a sample are placed in 'output_dir' and named after the
    sample, e.g. '{output_dir}/{sample_id}.raw.vcf'. The output folder is stable
    across invocations, which is what allows a later run to find the output of
    an earlier, interrupted run.
    """

    sample_id: str
    output_dir: str
    log_path: str
    err_path: str

    def __init__(
        self,
        sample_id: str,
        output_dir: PathTypes,
        *,
        log_path: PathTypes | None = None,
        err_path: PathTypes | None = None,
    ) -> None:
        if not sample_id or os.path.sep in sample_id:
            raise ValueError(f"invalid sample name {sample_id!r}")

        self.sample_id = sample_id
        self.output_dir = fspath(output_dir)
        self.log_path = self.path(".log") if log_path is None else fspath(log_path)
        self.err_path = self.path(".err") if err_path is None else fspath(err_path)

    @classmethod
    def derive(
        cls,
        filename: PathTypes,
        output_root: PathTypes | None = None,
    ) -> SampleContext:
        """Derives the sample name from the basename of 'filename', up to the first
        '.', and creates the output folder '{output_root}/{sample}'. If no root is
        specified the folder is placed next to 'filename'.

        Raises ValueError if no sample name can be derived from 'filename', in
        which case no folder is created."""
        filename = fspath(filename)
        sample_id = os.path.basename(filename).split(".", 1)[0]
        if output_root is None:
            output_root = os.path.dirname(filename)

        context = cls(sample_id, os.path.join(fspath(output_root), sample_id))
        make_dirs(context.output_dir)

        return context

    def path(self, suffix: str) -> str:
        """Returns the path of a per-sample file, e.g. path('.raw.vcf')."""
        return os.path.join(self.output_dir, self.sample_id + suffix)

    def __repr__(self) -> str:
        return f"SampleContext({self.sample_id!r}, {self.output_dir!r})"
