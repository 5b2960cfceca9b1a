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

import importlib
import logging
import sys
import textwrap

import rnavc
import rnavc.common.logging
import rnavc.common.system

# List of tuples of commands: (name, module, help string). If module is None, then
# the entry is treated as a header.
_RNAVC_COMMANDS = (
    ("Pipelines", None, None),
    (
        "call",
        "rnavc.pipelines.call",
        "Resumable variant calling for RNA-seq BAM files using GATK.",
    ),
    (
        "align",
        "rnavc.pipelines.align",
        "Alignment of (paired) FASTQ files with STAR, with per-gene read counts.",
    ),
    ("Tools", None, None),
    (
        "merge_counts",
        "rnavc.pipelines.merge_counts",
        "Merges STAR gene count tables into a single table.",
    ),
)


def _print_help() -> None:
    """Prints description of commands."""
    template = "    rnavc {}{}-- {}\n"
    max_len = max(len(key) for (key, module, _) in _RNAVC_COMMANDS if module)
    help_len = 80 - len(template.format(" " * max_len, " ", ""))
    help_padding = (80 - help_len) * " "

    sys.stderr.write("rnavc - resumable RNA-seq alignment and variant calling.\n")
    sys.stderr.write(f"Version: {rnavc.__version__}\n\n")
    sys.stderr.write("Usage: rnavc <command> [options]\n")
    for key, module, help_str in _RNAVC_COMMANDS:
        if module is None:
            sys.stderr.write(f"\n{key}:\n")
        elif help_str:
            lines = textwrap.wrap(help_str, help_len)
            padding = (max_len - len(key) + 2) * " "
            sys.stderr.write(template.format(key, padding, lines[0]))

            for line in lines[1:]:
                sys.stderr.write(f"{help_padding}{line}\n")


def main(argv: list[str]) -> int:
    # Change process name from 'python' to 'rnavc'
    rnavc.common.system.set_procname("rnavc")
    # Setup basic logging to STDERR
    rnavc.common.logging.initialize_console_logging()

    if not argv:
        _print_help()
        return 1
    elif argv[0] in ("help", "-h", "--help"):
        _print_help()
        return 0

    command = argv[0]
    for cmd_name, cmd_module, _ in _RNAVC_COMMANDS:
        if cmd_module and (command == cmd_name):
            module = importlib.import_module(cmd_module)
            return module.main(argv[1:])

    log = logging.getLogger(__name__)
    log.error("Unknown command %r", command)
    return 1


def entry_point() -> int:
    return main(sys.argv[1:])


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
