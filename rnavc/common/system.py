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

import logging
import os
import subprocess
import sys

import setproctitle

_GIB = 1024**3


def set_procname(name: str = "rnavc") -> None:
    """Attempts to set the current process-name to the given name."""
    setproctitle.setproctitle(name)


class HostInfo:
    """Queries the capabilities of the current host."""

    def cpu_count(self) -> int:
        return os.cpu_count() or 1

    def total_memory(self) -> int:
        """Returns the total amount of system memory in bytes, or 0 if unknown."""
        try:
            return os.sysconf("SC_PAGE_SIZE") * os.sysconf("SC_PHYS_PAGES")
        except (AttributeError, ValueError, OSError):
            return 0


class LinuxHostInfo(HostInfo):
    def __init__(self, meminfo: str = "/proc/meminfo") -> None:
        self._meminfo = meminfo

    def cpu_count(self) -> int:
        # Equivalent to `nproc`, which respects the CPU affinity of the process
        return len(os.sched_getaffinity(0))

    def total_memory(self) -> int:
        with open(self._meminfo) as handle:
            for line in handle:
                key, _, value = line.partition(":")
                if key == "MemTotal":
                    amount, *unit = value.split()
                    if unit and unit[0].lower() != "kb":
                        raise ValueError(f"unexpected MemTotal unit in {line!r}")

                    return int(amount) * 1024

        return super().total_memory()


class DarwinHostInfo(HostInfo):
    def total_memory(self) -> int:
        output = subprocess.check_output(["sysctl", "-n", "hw.memsize"])

        return int(output.strip())


def get_host_info(platform: str = sys.platform) -> HostInfo:
    if platform.startswith("linux"):
        return LinuxHostInfo()
    elif platform == "darwin":
        return DarwinHostInfo()

    return HostInfo()


class Resources:
    threads: int
    memory_gib: int

    def __init__(self, threads: int, memory_gib: int) -> None:
        self.threads = threads
        self.memory_gib = memory_gib

    @property
    def java_options(self) -> list[str]:
        """JVM options limiting heap size and the number of GC threads."""
        return [f"-Xmx{self.memory_gib}G", f"-XX:ParallelGCThreads={self.threads}"]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Resources):
            return (self.threads, self.memory_gib) == (other.threads, other.memory_gib)

        return NotImplemented

    def __repr__(self) -> str:
        return f"Resources(threads={self.threads}, memory_gib={self.memory_gib})"


class ResourceEstimator:
    """Determines the number of threads and the amount of memory (in GiB) made
    available to the tools run by a pipeline.

    Values not supplied by the user are derived from the host: all available cores
    (optionally keeping one core free for the rest of the system), and a fraction
    of the total memory, rounded down to whole GiB before and after scaling.
    """

    def __init__(
        self,
        host: HostInfo | None = None,
        *,
        reserve_core: bool = False,
        memory_percent: int = 90,
    ) -> None:
        if not 0 < memory_percent <= 100:
            raise ValueError(f"memory_percent must be in 1..100, not {memory_percent}")

        self.host = get_host_info() if host is None else host
        self.reserve_core = reserve_core
        self.memory_percent = memory_percent

    def estimate(
        self,
        threads: int | None = None,
        memory_gib: int | None = None,
    ) -> Resources:
        log = logging.getLogger(__name__)

        if threads is None:
            threads = self.host.cpu_count()
            if self.reserve_core:
                threads -= 1

            log.debug("Using %i auto-detected threads", threads)
            threads = max(1, threads)
        elif threads < 1:
            raise ValueError(f"threads must be a positive integer, not {threads}")

        if memory_gib is None:
            total_gib = self.host.total_memory() // _GIB
            memory_gib = (total_gib * self.memory_percent) // 100

            log.debug(
                "Using %i%% of %iG of auto-detected memory",
                self.memory_percent,
                total_gib,
            )
            memory_gib = max(1, memory_gib)
        elif memory_gib < 1:
            raise ValueError(f"memory must be a positive integer, not {memory_gib}")

        return Resources(threads=threads, memory_gib=memory_gib)
