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

from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from rnavc.common.system import (
    DarwinHostInfo,
    HostInfo,
    LinuxHostInfo,
    ResourceEstimator,
    Resources,
    get_host_info,
)

_GIB = 1024**3


class FakeHostInfo(HostInfo):
    def __init__(self, cpus: int, memory: int) -> None:
        self._cpus = cpus
        self._memory = memory

    def cpu_count(self) -> int:
        return self._cpus

    def total_memory(self) -> int:
        return self._memory


########################################################################################
# ResourceEstimator


def test_estimate__all_cores() -> None:
    estimator = ResourceEstimator(FakeHostInfo(8, 16 * _GIB))

    assert estimator.estimate().threads == 8


def test_estimate__reserve_core() -> None:
    estimator = ResourceEstimator(FakeHostInfo(8, 16 * _GIB), reserve_core=True)

    assert estimator.estimate().threads == 7


def test_estimate__reserve_core__single_core() -> None:
    estimator = ResourceEstimator(FakeHostInfo(1, 16 * _GIB), reserve_core=True)

    assert estimator.estimate().threads == 1


@pytest.mark.parametrize(
    "percent, expected",
    (
        (90, 14),
        (85, 13),
        (100, 16),
    ),
)
def test_estimate__memory_percent(percent: int, expected: int) -> None:
    estimator = ResourceEstimator(FakeHostInfo(8, 16 * _GIB), memory_percent=percent)

    assert estimator.estimate().memory_gib == expected


def test_estimate__memory_is_floored_to_gib_before_scaling() -> None:
    # 16.9 GiB is treated as 16 GiB
    estimator = ResourceEstimator(FakeHostInfo(8, 16 * _GIB + 900 * 1024**2))

    assert estimator.estimate().memory_gib == 14


def test_estimate__minimum_memory() -> None:
    estimator = ResourceEstimator(FakeHostInfo(8, 512 * 1024**2))

    assert estimator.estimate().memory_gib == 1


def test_estimate__unknown_memory() -> None:
    estimator = ResourceEstimator(FakeHostInfo(8, 0))

    assert estimator.estimate().memory_gib == 1


def test_estimate__explicit_values() -> None:
    estimator = ResourceEstimator(FakeHostInfo(8, 16 * _GIB), reserve_core=True)

    assert estimator.estimate(threads=32, memory_gib=64) == Resources(32, 64)


@pytest.mark.parametrize("value", (0, -1))
def test_estimate__invalid_threads(value: int) -> None:
    estimator = ResourceEstimator(FakeHostInfo(8, 16 * _GIB))

    with pytest.raises(ValueError, match="threads"):
        estimator.estimate(threads=value)


@pytest.mark.parametrize("value", (0, -1))
def test_estimate__invalid_memory(value: int) -> None:
    estimator = ResourceEstimator(FakeHostInfo(8, 16 * _GIB))

    with pytest.raises(ValueError, match="memory"):
        estimator.estimate(memory_gib=value)


@pytest.mark.parametrize("value", (0, 101, -5))
def test_estimator__invalid_memory_percent(value: int) -> None:
    with pytest.raises(ValueError):
        ResourceEstimator(FakeHostInfo(8, 16 * _GIB), memory_percent=value)


def test_estimator__default_host() -> None:
    resources = ResourceEstimator().estimate()

    assert resources.threads >= 1
    assert resources.memory_gib >= 1


########################################################################################
# Resources


def test_resources__java_options() -> None:
    assert Resources(threads=4, memory_gib=12).java_options == [
        "-Xmx12G",
        "-XX:ParallelGCThreads=4",
    ]


def test_resources__repr() -> None:
    assert repr(Resources(4, 12)) == "Resources(threads=4, memory_gib=12)"


########################################################################################
# HostInfo implementations


def test_linux_host_info__total_memory(tmp_path: Path) -> None:
    meminfo = tmp_path / "meminfo"
    meminfo.write_text(
        "MemTotal:       16384000 kB\n"
        "MemFree:         1024000 kB\n"
        "MemAvailable:    8192000 kB\n"
    )

    assert LinuxHostInfo(str(meminfo)).total_memory() == 16384000 * 1024


def test_linux_host_info__unexpected_unit(tmp_path: Path) -> None:
    meminfo = tmp_path / "meminfo"
    meminfo.write_text("MemTotal:       16384000 MB\n")

    with pytest.raises(ValueError):
        LinuxHostInfo(str(meminfo)).total_memory()


def test_linux_host_info__cpu_count() -> None:
    with patch("os.sched_getaffinity", create=True, return_value={0, 1, 2}):
        assert LinuxHostInfo().cpu_count() == 3


def test_darwin_host_info__total_memory() -> None:
    mock = Mock(return_value=b"17179869184\n")
    with patch("subprocess.check_output", mock):
        assert DarwinHostInfo().total_memory() == 16 * _GIB

    mock.assert_called_once_with(["sysctl", "-n", "hw.memsize"])


@pytest.mark.parametrize(
    "platform, expected",
    (
        ("linux", LinuxHostInfo),
        ("darwin", DarwinHostInfo),
        ("win32", HostInfo),
    ),
)
def test_get_host_info(platform: str, expected: type) -> None:
    assert type(get_host_info(platform)) is expected
