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

import time

import pytest

from rnavc.common.text import format_parameters, format_timespan, format_timestamp

###############################################################################
###############################################################################
# Tests for 'format_timespan'


@pytest.mark.parametrize(
    "seconds, expected",
    (
        (0, "0.0s"),
        (12.34, "12.3s"),
        (61, "1:01s"),
        (3599, "59:59s"),
        (3600, "1:00:00s"),
        (3600 * 25 + 62, "25:01:02s"),
    ),
)
def test_format_timespan(seconds: float, expected: str) -> None:
    assert format_timespan(seconds) == expected


###############################################################################
###############################################################################
# Tests for 'format_timestamp'


def test_format_timestamp() -> None:
    seconds = time.mktime((2023, 10, 6, 13, 37, 0, 0, 0, -1))

    assert format_timestamp(seconds) == "Fri Oct 06 13:37:00 2023"


def test_format_timestamp__now() -> None:
    assert format_timestamp().endswith(time.strftime("%Y"))


###############################################################################
###############################################################################
# Tests for 'format_parameters'


def test_format_parameters__empty() -> None:
    assert format_parameters(()) == []


def test_format_parameters() -> None:
    parameters = [("Allocated threads", 8), ("Known sites", "/data/known.vcf")]

    assert format_parameters(parameters) == [
        "Allocated threads:    8",
        "Known sites:          /data/known.vcf",
    ]


def test_format_parameters__padding() -> None:
    assert format_parameters([("A", 1), ("BC", "")], min_padding=1) == [
        "A:  1",
        "BC:",
    ]
