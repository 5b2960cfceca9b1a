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
from typing import Iterable


def format_timespan(seconds: float) -> str:
    """Formats a duration as e.g. '12.3s', '1:01s', or '25:01:02s'."""
    if seconds < 60:
        return f"{seconds:.1f}s"

    minutes, rest = divmod(round(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}:{minutes:02}:{rest:02}s"

    return f"{minutes}:{rest:02}s"


def format_timestamp(seconds: float | None = None) -> str:
    """Formats a point in time like the `date` command, e.g.
    'Fri Oct 16 13:37:00 2026'; defaults to the current (local) time."""
    return time.strftime("%a %b %d %H:%M:%S %Y", time.localtime(seconds))


def format_parameters(
    parameters: Iterable[tuple[str, object]],
    min_padding: int = 4,
) -> list[str]:
    """Formats (name, value) pairs as 'name:' followed by the value, with values
    aligned in a column at least 'min_padding' spaces after the longest name."""
    rows = [(f"{name}:", str(value)) for name, value in parameters]
    width = max((len(name) for name, _ in rows), default=0) + min_padding

    return [f"{name.ljust(width)}{value}".rstrip() for name, value in rows]
