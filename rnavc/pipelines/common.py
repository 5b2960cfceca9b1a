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

from rnavc.stage import ArgumentError


def require_file(value: str | None, description: str) -> str:
    """Returns 'value' if it names an existing file, raising ArgumentError
    otherwise."""
    if not value:
        raise ArgumentError(f"Please provide the path to the {description}")
    elif not os.path.isfile(value):
        raise ArgumentError(f"{description.capitalize()} not found: {value!r}")

    return value


def require_dir(value: str | None, description: str) -> str:
    if not value:
        raise ArgumentError(f"Please provide the path to the {description}")
    elif not os.path.isdir(value):
        raise ArgumentError(f"{description.capitalize()} does not exist: {value!r}")

    return value


def optional_positive_int(value: str | None, description: str) -> int | None:
    """Converts an optional command-line value to a positive integer."""
    if value is None or value == "":
        return None

    try:
        result = int(value)
    except ValueError:
        result = 0

    if result < 1:
        raise ArgumentError(f"The {description} must be a positive integer: {value!r}")

    return result
