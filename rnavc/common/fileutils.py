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

import errno
import os
import shutil
from os import fspath
from typing import Any, Callable, Iterable, Iterator, List, Union

from .utilities import safe_coerce_to_tuple

PathTypes = Union[str, "os.PathLike[str]"]


def strip_extensions(filename: PathTypes, extensions: Iterable[str]) -> str:
    """Returns the basename of filename, with the first matching extension removed.
    Extensions are tried in order, so longer extensions (e.g. '.fastq.gz') must be
    listed before their suffixes (e.g. '.gz')."""
    basename = os.path.basename(fspath(filename))
    for extension in extensions:
        if basename.endswith(extension) and len(basename) > len(extension):
            return basename[: -len(extension)]

    return basename


def missing_files(filenames: Iterable[PathTypes]) -> List[str]:
    """Given a list of filenames, returns a list of those that
    does not exist. Note that this function does not differentiate
    between files and folders."""
    missing: List[str] = []
    for filename in safe_coerce_to_tuple(filenames):
        filename = fspath(filename)
        if not os.path.exists(filename):
            missing.append(filename)
    return missing


def missing_executables(filenames: Iterable[PathTypes]) -> List[str]:
    missing: List[str] = []
    for filename in filenames:
        value = fspath(filename)
        if not shutil.which(value):
            missing.append(value)
    return missing


def make_dirs(directory: PathTypes, mode: int = 0o777) -> bool:
    """Wrapper around os.makedirs that does not throw an exception if the
    directory already exists, which may happen if another process (e.g. a run
    for a different sample) created the directory during the function call.

    Returns true if a new directory was created, false if it
    already existed. Other errors result in exceptions."""
    if not directory:
        raise ValueError("Empty directory passed to make_dirs()")

    try:
        os.makedirs(fspath(directory), mode=mode)
        return True
    except OSError as error:
        if error.errno != errno.EEXIST:
            raise
        return False


def try_remove(filename: PathTypes) -> bool:
    """Tries to remove a file. Unlike os.remove, the function does not
    raise an exception if the file does not exist, but does raise
    exceptions on other errors. The return value reflects whether or
    not the file was actually removed."""
    return _try_rm_wrapper(os.remove, filename)


def try_rmtree(filename: PathTypes) -> bool:
    """Tries to remove a dir-tree. Unlike shutil.rmtree, the function does not raise
    an exception if the file does not exist, but does raise exceptions on other
    errors. The return value reflects whether or not the file was actually
    removed."""
    return _try_rm_wrapper(shutil.rmtree, filename)


def try_remove_path(filename: PathTypes) -> bool:
    """Removes a file or a directory tree, depending on what 'filename' is."""
    if os.path.isdir(fspath(filename)) and not os.path.islink(fspath(filename)):
        return try_rmtree(filename)

    return try_remove(filename)


def empty_files(root: PathTypes) -> Iterator[str]:
    """Yields the paths of all empty regular files below root."""
    for dirpath, _, filenames in os.walk(fspath(root)):
        for filename in sorted(filenames):
            filepath = os.path.join(dirpath, filename)
            if os.path.isfile(filepath) and not os.path.islink(filepath):
                if os.path.getsize(filepath) == 0:
                    yield filepath


def _try_rm_wrapper(func: Callable[[Any], Any], fpath: PathTypes) -> bool:
    """Takes a function (e.g. os.remove / os.rmdir), and attempts to remove a
    path; returns true if that path was successfully remove, and false if it did
    not exist."""
    try:
        func(fspath(fpath))
        return True
    except FileNotFoundError:
        return False
