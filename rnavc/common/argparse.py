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
from typing import Any, Sequence

import configargparse

import rnavc

__all__ = [
    "ArgumentDefaultsHelpFormatter",
    "ArgumentParser",
    "Namespace",
    "config_files",
]

Namespace = configargparse.Namespace


def config_files(name: str) -> list[str]:
    """Returns the standard list of config files for a rnavc command:
    /etc/rnavc/{name}.ini and ~/.rnavc/{name}.ini, the latter taking precedence."""
    filename = f"{name}.ini"
    return [
        os.path.join("/etc", "rnavc", filename),
        os.path.join("~", ".rnavc", filename),
    ]


class ArgumentDefaultsHelpFormatter(configargparse.ArgumentDefaultsHelpFormatter):
    """Modified ArgumentDefaultsHelpFormatter that excludes several constants (True,
    False, None) and uses a custom presentation of the default value.
    """

    def __init__(
        self,
        prog: str,
        *,
        indent_increment: int = 2,
        max_help_position: int = 24,
        width: int | None = 79,
    ) -> None:
        super().__init__(
            prog=prog,
            indent_increment=indent_increment,
            max_help_position=max_help_position,
            width=width,
        )

    def _get_help_string(self, action: configargparse.Action) -> str | None:
        # The following values look silly as part of a help string
        if isinstance(action.default, bool) or action.default in [None, [], ()]:
            return action.help

        # The subclass does not allow modification to the defaults string, so instead
        # we access the logic by simply checking if the result was modified.
        if super()._get_help_string(action) == action.help:
            return action.help

        assert action.help is not None
        return action.help + " [%(default)s]"


class ArgumentParser(configargparse.ArgumentParser):
    """ArgumentParser reading defaults from per-command config files, in which keys
    may be written with underscores instead of dashes (e.g. 'memory_percent')."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("formatter_class", ArgumentDefaultsHelpFormatter)
        # Workaround for configargparse not considering abbreviations when
        # applying options from config files, resulting in config file options
        # overriding abbreviated options supplied on the command-line.
        kwargs.setdefault("allow_abbrev", False)

        super().__init__(*args, **kwargs)

        self.add_argument(
            "-v",
            "--version",
            action="version",
            version="%(prog)s v" + rnavc.__version__,
        )

    def get_possible_config_keys(self, *args: Any, **kwargs: Any) -> list[str]:
        keys = super().get_possible_config_keys(*args, **kwargs)
        for key in keys:
            key = key.strip("-").replace("-", "_")
            if key not in keys:
                keys.append(key)

        return keys

    def convert_item_to_command_line_arg(
        self,
        action: configargparse.Action,
        key: str,
        value: Any,
    ) -> Sequence[str]:
        # Ignore empty options in config files
        if action and value in ("", "="):
            return []

        return super().convert_item_to_command_line_arg(action, key, value)
