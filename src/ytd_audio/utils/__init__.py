"""Shared utilities — argument quoting and splitting.

Rules
-----
* No business logic.
* No I/O.
* Importable by any layer.
"""

from ytd_audio.utils.arguments import join_arguments, quote, split_arguments

__all__: list[str] = ["join_arguments", "quote", "split_arguments"]
