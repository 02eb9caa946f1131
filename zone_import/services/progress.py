from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Geocoding progress display with tqdm (TTY only).

GeocodeProgress is a ready-made ``on_progress(current, total, address)``
callback for the batch geocoder. In non-TTY environments (CI, redirected
output) no bar is drawn so logs are not littered with control sequences.
"""

__all__ = [
    "GeocodeProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class GeocodeProgress:
    """Progress bar fed by the batch geocoder's callback.

    The bar is created lazily on the first callback because the number of
    addresses is only known once geocoding starts.
    """

    def __init__(self, *, description: str = "Geocoding") -> None:
        self.description = description
        self.current = 0
        self.total = 0
        self.last_address: str | None = None
        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None = None

    def __call__(self, current: int, total: int, address: str) -> None:
        self.current = current
        self.total = total
        self.last_address = address
        if not self.enabled:
            return
        if self.pbar is None:
            self.pbar = tqdm(
                total=total,
                desc=self.description,
                unit="addr",
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        self.pbar.set_postfix_str(address[:30], refresh=False)
        # the callback fires before the request, so the bar trails by one
        self.pbar.n = current - 1
        self.pbar.refresh()

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.n = self.current
            self.pbar.refresh()
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> GeocodeProgress:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
