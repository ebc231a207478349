from __future__ import annotations

"""Asset preloading for the loading phase.

One load task per asset runs on a thread pool. Success and failure both
count as settled; the owner is told about each settle and once more
when the settled count reaches the total.
"""

import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from functools import partial
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence

import requests

from ..app.explain import trace as xtrace


AssetLoader = Callable[[Any], None]


class PathAssetLoader:
    """Resolve `asset.path` under a local root; raise if it is not a readable file."""

    def __init__(self, root: str) -> None:
        self.root = Path(root)

    def __call__(self, asset: Any) -> None:
        p = self.root / str(asset.path)
        if not p.is_file():
            raise FileNotFoundError(str(p))
        with p.open("rb") as f:
            f.read(1)


class HttpAssetLoader:
    """Fetch `asset.url`; non-2xx responses raise."""

    def __init__(self, timeout_s: float = 10, session: Optional[requests.Session] = None) -> None:
        self.timeout_s = timeout_s
        self.session = session or requests.Session()

    def __call__(self, asset: Any) -> None:
        resp = self.session.get(str(asset.url), timeout=self.timeout_s)
        resp.raise_for_status()


def null_loader(asset: Any) -> None:
    return None


def make_loader_from_config(cfg: Dict) -> AssetLoader:
    assets = cfg.get("assets", {})
    kind = assets.get("loader", "path")
    if kind == "path":
        return PathAssetLoader(str(assets.get("root", "./public")))
    if kind == "http":
        return HttpAssetLoader(timeout_s=float(assets.get("timeout_s", 10)))
    if kind == "none":
        return null_loader
    raise ValueError(f"Unsupported asset loader: {kind}")


class AssetPreloader:
    def __init__(
        self,
        loader: AssetLoader,
        executor: Optional[Executor] = None,
        max_workers: int = 8,
        lock: Optional[threading.RLock] = None,
    ) -> None:
        self.loader = loader
        self._executor = executor
        self._owns_executor = executor is None
        self._max_workers = max_workers
        self._lock = lock or threading.RLock()
        self._epoch = 0
        self.total = 0
        self.settled = 0
        self.failed = 0

    def _pool(self) -> Executor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="preload")
        return self._executor

    def start(
        self,
        assets: Sequence[Any],
        on_settled: Callable[[Any, bool], None],
        on_all_settled: Callable[[], None],
    ) -> None:
        with self._lock:
            self._epoch += 1
            epoch = self._epoch
            self.total = len(assets)
            self.settled = 0
            self.failed = 0
            if self.total == 0:
                on_all_settled()
                return
            pool = self._pool()
            for asset in assets:
                fut = pool.submit(self.loader, asset)
                fut.add_done_callback(partial(self._done, epoch, asset, on_settled, on_all_settled))

    def _done(
        self,
        epoch: int,
        asset: Any,
        on_settled: Callable[[Any, bool], None],
        on_all_settled: Callable[[], None],
        fut: Future,
    ) -> None:
        ok = (not fut.cancelled()) and fut.exception() is None
        with self._lock:
            if epoch != self._epoch:
                return
            self.settled += 1
            if not ok:
                self.failed += 1
            xtrace("asset_settled", {"ok": ok, "settled": self.settled, "total": self.total})
            on_settled(asset, ok)
            if self.settled == self.total:
                on_all_settled()

    def cancel(self) -> None:
        """Forget in-flight loads; their completions become no-ops."""
        with self._lock:
            self._epoch += 1

    def shutdown(self) -> None:
        self.cancel()
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None
