from __future__ import annotations

from pathlib import Path
from typing import Optional

import pandas as pd

from .schema import DTYPES, SessionMeta, TrialRow
from ..results.schema import FAMILIES


DATA_FILE = "trial_results.parquet"
META_FILE = "sessions.parquet"

_META_DTYPES = {
    "session_id": "string",
    "finished_at": pd.DatetimeTZDtype(tz="UTC"),
    "app_version": "string",
    "seed": "Int64",
    "preset": "string",
}


def _empty_df() -> pd.DataFrame:
    return pd.DataFrame({k: pd.Series(dtype=v) for k, v in DTYPES.items()})


def init_store(data_dir: Path) -> None:
    data_dir = Path(data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)
    stats_path = data_dir / DATA_FILE
    meta_path = data_dir / META_FILE
    if not stats_path.exists():
        _empty_df().to_parquet(stats_path, engine="pyarrow", compression="zstd")
    if not meta_path.exists():
        md = pd.DataFrame({k: pd.Series(dtype=v) for k, v in _META_DTYPES.items()})
        md.to_parquet(meta_path, engine="pyarrow", compression="zstd")


def validate_records(records: list[TrialRow]) -> pd.DataFrame:
    if not isinstance(records, list):
        raise TypeError("records must be a list[TrialRow]")
    rows = [r if isinstance(r, TrialRow) else TrialRow.model_validate(r) for r in records]
    df = pd.DataFrame([r.model_dump() for r in rows])
    return _fix_dtypes(df)


def _fix_dtypes(df: pd.DataFrame) -> pd.DataFrame:
    for col, dt in DTYPES.items():
        if col not in df.columns:
            df[col] = pd.NA
        df[col] = df[col].astype(dt)
    return df[list(DTYPES.keys())]


def append_trial_results(df_new: pd.DataFrame, data_path: Path) -> None:
    data_path = Path(data_path)
    f = data_path / DATA_FILE
    if f.exists():
        df_old = pd.read_parquet(f, engine="pyarrow")
    else:
        df_old = _empty_df()
    df_new = _fix_dtypes(df_new.copy())
    if df_old.empty:
        combined = df_new
    else:
        combined = pd.concat([_fix_dtypes(df_old), df_new], ignore_index=True)
    combined = _fix_dtypes(combined).drop_duplicates()
    combined.to_parquet(f, engine="pyarrow", compression="zstd", index=False)


def upsert_session_meta(meta: SessionMeta, data_path: Path) -> None:
    data_path = Path(data_path)
    f = data_path / META_FILE
    row = SessionMeta.model_validate(meta).model_dump()
    df_new = pd.DataFrame([row]).astype(_META_DTYPES)
    if f.exists():
        df = pd.read_parquet(f, engine="pyarrow")
        if "session_id" in df.columns and not df.empty:
            df = df[df["session_id"].astype("string") != row["session_id"]]
        df = df_new if df.empty else pd.concat([df.astype(_META_DTYPES), df_new], ignore_index=True)
    else:
        df = df_new
    df.to_parquet(f, engine="pyarrow", compression="zstd", index=False)


def load_all(data_path: Path) -> pd.DataFrame:
    f = Path(data_path) / DATA_FILE
    if not f.exists():
        return _empty_df().assign(acc=pd.Series(dtype="float32"))
    df = _fix_dtypes(pd.read_parquet(f, engine="pyarrow"))
    total = df["total"].astype("float32").where(df["total"] > 0, other=1.0)
    df["acc"] = (df["correct"].astype("float32") / total).astype("float32")
    return df


def query_trend(df: pd.DataFrame, *, family: str, count: Optional[int] = None) -> pd.DataFrame:
    if family not in FAMILIES:
        raise ValueError(f"Unknown family: {family}")
    mask = df["family"].astype("string") == family
    if count is not None:
        mask &= df["count"].astype(int) == int(count)
    return df[mask].sort_values("finished_at").reset_index(drop=True)


def export_ndjson(df: pd.DataFrame, out_path: Path) -> None:
    Path(out_path).parent.mkdir(parents=True, exist_ok=True)
    df.to_json(out_path, orient="records", lines=True, date_format="iso")
