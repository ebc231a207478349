from .schema import DTYPES, SessionMeta, TrialRow
from .store import (
    init_store,
    validate_records,
    append_trial_results,
    upsert_session_meta,
    load_all,
    query_trend,
    export_ndjson,
)

__all__ = [
    "DTYPES",
    "SessionMeta",
    "TrialRow",
    "init_store",
    "validate_records",
    "append_trial_results",
    "upsert_session_meta",
    "load_all",
    "query_trend",
    "export_ndjson",
]
