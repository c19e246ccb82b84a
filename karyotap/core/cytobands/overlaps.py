"""Interval overlap between probes and reference cytobands.

Intervals are 1-based closed and unstranded. Two intervals on the same
chromosome overlap when ``max(start1, start2) <= min(end1, end2)``.

When a probe overlaps several reference intervals (it spans a band
boundary), the first overlapping interval in reference-table order is
reported. Probes with no overlapping interval get an empty result.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Union

import numpy as np
import pandas as pd

QUERY_COLUMNS = ["chromosome", "start", "end", "id"]
RESULT_COLUMNS = ["chromosome", "start", "end", "cytoband"]

CHROMOSOME_PREFIX = "chr"

STANDARD_CHROMOSOMES = tuple([str(i) for i in range(1, 23)] + ["X", "Y"])


def normalize_chromosome(value) -> str:
    """Give standard chromosome names the ``chr`` prefix.

    ``1``-``22``, ``X`` and ``Y`` (as int or str) become ``chr1`` ...
    ``chrY``; any other value passes through unchanged as a string.

    Examples
    --------
    >>> normalize_chromosome(7)
    'chr7'
    >>> normalize_chromosome("chr7")
    'chr7'
    >>> normalize_chromosome("gRNA")
    'gRNA'
    """
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    name = str(value).strip()
    if name in STANDARD_CHROMOSOMES:
        return CHROMOSOME_PREFIX + name
    return name


def strip_chromosome_prefix(value) -> str:
    """Remove a leading ``chr`` prefix, if any."""
    name = str(value).strip()
    if name.startswith(CHROMOSOME_PREFIX):
        return name[len(CHROMOSOME_PREFIX):]
    return name


@dataclass(frozen=True)
class GenomicInterval:
    """A query interval (probe) on a normalized chromosome."""

    chromosome: str
    start: int
    end: int
    id: str

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(
                f"Interval '{self.id}' has start {self.start} > end {self.end}"
            )


@dataclass(frozen=True)
class CytobandRecord:
    """A reference interval tagged with its cytoband."""

    chromosome: str
    start: int
    end: int
    cytoband: str


QueryLike = Union[pd.DataFrame, Iterable[GenomicInterval]]


def _as_query_frame(queries: QueryLike) -> pd.DataFrame:
    if isinstance(queries, pd.DataFrame):
        missing = [c for c in QUERY_COLUMNS if c not in queries.columns]
        if missing:
            raise ValueError(f"Query intervals missing columns: {missing}")
        frame = queries[QUERY_COLUMNS].reset_index(drop=True).copy()
    else:
        frame = pd.DataFrame(
            [(q.chromosome, q.start, q.end, q.id) for q in queries],
            columns=QUERY_COLUMNS,
        )

    frame["chromosome"] = frame["chromosome"].astype(str)
    frame["id"] = frame["id"].astype(str)
    frame["start"] = frame["start"].astype("int64")
    frame["end"] = frame["end"].astype("int64")

    bad = frame["start"] > frame["end"]
    if bad.any():
        raise ValueError(
            f"Query intervals with start > end: {frame.loc[bad, 'id'].tolist()}"
        )
    if frame["id"].duplicated().any():
        dups = frame.loc[frame["id"].duplicated(), "id"].unique().tolist()
        raise ValueError(f"Duplicate query IDs: {dups}")
    return frame


def find_overlaps(queries: QueryLike, reference: pd.DataFrame) -> pd.DataFrame:
    """Find the best-matching reference interval for each query.

    Parameters
    ----------
    queries : pd.DataFrame or iterable of GenomicInterval
        Query intervals with ``chromosome, start, end, id``; chromosomes
        must already be normalized to the reference naming
    reference : pd.DataFrame
        Reference intervals with ``chromosome, start, end, cytoband``

    Returns
    -------
    pd.DataFrame
        Indexed by query ID in query order, columns ``chromosome, start,
        end, cytoband`` of the matched reference interval. Queries without
        an overlap have None/NA in every column.

    Raises
    ------
    ValueError
        If required columns are missing, a query has start > end, or
        query IDs are not unique
    """
    query = _as_query_frame(queries)

    missing = [c for c in RESULT_COLUMNS if c not in reference.columns]
    if missing:
        raise ValueError(f"Reference table missing columns: {missing}")

    n_queries = len(query)
    q_chrom = query["chromosome"].to_numpy()
    q_start = query["start"].to_numpy()
    q_end = query["end"].to_numpy()

    r_chrom = reference["chromosome"].astype(str).to_numpy()
    r_start = reference["start"].to_numpy(dtype=np.int64)
    r_end = reference["end"].to_numpy(dtype=np.int64)

    # Positional index into reference, -1 = no overlap
    hit = np.full(n_queries, -1, dtype=np.int64)

    for chrom in pd.unique(q_chrom):
        q_idx = np.flatnonzero(q_chrom == chrom)
        r_idx = np.flatnonzero(r_chrom == chrom)
        if len(r_idx) == 0:
            continue

        overlap = np.maximum(
            q_start[q_idx, None], r_start[None, r_idx]
        ) <= np.minimum(q_end[q_idx, None], r_end[None, r_idx])

        has_hit = overlap.any(axis=1)
        # argmax returns the first True, i.e. the first in reference order
        first = overlap.argmax(axis=1)
        hit[q_idx[has_hit]] = r_idx[first[has_hit]]

    matched = hit >= 0
    take = np.where(matched, hit, 0)

    chromosome = np.full(n_queries, None, dtype=object)
    cytoband = np.full(n_queries, None, dtype=object)
    start = pd.array(np.zeros(n_queries, dtype=np.int64), dtype="Int64")
    end = pd.array(np.zeros(n_queries, dtype=np.int64), dtype="Int64")

    if matched.any():
        r_band = reference["cytoband"].to_numpy(dtype=object)
        chromosome[matched] = r_chrom[take[matched]]
        cytoband[matched] = r_band[take[matched]]
        start[matched] = r_start[take[matched]]
        end[matched] = r_end[take[matched]]
    start[~matched] = pd.NA
    end[~matched] = pd.NA

    return pd.DataFrame(
        {
            "chromosome": chromosome,
            "start": start,
            "end": end,
            "cytoband": cytoband,
        },
        index=pd.Index(query["id"].to_numpy(), name="id"),
    )


def overlaps_to_records(overlaps: pd.DataFrame) -> Dict[str, Optional[CytobandRecord]]:
    """Convert a :func:`find_overlaps` result to an ID-keyed mapping."""
    records: Dict[str, Optional[CytobandRecord]] = {}
    for query_id, row in overlaps.iterrows():
        if row["cytoband"] is None or pd.isna(row["cytoband"]):
            records[query_id] = None
        else:
            records[query_id] = CytobandRecord(
                chromosome=row["chromosome"],
                start=int(row["start"]),
                end=int(row["end"]),
                cytoband=row["cytoband"],
            )
    return records
