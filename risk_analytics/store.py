"""
Read-only entity store accessor.

The store is the only component that touches ledger state. It takes a
snapshot of the four entity tables when constructed, so every analytics
call made against one store observes the same consistent data no matter
what the owning backend does in the meantime.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterator, Optional

import numpy as np
import pandas as pd

from .errors import InvalidRequestError, NotFoundError
from .schemas import Entity, EntitySpec

logger = logging.getLogger(__name__)


def _clean(value: Any) -> Any:
    """Map pandas nulls to None and numpy scalars to plain Python values."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    if isinstance(value, np.generic):
        return value.item()
    return value


def _snapshot(entity: Entity, frame: Optional[pd.DataFrame]) -> pd.DataFrame:
    spec = entity.spec
    if frame is None:
        frame = pd.DataFrame(columns=list(spec.columns))
    frame = frame.copy()

    for col in spec.columns:
        if col not in frame.columns:
            frame[col] = None

    for col in spec.date_columns:
        frame[col] = pd.to_datetime(frame[col], errors="coerce")
    for col in spec.amount_columns:
        frame[col] = pd.to_numeric(frame[col], errors="coerce").astype("float64")

    extra = [c for c in frame.columns if c not in spec.columns]
    return frame[list(spec.columns) + extra].reset_index(drop=True)


class RecordStream:
    """Lazy, restartable sequence of entity records.

    Each ``iter()`` starts a fresh pass over the snapshot, so a stream can
    be consumed any number of times.
    """

    def __init__(
        self,
        frame: pd.DataFrame,
        spec: EntitySpec,
        where: Optional[Callable[[Any], bool]] = None,
    ) -> None:
        self._frame = frame
        self._spec = spec
        self._where = where

    def _records(self) -> Iterator[tuple[Any, bool]]:
        columns = self._spec.columns
        for values in self._frame[list(columns)].itertuples(index=False, name=None):
            record = self._spec.record_type(
                **{col: _clean(v) for col, v in zip(columns, values)}
            )
            yield record, self._where is None or bool(self._where(record))

    def __iter__(self) -> Iterator[Any]:
        for record, keep in self._records():
            if keep:
                yield record

    def to_frame(self) -> pd.DataFrame:
        """Materialize the matching rows as a DataFrame.

        Rows are selected by position, so duplicated keys the predicate
        rejected stay out.
        """
        if self._where is None:
            return self._frame.copy()
        mask = [keep for _, keep in self._records()]
        return self._frame[pd.Series(mask, index=self._frame.index, dtype=bool)].copy()


class LedgerStore:
    """Immutable snapshot of policyholders, policies, claims and payments."""

    def __init__(
        self,
        policyholders: Optional[pd.DataFrame] = None,
        policies: Optional[pd.DataFrame] = None,
        claims: Optional[pd.DataFrame] = None,
        payments: Optional[pd.DataFrame] = None,
    ) -> None:
        self._frames: dict[Entity, pd.DataFrame] = {
            Entity.POLICYHOLDERS: _snapshot(Entity.POLICYHOLDERS, policyholders),
            Entity.POLICIES: _snapshot(Entity.POLICIES, policies),
            Entity.CLAIMS: _snapshot(Entity.CLAIMS, claims),
            Entity.PAYMENTS: _snapshot(Entity.PAYMENTS, payments),
        }
        logger.debug("Ledger snapshot taken: %s", self.counts())

    @classmethod
    def empty(cls) -> "LedgerStore":
        return cls()

    # ---------------- Bulk access ---------------- #

    def frame(self, entity: Entity | str) -> pd.DataFrame:
        """Return a private copy of an entity table."""
        return self._frames[Entity.resolve(entity)].copy()

    def counts(self) -> dict[str, int]:
        return {entity.value: len(frame) for entity, frame in self._frames.items()}

    def scan(
        self,
        entity: Entity | str,
        where: Optional[Callable[[Any], bool]] = None,
        **equals: Any,
    ) -> RecordStream:
        """Stream records matching column equality filters and a predicate.

        No matches yields an empty stream, never an error.
        """
        entity = Entity.resolve(entity)
        frame = self._frames[entity]
        for col, value in equals.items():
            if col not in frame.columns:
                raise InvalidRequestError(f"Unknown field {col!r} for {entity.value}")
            frame = frame[frame[col] == value]
        return RecordStream(frame, entity.spec, where)

    # ---------------- Keyed access ---------------- #

    def get(self, entity: Entity | str, record_id: Any) -> Any:
        """Fetch one record by primary key, first occurrence on duplicates."""
        entity = Entity.resolve(entity)
        key = entity.spec.primary_key
        frame = self._frames[entity]
        matches = frame[frame[key] == record_id]
        if matches.empty:
            raise NotFoundError(entity.value, record_id)
        return next(iter(RecordStream(matches.head(1), entity.spec)))

    def children(self, entity: Entity | str, parent_id: Any) -> RecordStream:
        """Stream child records whose foreign key equals ``parent_id``."""
        entity = Entity.resolve(entity)
        if entity.spec.foreign_key is None:
            raise InvalidRequestError(f"{entity.value} has no parent entity")
        fk_col, _ = entity.spec.foreign_key
        return self.scan(entity, **{fk_col: parent_id})

    # ---------------- Joins ---------------- #

    def unique_policies(self) -> pd.DataFrame:
        """Policies with duplicated ids collapsed to their first occurrence.

        Joins against this table cannot fan out claims or payments; the
        duplicates themselves are reported by the duplicate-key check.
        """
        policies = self._frames[Entity.POLICIES]
        dupes = policies["policy_id"].duplicated(keep="first")
        if dupes.any():
            logger.warning(
                "%d duplicated policy rows ignored for joins", int(dupes.sum())
            )
        return policies[~dupes].copy()

    def unique_holders(self) -> pd.DataFrame:
        """Policyholders keyed for joins: null ids dropped, first occurrence kept.

        pandas matches null merge keys to each other, so a holder without an
        id would otherwise lend its name to every policy without a holder.
        """
        holders = self._frames[Entity.POLICYHOLDERS]
        holders = holders[holders["policyholder_id"].notna()]
        return holders.drop_duplicates("policyholder_id").copy()

    def with_policy(self, entity: Entity | str) -> pd.DataFrame:
        """Inner-join claims or payments to the policy they reference."""
        entity = Entity.resolve(entity)
        if entity not in (Entity.CLAIMS, Entity.PAYMENTS):
            raise InvalidRequestError(f"{entity.value} cannot be joined to policies")

        policy_cols = [
            "policy_id",
            "policyholder_id",
            "policy_type",
            "policy_start_date",
            "policy_status",
        ]
        policies = self.unique_policies()
        return self._frames[entity].merge(
            policies[policies["policy_id"].notna()][policy_cols],
            on="policy_id",
            how="inner",
        )
