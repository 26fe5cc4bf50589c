"""Transaction loading and normalisation helpers.

Every engine in the package works on a single normalised pandas DataFrame.
This module turns the shapes callers actually hold (a CSV export, a list of
:class:`Transaction` records, a list of dicts or an existing DataFrame) into
that frame. The functions are pure: inputs are copied, never modified.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

import pandas as pd

from .categorizer import categorize_series

logger = logging.getLogger(__name__)

DEBIT = 'debit'
CREDIT = 'credit'

DATE_COL = 'Transaction Date'
DESCRIPTION_COL = 'Description'
AMOUNT_COL = 'Amount'
TYPE_COL = 'Type'
CATEGORY_COL = 'Category'
ABS_AMOUNT_COL = 'Abs Amount'
IS_DEBIT_COL = 'Is Debit'

STANDARD_COLUMNS = [DATE_COL, DESCRIPTION_COL, AMOUNT_COL, TYPE_COL]
FRAME_COLUMNS = STANDARD_COLUMNS + [CATEGORY_COL, ABS_AMOUNT_COL, IS_DEBIT_COL]

# Lower-cased source header -> normalised column
COLUMN_ALIASES: Dict[str, str] = {
    'date': DATE_COL,
    'transaction date': DATE_COL,
    'posted date': DATE_COL,
    'description': DESCRIPTION_COL,
    'details': DESCRIPTION_COL,
    'merchant': DESCRIPTION_COL,
    'amount': AMOUNT_COL,
    'type': TYPE_COL,
    'transaction type': TYPE_COL,
}


@dataclass(frozen=True)
class Transaction:
    """A single parsed bank transaction."""
    date: datetime
    description: str
    amount: float
    type: str = DEBIT

    @property
    def is_debit(self) -> bool:
        return self.type != CREDIT

    def to_record(self) -> Dict[str, Any]:
        return {
            DATE_COL: self.date,
            DESCRIPTION_COL: self.description,
            AMOUNT_COL: self.amount,
            TYPE_COL: self.type,
        }


TransactionsLike = Union[pd.DataFrame, Iterable[Union[Transaction, Dict[str, Any]]], None]


def read_transactions(path_or_buffer) -> pd.DataFrame:
    """Load a CSV export and return the normalised transaction frame.

    Rows whose date cannot be parsed are kept with ``NaT`` so that callers
    can report them; every engine drops them before computing.
    """
    if hasattr(path_or_buffer, 'read'):
        raw = pd.read_csv(path_or_buffer, skipinitialspace=True)
    else:
        path = Path(path_or_buffer)
        if path.suffix.lower() not in {'.csv', '.txt', ''}:
            raise ValueError(f"Unsupported file extension '{path.suffix}'.")
        raw = pd.read_csv(path, skipinitialspace=True)
    return prepare_transactions(raw)


def prepare_transactions(transactions: TransactionsLike) -> pd.DataFrame:
    """Normalise any supported transaction container into the engine frame.

    The returned frame has the columns listed in :data:`FRAME_COLUMNS`:

    * ``Transaction Date`` – ``datetime64`` with ``NaT`` for unparseable dates
    * ``Type`` – ``'debit'`` or ``'credit'``; derived from the amount sign
      when the source has no usable type
    * ``Category`` – assigned by :func:`categorizer.categorize`
    * ``Abs Amount`` / ``Is Debit`` – helpers used by the aggregations
    """
    frame = _to_frame(transactions)
    if frame.empty:
        return pd.DataFrame(columns=FRAME_COLUMNS)

    frame = _apply_aliases(frame)
    for column in STANDARD_COLUMNS:
        if column not in frame.columns:
            frame[column] = pd.NA

    frame[DATE_COL] = _parse_dates(frame[DATE_COL])
    frame[AMOUNT_COL] = pd.to_numeric(frame[AMOUNT_COL], errors='coerce').fillna(0.0).astype(float)
    frame[DESCRIPTION_COL] = frame[DESCRIPTION_COL].fillna('').astype(str).str.strip()

    declared = frame[TYPE_COL].fillna('').astype(str).str.strip().str.lower()
    inferred = frame[AMOUNT_COL].map(lambda amount: DEBIT if amount < 0 else CREDIT)
    frame[TYPE_COL] = declared.where(declared.isin({DEBIT, CREDIT}), inferred)

    frame[CATEGORY_COL] = categorize_series(frame[DESCRIPTION_COL])
    frame[ABS_AMOUNT_COL] = frame[AMOUNT_COL].abs()
    frame[IS_DEBIT_COL] = frame[TYPE_COL] != CREDIT
    return frame[FRAME_COLUMNS].reset_index(drop=True)


def valid_transactions(frame: pd.DataFrame) -> pd.DataFrame:
    """Return only rows with a parseable date."""
    if frame.empty:
        return frame
    valid = frame[frame[DATE_COL].notna()]
    dropped = len(frame) - len(valid)
    if dropped:
        logger.debug("Skipping %d transactions with invalid dates", dropped)
    return valid


def debit_rows(frame: pd.DataFrame) -> pd.DataFrame:
    """Return the expense side of a prepared frame."""
    if frame.empty:
        return frame
    return frame[frame[IS_DEBIT_COL]]


def credit_rows(frame: pd.DataFrame) -> pd.DataFrame:
    """Return the income side of a prepared frame."""
    if frame.empty:
        return frame
    return frame[~frame[IS_DEBIT_COL]]


def _to_frame(transactions: TransactionsLike) -> pd.DataFrame:
    if transactions is None:
        return pd.DataFrame()
    if isinstance(transactions, pd.DataFrame):
        return transactions.copy()
    records = [
        item.to_record() if isinstance(item, Transaction) else dict(item)
        for item in transactions
    ]
    return pd.DataFrame.from_records(records)


def _apply_aliases(frame: pd.DataFrame) -> pd.DataFrame:
    """Move alias columns onto the standard names.

    When the standard column already exists (records mixing both spellings),
    the alias only fills its missing values.
    """
    for column in list(frame.columns):
        if column in STANDARD_COLUMNS:
            continue
        target: Optional[str] = COLUMN_ALIASES.get(str(column).strip().lower())
        if not target:
            continue
        if target in frame.columns:
            existing, alias = frame[target], frame[column]
            if target == DATE_COL:
                existing, alias = _parse_dates(existing), _parse_dates(alias)
            frame[target] = existing.combine_first(alias)
        else:
            frame[target] = frame[column]
        frame = frame.drop(columns=[column])
    return frame


def _parse_dates(series: pd.Series) -> pd.Series:
    return pd.to_datetime(series, errors='coerce', format='mixed')
