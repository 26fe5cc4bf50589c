"""Unit tests for spendy_dashboard.data_processing."""

from __future__ import annotations

import io
import warnings
from datetime import datetime

import pandas as pd
import pytest

from spendy_dashboard import data_processing as dp


def _sample_df() -> pd.DataFrame:
    return pd.DataFrame(
        {
            'Transaction Date': ['2025-06-01', '2025-06-02', 'not a date'],
            'Description': ['Dominos Pizza', 'ACME payroll', 'Netflix'],
            'Amount': [-25.0, 3000.0, -12.99],
        }
    )


def test_prepare_transactions_infers_type_from_sign():
    frame = dp.prepare_transactions(_sample_df())
    assert list(frame[dp.TYPE_COL]) == ['debit', 'credit', 'debit']
    assert list(frame[dp.IS_DEBIT_COL]) == [True, False, True]
    assert list(frame[dp.ABS_AMOUNT_COL]) == [25.0, 3000.0, 12.99]


def test_prepare_transactions_keeps_declared_type():
    df = _sample_df()
    df['Type'] = ['DEBIT', 'credit', 'unknown']
    frame = dp.prepare_transactions(df)
    assert list(frame[dp.TYPE_COL]) == ['debit', 'credit', 'debit']


def test_prepare_transactions_assigns_categories_and_coerces_dates():
    frame = dp.prepare_transactions(_sample_df())
    assert list(frame[dp.CATEGORY_COL]) == ['Food & Dining', 'Income', 'Entertainment']
    assert pd.api.types.is_datetime64_any_dtype(frame[dp.DATE_COL])
    assert pd.isna(frame.loc[2, dp.DATE_COL])


def test_prepare_transactions_does_not_mutate_input():
    df = _sample_df()
    before = df.copy()
    dp.prepare_transactions(df)
    pd.testing.assert_frame_equal(df, before)


def test_prepare_transactions_accepts_records_and_aliases():
    records = [
        dp.Transaction(datetime(2025, 5, 3), 'Lidl', -40.0),
        {'date': '2025-05-04', 'details': 'Refund', 'amount': 15, 'type': 'credit'},
    ]
    frame = dp.prepare_transactions(records)
    assert list(frame.columns) == dp.FRAME_COLUMNS
    assert list(frame[dp.DESCRIPTION_COL]) == ['Lidl', 'Refund']
    assert list(frame[dp.TYPE_COL]) == ['debit', 'credit']
    assert list(frame[dp.CATEGORY_COL]) == ['Groceries & Cafe', 'Refunds']


def test_mixed_date_spellings_merge_without_casting_warnings():
    records = [
        dp.Transaction(datetime(2025, 5, 3, 14, 30), 'Lidl', -40.0),
        {'date': '2025-05-04', 'details': 'Refund', 'amount': 15},
    ]
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter('always')
        frame = dp.prepare_transactions(records)
    assert not [w for w in caught if 'casting' in str(w.message).lower()]
    assert list(frame[dp.DATE_COL]) == [pd.Timestamp('2025-05-03 14:30'), pd.Timestamp('2025-05-04')]


def test_prepare_transactions_empty_input():
    for empty in (None, [], pd.DataFrame()):
        frame = dp.prepare_transactions(empty)
        assert frame.empty
        assert list(frame.columns) == dp.FRAME_COLUMNS


def test_valid_transactions_drops_unparseable_dates():
    frame = dp.valid_transactions(dp.prepare_transactions(_sample_df()))
    assert len(frame) == 2
    assert frame[dp.DATE_COL].notna().all()


def test_debit_and_credit_rows_split_the_frame():
    frame = dp.prepare_transactions(_sample_df())
    assert len(dp.debit_rows(frame)) == 2
    assert list(dp.credit_rows(frame)[dp.DESCRIPTION_COL]) == ['ACME payroll']


def test_read_transactions_from_buffer():
    buffer = io.StringIO(
        "Date,Description,Amount,Type\n"
        "2025-06-01,Dominos Pizza,-25.00,debit\n"
        "2025-06-03,ACME payroll,3000,credit\n"
    )
    frame = dp.read_transactions(buffer)
    assert len(frame) == 2
    assert frame.loc[0, dp.DATE_COL] == pd.Timestamp('2025-06-01')
    assert frame.loc[1, dp.TYPE_COL] == 'credit'


def test_read_transactions_rejects_unsupported_extension(tmp_path):
    with pytest.raises(ValueError):
        dp.read_transactions(tmp_path / 'statement.xlsx')


def test_transaction_is_debit():
    assert dp.Transaction(datetime(2025, 1, 1), 'x', -1.0).is_debit
    assert not dp.Transaction(datetime(2025, 1, 1), 'x', 1.0, type='credit').is_debit
