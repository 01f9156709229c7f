"""Data ingestion module - loads the three record collections and frames them."""
import json
import os
from collections.abc import Mapping
from typing import Any, Optional

import polars as pl

from finance_insights.normalize import (
    normalize,
    parse_date,
    parse_month,
    parse_year,
    period_key,
    text_or,
)


DATA_DIR = os.environ.get("FINANCE_DATA_DIR", "data")

PAYMENTS_FILE = "payments.json"
PAYROLL_FILE = "payroll.json"
INVENTORY_FILE = "inventory.json"

# Envelope keys the upstream APIs wrap record lists in, checked in order
_PAYMENT_KEYS = ["data", "payments"]
_PAYROLL_KEYS = ["data", "payrolls"]
_INVENTORY_KEYS = ["data", "items"]

PAYMENT_SCHEMA = {
    "amount_paid": pl.Float64,
    "total_amount": pl.Float64,
    "method": pl.Utf8,
    "hospital": pl.Utf8,
    "period_key": pl.Utf8,
    "year": pl.Int64,
    "month": pl.Int64,
}

PAYROLL_SCHEMA = {
    "employee_id": pl.Utf8,
    "employee_name": pl.Utf8,
    "status": pl.Utf8,
    "gross_salary": pl.Float64,
    "bonuses": pl.Float64,
    "deductions": pl.Float64,
    "period_key": pl.Utf8,
    "year": pl.Int64,
    "month": pl.Int64,
}

INVENTORY_SCHEMA = {
    "category": pl.Utf8,
    "supplier": pl.Utf8,
    "price": pl.Float64,
    "quantity": pl.Float64,
}


def extract_records(payload: Any, keys: list[str]) -> list[dict]:
    """Unwrap an API payload into its list of record dicts.

    Accepts a bare list, or a dict whose record list sits under one of keys,
    possibly nested one level deeper (e.g. {"data": {"items": [...]}}).
    Non-dict entries are dropped.

    Raises:
        ValueError: If no record list can be found in the payload.
    """
    records = _find_list(payload, keys)
    if records is None:
        raise ValueError(f"No record list found under any of {keys}")
    kept = [r for r in records if isinstance(r, dict)]
    if len(kept) != len(records):
        print(f"WARNING: Skipped {len(records) - len(kept)} non-object entries")
    return kept


def _find_list(payload: Any, keys: list[str]) -> Optional[list]:
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        return None
    for key in keys:
        if key in payload:
            found = _find_list(payload[key], keys)
            if found is not None:
                return found
    return None


def _load_json(path: str) -> Any:
    if not os.path.exists(path):
        raise FileNotFoundError(f"Input data not found at {path}.")
    with open(path) as f:
        return json.load(f)


def load_payments(data_dir: Optional[str] = None) -> list[dict]:
    """Load billing/payment records from payments.json."""
    path = os.path.join(data_dir or DATA_DIR, PAYMENTS_FILE)
    records = extract_records(_load_json(path), _PAYMENT_KEYS)
    print(f"Payments data: {len(records)} records from {path}")
    return records


def load_payroll(data_dir: Optional[str] = None) -> list[dict]:
    """Load payroll records from payroll.json."""
    path = os.path.join(data_dir or DATA_DIR, PAYROLL_FILE)
    records = extract_records(_load_json(path), _PAYROLL_KEYS)
    print(f"Payroll data: {len(records)} records from {path}")
    return records


def load_inventory(data_dir: Optional[str] = None) -> list[dict]:
    """Load inventory items from inventory.json."""
    path = os.path.join(data_dir or DATA_DIR, INVENTORY_FILE)
    records = extract_records(_load_json(path), _INVENTORY_KEYS)
    print(f"Inventory data: {len(records)} items from {path}")
    return records


def _fields(record: Any) -> Mapping:
    return record if isinstance(record, Mapping) else {}


def _frame(rows: list[tuple], schema: dict) -> pl.DataFrame:
    if not rows:
        return pl.DataFrame(schema=schema)
    return pl.DataFrame(rows, schema=schema, orient="row")


def payments_frame(payments: list[dict]) -> pl.DataFrame:
    """Build a typed payments frame with every amount already normalized.

    Records with an unparsable date keep their amounts but get null period
    columns, so they count toward totals and drop out of monthly grouping.
    """
    rows = []
    for record in payments:
        r = _fields(record)
        when = parse_date(r.get("date"))
        rows.append((
            normalize(r.get("amountPaid")),
            normalize(r.get("totalAmount")),
            text_or(r.get("paymentMethod"), "Unknown"),
            text_or(r.get("hospitalName"), "Unknown"),
            period_key(when.year, when.month) if when else None,
            when.year if when else None,
            when.month if when else None,
        ))
    return _frame(rows, PAYMENT_SCHEMA)


def payroll_frame(payroll: list[dict]) -> pl.DataFrame:
    """Build a typed payroll frame keyed by (payrollYear, payrollMonth)."""
    rows = []
    for record in payroll:
        r = _fields(record)
        year = parse_year(r.get("payrollYear"))
        month = parse_month(r.get("payrollMonth"))
        has_period = year is not None and month is not None
        rows.append((
            text_or(r.get("employeeId"), ""),
            text_or(r.get("employeeName"), "Unknown"),
            text_or(r.get("status"), "Pending"),
            normalize(r.get("grossSalary")),
            normalize(r.get("bonuses")),
            normalize(r.get("deductions")),
            period_key(year, month) if has_period else None,
            year if has_period else None,
            month if has_period else None,
        ))
    return _frame(rows, PAYROLL_SCHEMA)


def inventory_frame(inventory: list[dict]) -> pl.DataFrame:
    """Build a typed inventory frame."""
    rows = []
    for record in inventory:
        r = _fields(record)
        rows.append((
            text_or(r.get("category"), "Uncategorized"),
            text_or(r.get("supplier"), "Unknown"),
            normalize(r.get("price")),
            normalize(r.get("quantity")),
        ))
    return _frame(rows, INVENTORY_SCHEMA)
