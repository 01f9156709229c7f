"""Synthetic record generators for payments, payroll and inventory."""
from datetime import date


def make_payments(rows: list[dict]) -> list[dict]:
    """Create synthetic payment records as the payments API returns them.

    Each row may override: id, date, total, paid, method, hospital, patient,
    invoice.
    """
    records = []
    for i, r in enumerate(rows):
        records.append({
            "id": r.get("id", f"pay-{i}"),
            "date": r.get("date", "2024-06-15T10:00:00.000Z"),
            "totalAmount": r.get("total", 100),
            "amountPaid": r.get("paid", 100),
            "paymentMethod": r.get("method", "Cash"),
            "hospitalName": r.get("hospital", "General Hospital"),
            "patientName": r.get("patient", "Jane Doe"),
            "invoiceNumber": r.get("invoice", f"INV-{i:04d}"),
        })
    return records


def make_payroll(rows: list[dict]) -> list[dict]:
    """Create synthetic payroll records.

    Each row may override: employee_id, name, gross, bonuses, deductions,
    epf, etf, month, year, status.
    """
    records = []
    for r in rows:
        record = {
            "employeeId": r.get("employee_id", "EMP001"),
            "employeeName": r.get("name", "John Smith"),
            "grossSalary": r.get("gross", 100000),
            "bonuses": r.get("bonuses", 0),
            "deductions": r.get("deductions", 0),
            "epf": r.get("epf", 0),
            "payrollMonth": r.get("month", "June"),
            "payrollYear": r.get("year", 2024),
        }
        if "etf" in r:
            record["etf"] = r["etf"]
        if "status" in r:
            record["status"] = r["status"]
        records.append(record)
    return records


def make_inventory(rows: list[dict]) -> list[dict]:
    """Create synthetic inventory items.

    Each row may override: category, price, quantity, supplier.
    """
    return [
        {
            "category": r.get("category", "Surgical"),
            "price": r.get("price", 10),
            "quantity": r.get("quantity", 1),
            "supplier": r.get("supplier", "MedSupply"),
        }
        for r in rows
    ]


AS_OF = date(2024, 7, 1)
