from dataclasses import dataclass

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class LoanPeriod:
    interest_paid: float
    principal_paid: float
    balance: float  # remaining after the period
    months_used: int


def monthly_payment(principal: float, annual_rate: float, years: int) -> float:
    n = years * 12
    if n <= 0:
        raise ValueError("years must be > 0")
    if principal <= 0:
        return 0.0
    r = annual_rate / 12.0
    if abs(r) < 1e-12:
        return principal / n
    pow_ = (1 + r) ** n
    return principal * (r * pow_) / (pow_ - 1)


def amortize_months(
    balance: float,
    annual_rate: float,
    payment: float,
    months: int,
    extra_principal: float = 0.0,
) -> LoanPeriod:
    """
    Run `months` level payments (plus optional extra principal each month)
    against a declining balance.

    When a payment would overshoot the balance it is truncated to retire the
    loan exactly; the period then ends early and `months_used` reports how many
    payments were actually made. Balance and interest never go negative.
    """
    r = annual_rate / 12.0
    bal = max(0.0, balance)
    interest_total = 0.0
    principal_total = 0.0
    used = 0

    for _ in range(max(0, months)):
        if bal <= 0:
            break
        interest = bal * r if r > 0 else 0.0
        principal = payment - interest + extra_principal
        if principal >= bal:
            principal = bal
        principal = max(0.0, principal)

        bal -= principal
        interest_total += interest
        principal_total += principal
        used += 1

    if bal < 1e-9:
        bal = 0.0

    return LoanPeriod(
        interest_paid=interest_total,
        principal_paid=principal_total,
        balance=bal,
        months_used=used,
    )


def amortization_schedule(
    principal: float,
    annual_rate: float,
    years: int,
    extra_principal: float = 0.0,
) -> pd.DataFrame:
    """
    Month-by-month schedule until the loan is retired or the term ends.
    Columns: Payment, Principal, Interest, Balance, Cumulative Interest, Cumulative Principal.
    """
    A = monthly_payment(principal, annual_rate, years)
    rows = []
    bal = principal
    for m in range(1, years * 12 + 1):
        if bal <= 0:
            break
        period = amortize_months(bal, annual_rate, A, 1, extra_principal)
        bal = period.balance
        rows.append(
            {
                "Month": m,
                "Payment": period.principal_paid + period.interest_paid,
                "Principal": period.principal_paid,
                "Interest": period.interest_paid,
                "Balance": bal,
            }
        )

    df = pd.DataFrame(
        rows, columns=["Month", "Payment", "Principal", "Interest", "Balance"]
    )
    df["Cumulative Interest"] = np.cumsum(df["Interest"].to_numpy(dtype=float))
    df["Cumulative Principal"] = np.cumsum(df["Principal"].to_numpy(dtype=float))
    return df
