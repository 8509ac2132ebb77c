"""
Credit limit evaluation.

`classify_credit` is a pure function: it never changes a customer. Raising a
limit is a separate explicit write performed by CustomerService.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from wms.core.constants import CreditStatus

DEFAULT_NEAR_LIMIT_RATIO = 0.8
DEFAULT_AUTO_RAISE_FACTOR = 2.0


@dataclass(frozen=True)
class CreditAssessment:
    status: CreditStatus
    credit_limit: float
    current_balance: float
    new_balance: float
    available_credit: float
    message: str

    @property
    def exceeds_limit(self) -> bool:
        return self.status is CreditStatus.EXCEEDS_LIMIT


def _money(value) -> Decimal:
    return Decimal(str(value or 0))


# PUBLIC_INTERFACE
def classify_credit(
    credit_limit: float,
    current_balance: float,
    total: float,
    near_limit_ratio: float = DEFAULT_NEAR_LIMIT_RATIO,
) -> CreditAssessment:
    """
    Classify a candidate order total against a customer's credit position.

    new_balance = current_balance + total, then:
      - new_balance > credit_limit                     -> exceeds_limit
      - new_balance > near_limit_ratio * credit_limit  -> near_limit
      - otherwise                                      -> ok
    """
    limit = float(credit_limit or 0)
    balance = float(current_balance or 0)
    new_balance = round(balance + float(total), 2)
    available = round(limit - balance, 2)

    # Compared in Decimal: in floats 0.8 * 11.20 is below 8.96
    exact_limit = _money(limit)
    exact_balance = _money(new_balance)

    if exact_balance > exact_limit:
        status = CreditStatus.EXCEEDS_LIMIT
        message = (
            f"Order total would bring the balance to {new_balance:.2f}, "
            f"exceeding the credit limit of {limit:.2f}."
        )
    elif exact_balance > _money(near_limit_ratio) * exact_limit:
        status = CreditStatus.NEAR_LIMIT
        message = (
            f"Order total would bring the balance to {new_balance:.2f}, "
            f"close to the credit limit of {limit:.2f}."
        )
    else:
        status = CreditStatus.OK
        message = "Order is within the available credit."

    return CreditAssessment(
        status=status,
        credit_limit=limit,
        current_balance=balance,
        new_balance=new_balance,
        available_credit=available,
        message=message,
    )


def raised_limit_for(total: float, factor: float = DEFAULT_AUTO_RAISE_FACTOR) -> float:
    """Credit limit applied when an over-limit order is accepted with auto-raise."""
    return round(float(total) * factor, 2)
