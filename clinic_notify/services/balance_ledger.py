"""Push notification credit ledger.

The clinic balance is the only counter shared between requests, so it is
only ever changed with a single SQL ``UPDATE ... SET balance = balance +/- 1``
and never by reading, modifying and writing the value in Python.
"""

import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from clinic_notify.core.exceptions import ClinicNotFoundException, InsufficientBalanceException
from clinic_notify.core.tenant import require_clinic_id
from clinic_notify.models.clinic import Clinic

logger = logging.getLogger(__name__)


class BalanceLedger:
    """Atomic increment/decrement of a clinic's push notification balance.

    Methods never commit: the caller owns the transaction so the ledger write
    lands or rolls back together with the notification write it pays for.
    """

    def get_balance(self, db: Session, *, clinic_id: int) -> int:
        """Return the current balance.

        Raises:
            ClinicNotFoundException: If the clinic does not exist
        """
        stmt = select(Clinic.push_notification_balance).where(Clinic.id == require_clinic_id(clinic_id))
        balance = db.scalar(stmt)
        if balance is None:
            raise ClinicNotFoundException()
        return balance

    def consume(self, db: Session, *, clinic_id: int) -> None:
        """Take one credit, refusing to go below zero.

        Raises:
            InsufficientBalanceException: If the balance is already zero
        """
        stmt = (
            update(Clinic)
            .where(
                Clinic.id == require_clinic_id(clinic_id),
                Clinic.push_notification_balance > 0,
            )
            .values(push_notification_balance=Clinic.push_notification_balance - 1)
            .execution_options(synchronize_session=False)
        )
        result = db.execute(stmt)
        if result.rowcount == 0:
            logger.warning(f"Insufficient push balance for clinic_id={clinic_id}")
            raise InsufficientBalanceException()

    def refund(self, db: Session, *, clinic_id: int) -> None:
        """Return one credit to the clinic.

        Raises:
            ClinicNotFoundException: If the clinic does not exist
        """
        stmt = (
            update(Clinic)
            .where(Clinic.id == require_clinic_id(clinic_id))
            .values(push_notification_balance=Clinic.push_notification_balance + 1)
            .execution_options(synchronize_session=False)
        )
        result = db.execute(stmt)
        if result.rowcount == 0:
            raise ClinicNotFoundException()


# Singleton instance
balance_ledger = BalanceLedger()
