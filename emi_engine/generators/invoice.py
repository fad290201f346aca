"""Sample EMI and delivery invoice generators."""

import random
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from dateutil.relativedelta import relativedelta

from emi_engine.engine.payments import PaymentImpact, apply_payment
from emi_engine.engine.schedule import build_emi_details, suggest_monthly_amount
from emi_engine.generators.base import BaseGenerator
from emi_engine.models.emi import EmiDetails, PaymentDetails
from emi_engine.models.enums import DeliveryStatus, PaymentMethod, PaymentStatus
from emi_engine.models.invoice import Invoice
from emi_engine.money import ZERO, money


class InvoiceGenerator(BaseGenerator):
    """Generate synthetic invoices with EMI plans or scheduled deliveries."""

    DURATIONS = [3, 6, 9, 12, 18, 24]
    INTEREST_RATES = [Decimal("0"), Decimal("1"), Decimal("1.5"), Decimal("2")]
    PROCESSING_FEES = [Decimal("0"), Decimal("199"), Decimal("499")]

    def _invoice(self, business_unit: str, reference_date: date) -> Invoice:
        total = Decimal(random.randint(100, 2000) * 100)
        return Invoice(
            invoice_id=self.fake.uuid4(),
            invoice_number=f"INV-{reference_date:%Y%m}-{random.randint(1, 99999):05d}",
            customer_id=self.fake.uuid4(),
            customer_name=self.fake.name(),
            total_amount=money(total),
            payment_status=PaymentStatus.PENDING,
            business_unit=business_unit,
            customer_phone=self.fake.phone_number(),
            customer_address=self.fake.address().replace("\n", ", "),
            item_count=random.randint(1, 5),
            created_at=datetime.combine(reference_date, time(hour=9)),
        )

    def generate_emi_invoice(
        self,
        business_unit: str = "default",
        reference_date: date | None = None,
    ) -> Invoice:
        """Generate an invoice on an EMI plan that started in the past.

        Parameters
        ----------
        business_unit : str
            Business unit the invoice belongs to.
        reference_date : date | None
            "Today" for the generated data; defaults to ``date.today()``.

        Returns
        -------
        Invoice
            Invoice with ``payment_status = emi`` and a fresh schedule.
        """
        reference_date = reference_date or date.today()
        invoice = self._invoice(business_unit, reference_date)

        duration = random.choice(self.DURATIONS)
        interest_rate = random.choice(self.INTEREST_RATES)
        start_date = (
            reference_date
            - relativedelta(months=random.randint(0, duration - 1))
            + timedelta(days=random.randint(-10, 25))
        )

        invoice.payment_status = PaymentStatus.EMI
        invoice.emi_details = build_emi_details(
            monthly_amount=suggest_monthly_amount(invoice.total_amount, duration, interest_rate),
            start_date=start_date,
            duration=duration,
            interest_rate=interest_rate,
            processing_fee=random.choice(self.PROCESSING_FEES),
        )
        return invoice

    def generate_delivery_invoice(
        self,
        business_unit: str = "default",
        reference_date: date | None = None,
    ) -> Invoice:
        """Generate a paid invoice with a delivery around ``reference_date``."""
        reference_date = reference_date or date.today()
        invoice = self._invoice(business_unit, reference_date)
        invoice.payment_status = random.choice([PaymentStatus.PAID, PaymentStatus.PENDING])
        invoice.fully_paid = invoice.payment_status == PaymentStatus.PAID
        invoice.delivery_status = (
            DeliveryStatus.SCHEDULED if random.random() < 0.8 else DeliveryStatus.DELIVERED
        )
        invoice.scheduled_delivery_date = reference_date + timedelta(days=random.randint(-5, 14))
        return invoice


class PaymentBehavior:
    """Simulate customer payments against an EMI plan.

    Behaviours:
        - good: pays each due installment in full
        - partial: pays 50-90% of each due installment
        - over: pays each due installment plus up to half a month extra
        - defaulter: pays the first one to three installments, then stops
    """

    BEHAVIORS = ["good", "partial", "over", "defaulter"]

    def __init__(self, seed: int | None = None) -> None:
        if seed is not None:
            random.seed(seed)

    def choose(
        self,
        good_rate: float = 0.60,
        partial_rate: float = 0.15,
        over_rate: float = 0.10,
        defaulter_rate: float = 0.15,
    ) -> str:
        """Pick a behaviour with the given weights."""
        return random.choices(
            self.BEHAVIORS, weights=[good_rate, partial_rate, over_rate, defaulter_rate], k=1
        )[0]

    def apply(
        self,
        emi: EmiDetails,
        behavior: str,
        reference_date: date | None = None,
    ) -> tuple[EmiDetails, list[PaymentImpact]]:
        """Pay the installments due on or before ``reference_date``.

        Parameters
        ----------
        emi : EmiDetails
            Plan to pay against. Not modified.
        behavior : str
            One of ``BEHAVIORS``.
        reference_date : date | None
            Current date for determining which installments are due.

        Returns
        -------
        tuple[EmiDetails, list[PaymentImpact]]
            Updated plan and the impact of every payment made.
        """
        if behavior not in self.BEHAVIORS:
            raise ValueError(f"Unknown payment behavior: {behavior}")
        reference_date = reference_date or date.today()

        impacts = []
        stop_after = random.randint(1, 3)
        numbers = sorted(i.installment_number for i in emi.schedule)
        for number in numbers:
            installment = emi.get_installment(number)
            if installment.due_date > reference_date:
                break
            if installment.is_settled:
                continue
            if behavior == "defaulter" and number > stop_after:
                break

            due = installment.outstanding
            if behavior == "partial":
                amount = money(due * Decimal(str(random.uniform(0.5, 0.9))))
            elif behavior == "over":
                headroom = emi.total_outstanding - due
                extra = money(emi.monthly_amount * Decimal(str(random.uniform(0.1, 0.5))))
                amount = due + min(extra, headroom)
            else:
                amount = due
            if amount <= ZERO:
                continue

            paid_at = datetime.combine(installment.due_date, time(hour=11)) + timedelta(
                days=random.randint(0, 3)
            )
            details = PaymentDetails(
                method=random.choice(list(PaymentMethod)),
                reference=f"TXN{random.randint(10**9, 10**10 - 1)}",
                paid_at=paid_at,
            )
            outcome = apply_payment(emi, number, amount, details)
            emi = outcome.emi_details
            impacts.append(outcome.impact)

        return emi, impacts
