"""Split calculation: turn an expense request into per-member owed amounts."""

from dataclasses import dataclass
from decimal import Decimal

import schemas
from utils.errors import ValidationError
from utils.money import CENT, absorb_remainder, from_cents, running_total_cents, to_cents


@dataclass(frozen=True)
class SplitResult:
    """
    Cents owed and paid per member for one expense.

    ``payers`` is normalised so it sums to ``amount_cents`` exactly;
    ``allocations`` sums to ``amount_cents`` exactly and covers every
    participant plus any payer who did not participate (allocated 0).
    Both dicts keep the order the caller supplied.
    """
    amount_cents: int
    payers: dict[str, int]
    allocations: dict[str, int]

    def allocation_amounts(self) -> dict[str, Decimal]:
        return {member_id: from_cents(cents) for member_id, cents in self.allocations.items()}

    def payer_amounts(self) -> dict[str, Decimal]:
        return {member_id: from_cents(cents) for member_id, cents in self.payers.items()}


def _equal_parts(amount_cents: int, participants: list[str], split: schemas.EqualSplit) -> list[int]:
    # Everyone gets the floor share; the last participant picks up the leftover cents
    base = amount_cents // len(participants)
    return [base] * len(participants)


def _percentage_parts(amount_cents: int, participants: list[str], split: schemas.PercentageSplit) -> list[int]:
    amount = from_cents(amount_cents)
    percentages = []
    for member_id in participants:
        percentage = Decimal(split.percentages.get(member_id, 0))
        if percentage < 0:
            raise ValidationError(f"Percentage for {member_id} cannot be negative")
        percentages.append(percentage)
    total_percentage = sum(percentages)
    if total_percentage <= 0:
        raise ValidationError("Percentages must add up to more than zero")
    # Scaled by the actual total so the running sum ends exactly on the amount
    return running_total_cents([amount * p / total_percentage for p in percentages])


def _shares_parts(amount_cents: int, participants: list[str], split: schemas.SharesSplit) -> list[int]:
    amount = from_cents(amount_cents)
    shares = [Decimal(split.shares.get(member_id, 1)) for member_id in participants]
    if any(s < 0 for s in shares):
        raise ValidationError("Share counts cannot be negative")
    total_shares = sum(shares)
    if total_shares <= 0:
        raise ValidationError("Total shares must be greater than zero")
    return running_total_cents([amount * s / total_shares for s in shares])


def _exact_parts(amount_cents: int, participants: list[str], split: schemas.ExactSplit) -> list[int]:
    requested = [Decimal(split.amounts.get(member_id, 0)) for member_id in participants]
    if any(a < 0 for a in requested):
        raise ValidationError("Exact amounts cannot be negative")
    total_requested = sum(requested)
    if abs(total_requested - from_cents(amount_cents)) > CENT:
        raise ValidationError(
            f"Exact amounts do not sum to total expense amount. "
            f"Total: {from_cents(amount_cents)}, Sum: {total_requested}"
        )
    # Cent-precise amounts come back unchanged; sub-cent ones round on the running total
    return running_total_cents(requested)


SPLIT_CALCULATORS = {
    schemas.SplitMethod.EQUAL: _equal_parts,
    schemas.SplitMethod.PERCENTAGE: _percentage_parts,
    schemas.SplitMethod.SHARES: _shares_parts,
    schemas.SplitMethod.EXACT: _exact_parts,
}


def normalize_payers(amount_cents: int, payers: dict[str, Decimal]) -> dict[str, int]:
    """
    Round each payer's contribution to cents and let the last payer absorb
    any drift so the contributions add up to the expense amount exactly.
    """
    if not payers:
        raise ValidationError("At least one payer is required")

    for member_id, paid in payers.items():
        if Decimal(paid) < 0:
            raise ValidationError(f"Paid amount for {member_id} cannot be negative")

    total_paid = sum(Decimal(paid) for paid in payers.values())
    if abs(total_paid - from_cents(amount_cents)) > CENT:
        raise ValidationError(
            f"Payer amounts do not sum to total expense amount. "
            f"Total: {from_cents(amount_cents)}, Sum: {total_paid}"
        )

    paid_cents = absorb_remainder(amount_cents, [to_cents(paid) for paid in payers.values()])
    if paid_cents[-1] < 0:
        raise ValidationError("Payer amounts leave a negative contribution after rounding")
    return dict(zip(payers.keys(), paid_cents))


def calculate_split(
    amount,
    payers: dict[str, Decimal],
    participants: list[str],
    split: schemas.SplitDetails,
) -> SplitResult:
    """
    Calculate each member's owed share of an expense.

    Algorithm:
    1. Validate amount, payers and participants (no partial work on failure)
    2. Compute every participant's share with the split method, rounding
       the running total so no share drifts more than a cent from its exact value
    3. The last participant in the supplied order absorbs the rounding
       remainder so shares sum to the amount exactly
    4. Payers are allocated their share like any other participant; a payer
       who is not a participant is allocated 0

    For ``exact`` splits the last participant's figure is recomputed as the
    residual, so it may differ from the submitted value by rounding drift.
    """
    amount_cents = to_cents(amount)
    if amount_cents <= 0:
        raise ValidationError("Expense amount must be greater than zero")
    if not participants:
        raise ValidationError("At least one participant is required")
    if len(set(participants)) != len(participants):
        raise ValidationError("Participants must not contain duplicates")

    normalized_payers = normalize_payers(amount_cents, payers)

    method = schemas.SplitMethod(split.method)
    parts = SPLIT_CALCULATORS[method](amount_cents, participants, split)
    parts = absorb_remainder(amount_cents, parts)
    if parts[-1] < 0:
        raise ValidationError(
            f"Split for {participants[-1]} would be negative; check the {method.value} details"
        )

    allocations = dict(zip(participants, parts))
    for member_id in normalized_payers:
        allocations.setdefault(member_id, 0)

    return SplitResult(
        amount_cents=amount_cents,
        payers=normalized_payers,
        allocations=allocations,
    )
