"""Boleto barcode and digitable line construction"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from receivables_gateway.utils.date_utils import due_date_factor

BARCODE_LENGTH = 44
FREE_FIELD_LENGTH = 25
CURRENCY_REAL = "9"


def mod11_check_digit(digits: str) -> str:
    """
    Modulo-11 check digit with weights 2..9 applied right to left.

    Results 0, 10 and 11 map to 1.
    """
    total = 0
    weight = 2
    for char in reversed(digits):
        total += int(char) * weight
        weight = 2 if weight == 9 else weight + 1

    digit = 11 - total % 11
    if digit in (0, 10, 11):
        digit = 1
    return str(digit)


def amount_field(amount: Decimal) -> str:
    """Amount in cents, zero-padded to 10 digits"""
    cents = int((amount * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    if cents < 0 or cents > 9_999_999_999:
        raise ValueError(f"Amount {amount} does not fit in a boleto barcode")
    return f"{cents:010d}"


def build_barcode(bank_code: str, due_date: date, amount: Decimal, free_field: str) -> str:
    """
    Assemble a 44-digit barcode.

    Layout: bank(3) currency(1) check(1) factor(4) amount(10) free field(25)
    """
    if len(bank_code) != 3 or not bank_code.isdigit():
        raise ValueError(f"Invalid bank code: {bank_code!r}")
    if len(free_field) != FREE_FIELD_LENGTH or not free_field.isdigit():
        raise ValueError(f"Free field must be {FREE_FIELD_LENGTH} digits")

    factor_and_amount = due_date_factor(due_date) + amount_field(amount)
    without_check = bank_code + CURRENCY_REAL + factor_and_amount + free_field
    check = mod11_check_digit(without_check)
    return bank_code + CURRENCY_REAL + check + factor_and_amount + free_field


def digitable_line(barcode: str) -> str:
    """
    Convert a barcode into its human-readable digitable line.

    Format: AAAAA.AAAAX BBBBB.BBBBBX CCCCC.CCCCCX K FFFFVVVVVVVVVV
    - group 1: bank + currency + first 5 free-field digits, check digit
    - group 2: free-field digits 6-15, check digit
    - group 3: free-field digits 16-25, check digit
    - K: barcode overall check digit
    - F/V: due-date factor and amount
    """
    if len(barcode) != BARCODE_LENGTH or not barcode.isdigit():
        raise ValueError(f"Barcode must be {BARCODE_LENGTH} digits")

    bank_and_currency = barcode[0:4]
    overall_check = barcode[4]
    factor_and_amount = barcode[5:19]
    free_field = barcode[19:44]

    group1 = bank_and_currency + free_field[0:5]
    group2 = free_field[5:15]
    group3 = free_field[15:25]

    return "{}.{}{} {}.{}{} {}.{}{} {} {}".format(
        group1[0:5],
        group1[5:9],
        mod11_check_digit(group1),
        group2[0:5],
        group2[5:10],
        mod11_check_digit(group2),
        group3[0:5],
        group3[5:10],
        mod11_check_digit(group3),
        overall_check,
        factor_and_amount,
    )
