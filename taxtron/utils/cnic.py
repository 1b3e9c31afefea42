# taxtron/utils/cnic.py
"""
CNIC (Pakistani national identity number) normalisation.
Accepts "35202-1234567-8" or "3520212345678"; canonical form is DDDDD-DDDDDDD-D.
"""

import re

from taxtron.exceptions import ValidationError

CNIC_DASHED = re.compile(r"^\d{5}-\d{7}-\d$")
CNIC_DIGITS = re.compile(r"^\d{13}$")


def normalize_cnic(cnic: str) -> str:
    """Return the canonical dashed CNIC. Raises ValidationError on anything else."""
    value = (cnic or "").strip()
    if CNIC_DASHED.match(value):
        return value

    digits = value.replace("-", "")
    if not CNIC_DIGITS.match(digits):
        raise ValidationError(
            "Invalid CNIC format. Please use format: 12345-1234567-1 or 1234512345671"
        )
    return f"{digits[:5]}-{digits[5:12]}-{digits[12:]}"
