"""
Input validation for client records.
"""

from typing import Any, Dict

from .exceptions import ValidationError


def is_valid_cedula(cedula: str) -> bool:
    """
    Check a Dominican cédula (11 digits, dashes allowed) with the Luhn-style
    verifier used by the JCE. Numbers starting with 000 are rejected.
    """
    if not cedula:
        return False

    digits = cedula.replace("-", "")
    if len(digits) < 11 or not digits.isdigit():
        return False

    body, verifier = digits[:-1], int(digits[-1])
    total = 0
    for i, char in enumerate(body):
        product = int(char) * (1 if i % 2 == 0 else 2)
        if product > 9:
            product = product // 10 + product % 10
        total += product

    expected = (10 - total % 10) % 10
    return expected == verifier and not body.startswith("000")


def validate_client(data: Dict[str, Any]) -> None:
    """Raise ValidationError unless the client has a name and a valid cédula."""
    if not data.get("nombre") or not data.get("cedula"):
        raise ValidationError("Nombre y cédula son campos requeridos", field="nombre")

    if not is_valid_cedula(str(data["cedula"])):
        raise ValidationError(
            "La cédula ingresada no es válida. Verifique el formato y dígito verificador.",
            field="cedula",
        )
