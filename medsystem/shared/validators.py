"""Shared validation utilities"""

import re
import uuid
from typing import Optional

# Letters (including Latin-1 accented), spaces, hyphen and apostrophe
PERSON_NAME_PATTERN = re.compile(r"^[a-zA-ZÀ-ÿ\s'-]+$")
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 200


def validate_uuid(value: str) -> bool:
    """Validate UUID format"""
    try:
        uuid.UUID(value)
        return True
    except (ValueError, AttributeError, TypeError):
        return False


def only_digits(value: Optional[str]) -> str:
    return re.sub(r"\D", "", value or "")


def validate_br_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a Brazilian phone number (DDD + number).

    Args:
        phone: Phone number string in any format, e.g. "(61) 99999-8888"

    Returns:
        Digits only, 10 (landline) or 11 (mobile) long

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    digits = only_digits(phone)

    # Handle +55 prefix
    if digits.startswith("55") and len(digits) in (12, 13):
        digits = digits[2:]

    if len(digits) < 10 or len(digits) > 11:
        raise ValueError("Telefone deve ter 10 ou 11 dígitos")

    return digits


def validate_person_name(name: Optional[str]) -> str:
    """Validate a patient or user name and return it trimmed."""
    if not name or not isinstance(name, str):
        raise ValueError("Nome é obrigatório")

    trimmed = name.strip()
    if len(trimmed) < NAME_MIN_LENGTH:
        raise ValueError("Nome deve ter pelo menos 2 caracteres")
    if len(trimmed) > NAME_MAX_LENGTH:
        raise ValueError("Nome deve ter no máximo 200 caracteres")
    if not PERSON_NAME_PATTERN.match(trimmed):
        raise ValueError("Nome contém caracteres inválidos")

    return trimmed


def validate_procedure(procedure: Optional[str]) -> str:
    if not procedure or not isinstance(procedure, str):
        raise ValueError("Procedimento é obrigatório")

    trimmed = procedure.strip()
    if len(trimmed) < NAME_MIN_LENGTH:
        raise ValueError("Procedimento deve ter pelo menos 2 caracteres")
    if len(trimmed) > NAME_MAX_LENGTH:
        raise ValueError("Procedimento deve ter no máximo 200 caracteres")

    return trimmed


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    if not EMAIL_PATTERN.match(email):
        raise ValueError("E-mail inválido")

    return email


def validate_cpf(cpf: Optional[str]) -> Optional[str]:
    """
    Validate a CPF using its two check digits.

    Returns:
        The 11 digits without punctuation

    Raises:
        ValueError: If the CPF is malformed or the check digits don't match
    """
    if not cpf:
        return cpf

    digits = only_digits(cpf)
    if len(digits) != 11 or digits == digits[0] * 11:
        raise ValueError("CPF inválido")

    numbers = [int(d) for d in digits]
    for position in (9, 10):
        total = sum(numbers[i] * (position + 1 - i) for i in range(position))
        check = (total * 10) % 11
        if check == 10:
            check = 0
        if check != numbers[position]:
            raise ValueError("CPF inválido")

    return digits
