# purchases/services/suppliers.py

from django.db import transaction

from purchases.models import Supplier
from purchases.services.exceptions import ValidationFailed


@transaction.atomic
def create_supplier(*, company, code: str, name: str, phone: str = "", email: str = "", address: str = "") -> Supplier:
    code = (code or "").strip().upper()
    name = (name or "").strip()
    if not code or not name:
        raise ValidationFailed("Supplier code and name are required")

    if Supplier.objects.alive().filter(company=company, code=code).exists():
        raise ValidationFailed(f"Supplier code {code} already exists")

    return Supplier.objects.create(
        company=company,
        code=code,
        name=name,
        phone=phone or "",
        email=email or "",
        address=address or "",
    )
