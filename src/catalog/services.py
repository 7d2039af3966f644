"""Catalog services: starter lines of business and products for a new agency."""
from __future__ import annotations

import logging

from django.db import transaction

from catalog.models import LineOfBusiness, PremiumCategory, Product, ProductType

logger = logging.getLogger("agencydesk")

P = ProductType.PERSONAL
B = ProductType.BUSINESS

STARTER_CATALOG = [
    ("Auto", PremiumCategory.PC, [
        ("Auto Raw New", P),
        ("Auto Added", P),
        ("Business Raw Auto", B),
        ("Business Added Auto", B),
    ]),
    ("Fire", PremiumCategory.PC, [
        ("Homeowners", P),
        ("Renters", P),
        ("Condo", P),
        ("PAP", P),
        ("PLUP", P),
        ("Boat", P),
        ("BOP", B),
        ("Apartment", B),
        ("CLUP", B),
        ("Workers Comp", B),
    ]),
    ("Health", PremiumCategory.FS, [
        ("Short Term Disability", P),
        ("Long Term Disability", P),
        ("Hospital Indemnity", P),
    ]),
    ("Life", PremiumCategory.FS, [
        ("Term", P),
        ("Whole Life", P),
    ]),
    ("IPS", PremiumCategory.IPS, [
        ("Advisory Account", P),
        ("Non Advisory Account", P),
    ]),
]


@transaction.atomic
def ensure_starter_catalog(agency) -> dict:
    """Upsert the starter lines of business and products for ``agency``.

    Safe to run repeatedly: existing rows keep their ids and only have their
    category/type realigned.
    """
    created_lobs = 0
    created_products = 0
    for lob_name, category, products in STARTER_CATALOG:
        lob, created = LineOfBusiness.objects.update_or_create(
            agency=agency,
            name=lob_name,
            defaults={"premium_category": category},
        )
        created_lobs += int(created)
        for product_name, product_type in products:
            _, created = Product.objects.update_or_create(
                line_of_business=lob,
                name=product_name,
                defaults={"product_type": product_type},
            )
            created_products += int(created)

    logger.info(
        "Starter catalog ensured for agency=%s (%d new LoBs, %d new products)",
        agency.pk,
        created_lobs,
        created_products,
    )
    return {"lines_of_business": created_lobs, "products": created_products}
