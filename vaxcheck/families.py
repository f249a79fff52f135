"""Vaccine family classification by product name.

The shelter's product catalog is open-ended, so classification is total:
a product that matches no rule, or has no name at all, is ``other``.
Rules are tested in order and the first match wins, because product names
can contain several families' keywords.
"""

from __future__ import annotations

from typing import Optional

from .data_models import ClassifierConfig
from .enums import VaccineFamily


def classify_family(
    product: Optional[str], config: ClassifierConfig | None = None
) -> VaccineFamily:
    """Map a free-text product name to a vaccine family.

    Parameters
    ----------
    product : Optional[str]
        Product name as entered in the shelter system.
    config : ClassifierConfig, optional
        Ordered family rules; defaults to the built-in rabies, DHPP/DAPP and
        Bordetella keyword lists.

    Returns
    -------
    VaccineFamily
        Family of the first matching rule, else OTHER.

    Examples
    --------
    >>> classify_family("Rabvac 3 Rabies")
    <VaccineFamily.RABIES: 'rabies'>
    >>> classify_family("Heartworm preventive")
    <VaccineFamily.OTHER: 'other'>
    """
    if not isinstance(product, str):
        return VaccineFamily.OTHER

    name = product.lower()
    if not name:
        return VaccineFamily.OTHER

    config = config or ClassifierConfig()
    for rule in config.family_rules:
        if any(keyword in name for keyword in rule.keywords):
            return rule.family

    return VaccineFamily.OTHER
