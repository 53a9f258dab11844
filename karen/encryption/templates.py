"""
Predefined encryption templates.

A template is a reusable bundle of field directives that a collection pulls in
through ``includes``. Every field is registered under its original name and
under its lower camel case alias, so ``first_name`` also covers ``firstName``.
"""
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

import inflection

from karen.core.errors import UnknownTemplate

ALGORITHM_PREFIX = "AEAD_AES_256_CBC_HMAC_SHA_512"
DETERMINISTIC_ALGORITHM = f"{ALGORITHM_PREFIX}-Deterministic"
RANDOM_ALGORITHM = f"{ALGORITHM_PREFIX}-Random"

PredefinedTemplate = Mapping[str, Mapping[str, Any]]


def _directive(bson_type: str) -> Mapping[str, Any]:
    return MappingProxyType({
        "encrypt": MappingProxyType({
            "bsonType": bson_type,
            "algorithm": DETERMINISTIC_ALGORITHM,
        })
    })


class Predefined:
    """Directive classes available to templates."""
    PII_STRING = _directive("string")
    PII_DATE = _directive("date")


PII_FIELDS = (
    ("email", Predefined.PII_STRING),
    ("first_name", Predefined.PII_STRING),
    ("last_name", Predefined.PII_STRING),
    ("address", Predefined.PII_STRING),
    ("phone_number", Predefined.PII_STRING),
    ("passport", Predefined.PII_STRING),
    ("passport_number", Predefined.PII_STRING),
    ("social_security_number", Predefined.PII_STRING),
    ("socialSecurityNumber", Predefined.PII_STRING),
    ("ssn", Predefined.PII_STRING),
    ("pps", Predefined.PII_STRING),
    ("pps_number", Predefined.PII_STRING),
    ("personal_public_service_number", Predefined.PII_STRING),
    ("date_of_birth", Predefined.PII_DATE),
    ("dob", Predefined.PII_DATE),
)


class TemplateRegistry:
    """Catalog of predefined templates keyed by name."""

    def __init__(self):
        self._templates: dict[str, PredefinedTemplate] = {}

    def register(
        self, name: str, entries: Iterable[tuple[str, Mapping[str, Any]]]
    ) -> PredefinedTemplate:
        """
        Build a template from ``(field_name, directive)`` pairs and register it.

        Args:
            name: Template name used in ``includes``
            entries: Field names with their directive

        Returns:
            The frozen template
        """
        fields: dict[str, Mapping[str, Any]] = {}
        for field_name, directive in entries:
            fields[field_name] = directive

            camelized = inflection.camelize(field_name, False)
            if camelized != field_name:
                fields[camelized] = directive

        template = MappingProxyType(fields)
        self._templates[name] = template
        return template

    def get(self, name: str) -> PredefinedTemplate:
        """Get a template by name, raising ``UnknownTemplate`` if missing."""
        try:
            return self._templates[name]
        except KeyError:
            raise UnknownTemplate(name) from None

    def names(self) -> list[str]:
        return list(self._templates)

    def __contains__(self, name: object) -> bool:
        return name in self._templates


def default_registry() -> TemplateRegistry:
    """Registry holding the templates shipped with the package."""
    registry = TemplateRegistry()
    registry.register("PII", PII_FIELDS)
    return registry


PREDEFINED_TEMPLATES = default_registry()
