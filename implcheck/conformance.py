"""Conformance engine: missing and incompatible properties of an implementation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .model import TypeModel
from .types import Member, Type


# ============================================================
# FINDINGS
# ============================================================


@dataclass(frozen=True)
class MissingProperty:
    property_name: str
    type_name: str
    interface_name: str

    MESSAGE_ID = "missingProperty"

    def data(self) -> dict[str, str]:
        return {
            "propertyName": self.property_name,
            "typeName": self.type_name,
            "interfaceName": self.interface_name,
        }


@dataclass(frozen=True)
class WrongType:
    property_name: str
    actual_type: str
    expected_type: str
    interface_name: str

    MESSAGE_ID = "wrongType"

    def data(self) -> dict[str, str]:
        return {
            "propertyName": self.property_name,
            "actualType": self.actual_type,
            "expectedType": self.expected_type,
            "interfaceName": self.interface_name,
        }


@dataclass(frozen=True)
class InterfaceNotFound:
    interface_name: str

    MESSAGE_ID = "interfaceNotFound"

    def data(self) -> dict[str, str]:
        return {"interfaceName": self.interface_name}


@dataclass(frozen=True)
class UnsupportedGeneric:
    interface_name: str

    MESSAGE_ID = "unsupportedGeneric"

    def data(self) -> dict[str, str]:
        return {"interfaceName": self.interface_name}


Finding = Union[MissingProperty, WrongType, InterfaceNotFound, UnsupportedGeneric]


# ============================================================
# ENGINE
# ============================================================


def find_missing_properties(
    impl: list[Member], iface: list[Member], type_name: str, interface_name: str
) -> list[Finding]:
    """One MissingProperty per interface member the implementation lacks, in interface order."""
    present = {m.name for m in impl}
    findings: list[Finding] = []
    for required in iface:
        if required.name not in present:
            findings.append(MissingProperty(required.name, type_name, interface_name))
    return findings


def find_incompatible_properties(
    impl: list[Member], iface: list[Member], model: TypeModel, interface_name: str
) -> list[Finding]:
    """One WrongType per shared member whose implementation type does not conform."""
    by_name = {m.name: m for m in impl}
    findings: list[Finding] = []
    for required in iface:
        supplied = by_name.get(required.name)
        if supplied is None:
            continue
        if _compatible(supplied, required, model):
            continue
        expected = model.render(_effective_type(required, model))
        if required.readonly:
            expected = "readonly " + expected
        actual = model.render(_effective_type(supplied, model))
        findings.append(WrongType(required.name, actual, expected, interface_name))
    return findings


def check_members(
    impl: list[Member],
    iface: list[Member],
    model: TypeModel,
    type_name: str,
    interface_name: str,
) -> list[Finding]:
    """Missing properties first, then incompatible ones; extras are never reported."""
    findings = find_missing_properties(impl, iface, type_name, interface_name)
    findings.extend(find_incompatible_properties(impl, iface, model, interface_name))
    return findings


def _effective_type(m: Member, model: TypeModel) -> Type:
    if m.optional:
        return model.with_undefined(m.typ)
    return m.typ


def _compatible(supplied: Member, required: Member, model: TypeModel) -> bool:
    if required.readonly and not supplied.readonly:
        return False
    actual = _effective_type(supplied, model)
    expected = _effective_type(required, model)
    if model.is_union(expected):
        # Unions on the interface side describe an allowed range
        return model.is_assignable(actual, expected) or model.is_assignable(expected, actual)
    return model.is_assignable(actual, expected)
