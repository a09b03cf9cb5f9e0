#!/usr/bin/env python3
"""
Field Resolver
Finds the value of a logical field on a page by trying its known physical
locations in order (element ids first, label text as a last resort).
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

ID = "id"
LABEL = "label"
TEXT = "text"

CONTROL_TAGS = ["input", "select", "textarea"]


@dataclass(frozen=True)
class Locator:
    kind: str
    target: str
    phrase: Optional[str] = None


@dataclass(frozen=True)
class FieldSpec:
    locators: Tuple[Locator, ...]
    transform: Optional[Callable[[Any], Any]] = None


def by_id(element_id):
    return Locator(ID, element_id)


def by_label(label_text):
    return Locator(LABEL, label_text)


def by_text(element_id, phrase):
    """Element text contains `phrase` -> True/False."""
    return Locator(TEXT, element_id, phrase)


def candidates(*targets, transform=None):
    """
    Build a FieldSpec from candidate locators.

    Plain strings are taken as element ids, so a table row can be written as
    candidates('cmbVSEX', 'cmbSEX').

    Args:
        *targets: Element ids or Locator objects, in priority order
        transform: Optional callable applied to a resolved (non-absent) value

    Returns:
        FieldSpec
    """
    locators = tuple(t if isinstance(t, Locator) else by_id(t) for t in targets)
    return FieldSpec(locators=locators, transform=transform)


def _clean_text(text):
    return " ".join((text or "").split())


def read_select(element):
    """Displayed text of the selected option (never the option's code)."""
    options = element.find_all("option")
    selected = [o for o in options if o.has_attr("selected")]
    if element.has_attr("multiple"):
        chosen = selected[0] if selected else None
    elif selected:
        # the browser keeps the last option marked selected
        chosen = selected[-1]
    else:
        chosen = options[0] if options else None
    if chosen is None:
        return ""
    return _clean_text(chosen.get_text())


def read_control(document, element):
    """
    Read one control using the rule for its kind.

    Args:
        document: Parsed document the element belongs to
        element: BeautifulSoup tag

    Returns:
        str, bool, or None (radio group with nothing checked)
    """
    tag = element.name
    input_type = (element.get('type') or "").lower()

    if tag == "select":
        return read_select(element)
    if tag == "input" and input_type == "checkbox":
        return element.has_attr("checked")
    if tag == "input" and input_type == "radio":
        name = element.get('name')
        group = document.find_all("input", attrs={'name': name}) if name else [element]
        for member in group:
            if member.has_attr("checked"):
                return member.get('value', "on")
        return None
    if tag == "textarea":
        return element.get_text()
    if tag in ("input", "button", "option"):
        return element.get('value') or ""
    return ""


class FieldResolver:
    """
    Resolves logical fields against one parsed document.

    Args:
        document: BeautifulSoup document
        table: Optional nested mapping of section -> field -> FieldSpec used to
            look up dotted logical names like "patientInfo.firstName"
    """

    def __init__(self, document, table: Optional[Dict[str, Any]] = None):
        self.document = document
        self.table = table or {}

    def get_value(self, element_id):
        """Value of the control with this id, or None if there is no such element."""
        element = self.document.find(id=element_id)
        if element is None:
            return None
        return read_control(self.document, element)

    def get_value_by_label(self, label_text):
        """
        Best-effort lookup of a control through its label text.

        The first label-like element (label or td, document order) whose text
        contains label_text is used, even if other labels also match.
        """
        for label in self.document.find_all(["label", "td"]):
            if label_text not in label.get_text().strip():
                continue
            control = None
            sibling = label.find_next_sibling()
            if sibling is not None:
                control = sibling.find(CONTROL_TAGS)
            if control is None and label.parent is not None:
                control = label.parent.find(CONTROL_TAGS)
            if control is None:
                return None
            return read_control(self.document, control)
        return None

    def get_text_flag(self, element_id, phrase):
        element = self.document.find(id=element_id)
        if element is None:
            return None
        return phrase in element.get_text()

    def read_locator(self, locator):
        if locator.kind == ID:
            return self.get_value(locator.target)
        if locator.kind == LABEL:
            return self.get_value_by_label(locator.target)
        if locator.kind == TEXT:
            return self.get_text_flag(locator.target, locator.phrase)
        raise ValueError(f"Unknown locator kind: {locator.kind}")

    def lookup(self, logical_field):
        """Find the FieldSpec for a dotted logical name in the table."""
        node = self.table
        for part in logical_field.split("."):
            if not isinstance(node, dict) or part not in node:
                raise KeyError(logical_field)
            node = node[part]
        if not isinstance(node, FieldSpec):
            raise KeyError(logical_field)
        return node

    def resolve(self, logical_field):
        """
        Resolve a logical field to its value.

        Identifier candidates are tried before label candidates. The first
        non-empty read wins; if every candidate that exists reads empty, the
        first of those empty reads is returned ("" or False). A field with no
        candidate on the page resolves to None.

        Args:
            logical_field: FieldSpec, or a dotted name looked up in the table

        Returns:
            str, bool, or None
        """
        spec = logical_field if isinstance(logical_field, FieldSpec) else self.lookup(logical_field)
        ordered = [l for l in spec.locators if l.kind != LABEL] + \
                  [l for l in spec.locators if l.kind == LABEL]

        value = None
        for locator in ordered:
            current = self.read_locator(locator)
            if current is None:
                continue
            if current:
                value = current
                break
            if value is None:
                value = current

        if value is not None and spec.transform is not None:
            value = spec.transform(value)
        return value
