#!/usr/bin/env python3
"""
Patient details extractor.
Turns a CureMD patient details page into one structured JSON document:
the schema-driven sections, every populated input on the page, the search
result that led here (if any), and extraction metadata.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from correlation import CorrelationStore, load_search_context
from field_resolver import FieldResolver
from patient_schema import METADATA_FIELDS, PATIENT_SCHEMA, SCHEMA_VERSION, iter_fields

RAW_INPUT_TYPES = ("text", "tel", "email")


def empty_section(node):
    """Same shape as the schema node, every leaf None."""
    return {key: empty_section(value) if isinstance(value, dict) else None
            for key, value in node.items()}


def _fill_section(resolver, node, target):
    for name, field_spec in iter_fields(node):
        *parents, leaf = name.split(".")
        section = target
        for part in parents:
            section = section[part]
        section[leaf] = resolver.resolve(field_spec)


def extract_sections(resolver, schema=None):
    """
    Resolve every schema field, one section at a time.

    A section that raises keeps None for whatever it had not resolved yet;
    the remaining sections still run.

    Args:
        resolver: FieldResolver over the details page
        schema: Section table (default: PATIENT_SCHEMA)

    Returns:
        Dictionary of section name -> resolved fields
    """
    schema = PATIENT_SCHEMA if schema is None else schema
    data = empty_section(schema)
    for section, node in schema.items():
        try:
            _fill_section(resolver, node, data[section])
        except Exception as e:
            print(f"⚠️  Error extracting {section}: {e}")
    return data


def extract_all_inputs(document) -> Dict[str, str]:
    """
    Collect every populated text-like input, select and textarea by id.

    Selects contribute their underlying value here, not the displayed text.
    """
    inputs = {}
    for element in document.find_all(["input", "select", "textarea"]):
        element_id = element.get('id')
        if not element_id:
            continue
        if element.name == "input":
            input_type = (element.get('type') or "text").lower()
            if input_type not in RAW_INPUT_TYPES:
                continue
            value = element.get('value') or ""
        elif element.name == "select":
            value = _select_value(element)
        else:
            value = element.get_text()
        if value:
            inputs[element_id] = value
    return inputs


def _select_value(element):
    options = element.find_all("option")
    selected = [o for o in options if o.has_attr("selected")]
    if element.has_attr("multiple"):
        chosen = selected[0] if selected else None
    else:
        chosen = selected[-1] if selected else (options[0] if options else None)
    if chosen is None:
        return ""
    value = chosen.get('value')
    return value if value is not None else " ".join(chosen.get_text().split())


def iso_timestamp(moment=None):
    """ISO-8601 UTC timestamp with milliseconds and a Z suffix."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.") + \
        f"{moment.microsecond // 1000:03d}Z"


def extract_patient_details(snapshot, store=None) -> Dict[str, Any]:
    """
    Extract the full patient record from a details page snapshot.

    Args:
        snapshot: PageSnapshot of the details page
        store: CorrelationStore to read the search context from
            (default: a store over the snapshot's sessionStorage)

    Returns:
        Dictionary with extractedData, rawInputs, searchContext and metadata
    """
    print("\n=== Extracting Patient Details ===\n")

    document = snapshot.document
    resolver = FieldResolver(document, PATIENT_SCHEMA)
    if store is None:
        store = CorrelationStore(snapshot.session_storage)

    extracted = extract_sections(resolver)

    try:
        raw_inputs = extract_all_inputs(document)
    except Exception as e:
        print(f"⚠️  Error collecting raw inputs: {e}")
        raw_inputs = {}

    metadata = {'extractedAt': iso_timestamp()}
    for key, logical_field in METADATA_FIELDS.items():
        metadata[key] = resolver.resolve(logical_field)
    metadata['pageUrl'] = snapshot.url
    metadata['schemaVersion'] = SCHEMA_VERSION

    return {
        'extractedData': extracted,
        'rawInputs': raw_inputs,
        'searchContext': load_search_context(store),
        'metadata': metadata,
    }
