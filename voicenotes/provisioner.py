import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from voicenotes.clients import NotionClient
from voicenotes.errors import SchemaError, VoiceNotesError
from voicenotes.normalizers import get_default_normalizer
from voicenotes.settings import EXPECTED_SCHEMA
from voicenotes.types import CategorizedRecord, PropertySchema

log = logging.getLogger(__name__)


@dataclass
class ProvisionResult:
    """What one provisioning pass found and did."""
    ok: bool
    title_field: Optional[str] = None
    created: List[str] = field(default_factory=list)
    mismatched: Dict[str, Tuple[str, str]] = field(default_factory=dict)  # name -> (actual, expected)
    error: Optional[str] = None


# --------------------------------------------------------------------
# Schema helpers (pure)
# --------------------------------------------------------------------
def schema_of(database: Dict[str, Any]) -> PropertySchema:
    """Property name -> type tag, from a database object."""
    props = database.get("properties")
    if not isinstance(props, dict):
        return {}
    return {
        name: cfg["type"]
        for name, cfg in props.items()
        if isinstance(cfg, dict) and "type" in cfg
    }


def find_title_field(actual: PropertySchema) -> str:
    """Name of the one `title` property; the store requires exactly one per database."""
    for name, kind in actual.items():
        if kind == "title":
            return name
    raise SchemaError("no title field")


def diff_schema(expected: PropertySchema, actual: PropertySchema):
    """Return (missing, mismatched) for `expected` against `actual`."""
    missing: PropertySchema = {}
    mismatched: Dict[str, Tuple[str, str]] = {}
    for name, kind in expected.items():
        have = actual.get(name)
        if have is None:
            missing[name] = kind
        elif have != kind:
            mismatched[name] = (have, kind)
    return missing, mismatched


def property_config(kind: str) -> Dict[str, Any]:
    """Property definition with an empty type-specific configuration."""
    return {"type": kind, kind: {}}


# --------------------------------------------------------------------
# Remote operations
# --------------------------------------------------------------------
def provision(client: NotionClient, expected: PropertySchema = EXPECTED_SCHEMA) -> ProvisionResult:
    """
    Bring the database up to `expected` by adding missing properties in one PATCH.
    Type mismatches are warned about, never changed in place. Idempotent.
    """
    try:
        actual = schema_of(client.get_database())
        title = find_title_field(actual)
    except VoiceNotesError as e:
        log.error("schema check failed: %s", e)
        return ProvisionResult(ok=False, error=str(e))
    log.info("found title property: %s", title)

    missing, mismatched = diff_schema(expected, actual)
    for name, (have, want) in mismatched.items():
        log.warning("property %r exists but has type %r instead of %r", name, have, want)

    if not missing:
        log.info("all required properties exist in the database")
        return ProvisionResult(ok=True, title_field=title, mismatched=mismatched)

    try:
        client.update_database({name: property_config(kind) for name, kind in missing.items()})
    except VoiceNotesError as e:
        log.error("database update failed: %s", e)
        return ProvisionResult(ok=False, title_field=title, mismatched=mismatched, error=str(e))

    log.info("added properties: %s", ", ".join(missing))
    return ProvisionResult(ok=True, title_field=title, created=list(missing), mismatched=mismatched)


def ensure_schema(client: NotionClient, expected: PropertySchema = EXPECTED_SCHEMA) -> Tuple[Optional[str], bool]:
    """(title_field_name, ok) for the target database, creating missing properties first."""
    res = provision(client, expected)
    return res.title_field, res.ok


def push_record(
    client: NotionClient,
    record: CategorizedRecord,
    expected: PropertySchema = EXPECTED_SCHEMA,
    normalizer=None,
) -> Dict[str, Any]:
    """
    Provision, normalize and create one page.
    The title property name flows from provisioning straight into the normalizer.
    Properties found with the wrong type are left out of the page.
    Raises SchemaError when provisioning fails (nothing is written then).
    """
    res = provision(client, expected)
    if not res.ok or not res.title_field:
        raise SchemaError(f"failed to ensure database properties: {res.error or 'unknown error'}")

    normalizer = normalizer or get_default_normalizer()
    properties = normalizer.normalize_record(record, res.title_field)

    for name in res.mismatched:
        if name in properties:
            log.warning("leaving out %r: wrong property type in the database", name)
            del properties[name]

    page = client.create_page(properties)
    log.info("created page %s", page.get("id", "<unknown id>"))
    return page
