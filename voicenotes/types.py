# voicenotes/types.py
from typing import Any, Dict, Literal

PropertyType = Literal["title", "select", "number", "date", "rich_text"]

# Loose key/value bag as returned by the categorizer
CategorizedRecord = Dict[str, Any]

# Property name -> declared type tag
PropertySchema = Dict[str, PropertyType]

# Property name -> value shaped for the page-create API
NormalizedRecord = Dict[str, Dict[str, Any]]
