"""Living document storage, typed projection, and discovery."""

from debugloop.living_doc.discovery import (
    DiscoveryPolicy,
    DiscoverySettings,
    find_living_doc,
    list_candidates,
)
from debugloop.living_doc.model import LivingDoc, truthy
from debugloop.living_doc.store import (
    Document,
    read_document,
    render_document,
    split_document,
    write_document,
)
from debugloop.living_doc.template import default_test_path, new_front_matter

__all__ = [
    "DiscoveryPolicy",
    "DiscoverySettings",
    "Document",
    "LivingDoc",
    "default_test_path",
    "find_living_doc",
    "list_candidates",
    "new_front_matter",
    "read_document",
    "render_document",
    "split_document",
    "truthy",
    "write_document",
]
