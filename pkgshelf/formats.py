from __future__ import annotations

ENTRY_SEPARATOR = "="
COMMENT_MARKER = "#"
COMMENT_ESCAPE = "\\"

INDEX_KIND_SOURCE = "source"
INDEX_KINDS: frozenset[str] = frozenset({INDEX_KIND_SOURCE})

PACKAGE_PREFIX_DELIMITER = ":"
PATH_SEPARATOR = "/"

TEMPLATE_PLACEHOLDER = "{name}"
