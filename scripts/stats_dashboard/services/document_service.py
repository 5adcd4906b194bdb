#------------------------------------------------------------
#                     document_service.py
#            Provides helpers to read, write, and
#            replace marker-delimited dashboard sections.

import os
import re
import sys
from typing import Iterable, Tuple

SECTION_PATTERN_TEMPLATE = r"({start})\n.*?({end})"
MISSING_MARKER_WARNING_TEMPLATE = "WARNING: marker pair not found: {marker!r}"
DUPLICATE_MARKER_WARNING_TEMPLATE = "WARNING: duplicate marker pairs found for {marker!r}; collapsing to first occurrence"
DOCUMENT_TITLE = "# Namespace Analytics"

# This function does replace a marker-delimited block.
# It preserves surrounding content and warns if markers are missing.
def replace_section(content: str, start_marker: str, end_marker: str, new_body: str) -> str:
    pattern = re.compile(
        SECTION_PATTERN_TEMPLATE.format(
            start=re.escape(start_marker),
            end=re.escape(end_marker),
        ),
        re.DOTALL,
    )

    matches = list(pattern.finditer(content))
    if len(matches) > 1:
        print(DUPLICATE_MARKER_WARNING_TEMPLATE.format(marker=start_marker), file=sys.stderr)
        for duplicate in reversed(matches[1:]):
            content = content[:duplicate.start()] + content[duplicate.end():]

    # A function replacement keeps backslashes in rendered text literal.
    result, count = pattern.subn(
        lambda match: f"{match.group(1)}\n{new_body}\n{match.group(2)}",
        content,
        count=1,
    )
    if count == 0:
        print(MISSING_MARKER_WARNING_TEMPLATE.format(marker=start_marker), file=sys.stderr)
    return result

# This function does build an empty document with the given marker pairs.
def build_skeleton(marker_pairs: Iterable[Tuple[str, str]]) -> str:
    blocks = [DOCUMENT_TITLE]
    for start_marker, end_marker in marker_pairs:
        blocks.append(f"{start_marker}\n{end_marker}")
    return "\n\n".join(blocks) + "\n"

# This function does load the dashboard text from the given path.
# A missing file yields a skeleton holding every marker pair.
def load_document(path: str, marker_pairs: Iterable[Tuple[str, str]]) -> str:
    if not os.path.exists(path):
        return build_skeleton(marker_pairs)
    with open(path, "r", encoding="utf-8") as file_handle:
        return file_handle.read()

# This function does save the dashboard text to the given path.
# It writes UTF-8 content to overwrite the target file.
def save_document(path: str, content: str) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as file_handle:
        file_handle.write(content)
