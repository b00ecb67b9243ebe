"""
debugloop: unit tests for the living document store

File: tests/unit/living_doc/test_store.py

Purpose
- Validate block splitting, body preservation, and atomic re-serialization.

What this test file should cover
- Documents without a block read as ``None``.
- The body after the closing delimiter survives a write byte-for-byte.
- CRLF documents keep CRLF line endings.
- Writing into a file without a block installs the default body skeleton.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from debugloop.constants import DEFAULT_BODY
from debugloop.frontmatter import StrValue, map_from_plain, to_plain
from debugloop.living_doc import read_document, render_document, split_document, write_document
from debugloop.utils.fs import atomic_write, resolve_under

_DOC = """---
bug_slug: widget-crash
phase: implement
phase_iteration: 2
---

# Debug loop: widget-crash

Notes with trailing spaces
and a final line without newline"""


def test_split_document_separates_block_and_body() -> None:
    split = split_document(_DOC)

    assert split is not None
    assert split.block_lines == ("bug_slug: widget-crash", "phase: implement", "phase_iteration: 2")
    assert split.body.startswith("\n# Debug loop: widget-crash")
    assert split.newline == "\n"


@pytest.mark.parametrize(
    "content",
    ["", "no front matter here\n", "---\nunterminated: true\n", "\n---\nlate: 1\n---\n"],
)
def test_split_document_without_block_returns_none(content: str) -> None:
    assert split_document(content) is None


def test_read_document_returns_none_for_plain_markdown(tmp_path: Path) -> None:
    path = tmp_path / "notes.md"
    path.write_text("# Just notes\n", encoding="utf-8")

    assert read_document(path) is None


def test_read_document_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        read_document(tmp_path / "absent.md")


def test_write_preserves_body_byte_for_byte(tmp_path: Path) -> None:
    path = tmp_path / "doc.md"
    path.write_text(_DOC, encoding="utf-8", newline="")

    document = read_document(path)
    assert document is not None
    document.front_matter.set("phase", StrValue("verify"))
    write_document(path, document.front_matter, document=document)

    written = path.read_text(encoding="utf-8")
    assert written.endswith(_DOC.split("---\n", 2)[2])
    reread = read_document(path)
    assert reread is not None
    assert to_plain(reread.front_matter)["phase"] == "verify"
    assert reread.body == document.body


def test_write_without_document_captures_body_from_disk(tmp_path: Path) -> None:
    path = tmp_path / "doc.md"
    path.write_text(_DOC, encoding="utf-8", newline="")

    write_document(path, map_from_plain({"bug_slug": "widget-crash", "phase": "verify"}))

    reread = read_document(path)
    assert reread is not None
    assert reread.body == split_document(_DOC).body  # type: ignore[union-attr]


def test_crlf_documents_keep_crlf(tmp_path: Path) -> None:
    path = tmp_path / "doc.md"
    raw = "---\r\nphase: implement\r\n---\r\nBody line\r\n"
    path.write_bytes(raw.encode("utf-8"))

    document = read_document(path)
    assert document is not None
    assert document.newline == "\r\n"
    write_document(path, document.front_matter, document=document)

    data = path.read_bytes().decode("utf-8")
    assert data.startswith("---\r\n# Loop control\r\nphase: implement\r\n---\r\n")
    assert data.endswith("Body line\r\n")
    assert "\n" not in data.replace("\r\n", "")


def test_writing_into_file_without_block_installs_default_body(tmp_path: Path) -> None:
    path = tmp_path / "doc.md"
    path.write_text("existing notes\n", encoding="utf-8")

    write_document(path, map_from_plain({"bug_slug": "x"}))

    text = path.read_text(encoding="utf-8")
    assert text == (
        "---\n# Identity\nbug_slug: x\n---\n" + DEFAULT_BODY + "\nexisting notes\n"
    )


def test_writing_new_file_creates_parents(tmp_path: Path) -> None:
    path = tmp_path / ".claude" / "debug-loop-x.md"

    write_document(path, map_from_plain({"bug_slug": "x"}))

    assert path.read_text(encoding="utf-8") == "---\n# Identity\nbug_slug: x\n---\n" + DEFAULT_BODY


def test_render_document_with_empty_front_matter() -> None:
    assert render_document(map_from_plain({}), "body\n") == "---\n---\nbody\n"


def test_atomic_write_replaces_content_and_leaves_no_temp_files(tmp_path: Path) -> None:
    target = tmp_path / "file.md"
    atomic_write(target, "one\n")
    atomic_write(target, "two\r\n")

    assert target.read_bytes() == b"two\r\n"
    assert [entry.name for entry in tmp_path.iterdir()] == ["file.md"]


def test_resolve_under_keeps_absolute_paths(tmp_path: Path) -> None:
    absolute = tmp_path / "abs.md"
    assert resolve_under(tmp_path, str(absolute)) == absolute
    assert resolve_under(tmp_path, "docs/a.md") == tmp_path / "docs" / "a.md"


def test_unicode_line_separators_stay_inside_values_and_body(tmp_path: Path) -> None:
    path = tmp_path / "doc.md"
    path.write_text(
        "---\ntitle: Crash on login after upgrade\nphase: verify\n---\nbody\x0cpage end\n",
        encoding="utf-8",
        newline="",
    )

    document = read_document(path)
    assert document is not None
    assert document.front_matter.get("title") == StrValue("Crash on login after upgrade")
    write_document(path, document.front_matter, document=document)

    reread = read_document(path)
    assert reread is not None
    assert to_plain(reread.front_matter) == {
        "title": "Crash on login after upgrade",
        "phase": "verify",
    }
    assert reread.body == "body\x0cpage end\n"
