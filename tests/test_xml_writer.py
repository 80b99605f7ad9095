from __future__ import annotations

import pytest

from ecf.services.xml_writer import XMLWriter


def test_layout_and_declaration():
    w = XMLWriter("Root", {"xmlns": "urn:x"})
    with w.element("A"):
        w.field("B", "1")
    assert w.tostring() == (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<Root xmlns="urn:x">\n'
        "  <A>\n"
        "    <B>1</B>\n"
        "  </A>\n"
        "</Root>"
    )


def test_text_is_escaped():
    w = XMLWriter("Root")
    w.field("Name", "A & <B>")
    assert "<Name>A &#38; &#60;B&#62;</Name>" in w.tostring()


def test_none_and_empty_values_skipped():
    w = XMLWriter("Root")
    w.field("A", None)
    w.field("B", "")
    w.field("C", 0)
    xml = w.tostring()
    assert "<A>" not in xml
    assert "<B>" not in xml
    assert "<C>0</C>" in xml


def test_empty_containers_dropped():
    w = XMLWriter("Root")
    with w.element("Outer"), w.element("Inner"):
        w.field("X", None)
    w.field("Y", "1")
    xml = w.tostring()
    assert "Outer" not in xml
    assert "Inner" not in xml
    assert "<Y>1</Y>" in xml


def test_unclosed_element_raises():
    w = XMLWriter("Root")
    cm = w.element("Open")
    cm.__enter__()
    with pytest.raises(RuntimeError, match="Open"):
        w.tostring()
