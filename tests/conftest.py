"""Shared fixtures for the simulator test suite."""

from __future__ import annotations

import pytest

from core.parser import GCodeParser
from utils.errors import ErrorCollector


SQUARE_GCODE = """%
(Square 0,0 - 20,20)
G21
G90
G0 X0 Y0
G1 X20 Y0 F300
G1 Y20
G1 X0
G1 Y0
G0 X0 Y0
M30
%"""


def _dxf_lines(entities):
    lines = ["0", "SECTION", "2", "HEADER", "9", "$ACADVER", "1", "AC1009",
             "0", "ENDSEC", "0", "SECTION", "2", "ENTITIES"]
    for entity in entities:
        for code, value in entity:
            lines.append(str(code))
            lines.append(str(value))
    lines.extend(["0", "ENDSEC", "0", "EOF"])
    return lines


@pytest.fixture
def errors():
    return ErrorCollector()


@pytest.fixture
def parser(errors):
    return GCodeParser(errors)


@pytest.fixture
def square_gcode():
    """Closed 20 mm square: one rapid, four cuts, one rapid home."""
    return SQUARE_GCODE


@pytest.fixture
def dxf_document():
    """Build DXF text from entities given as lists of (group code, value) pairs."""
    def build(*entities, indent=False):
        lines = _dxf_lines(entities)
        if indent:
            # Real files right-align group codes
            lines = [f"  {line}" if i % 2 == 0 else line for i, line in enumerate(lines)]
        return "\n".join(lines) + "\n"
    return build


@pytest.fixture
def line_entity():
    return [(0, "LINE"), (8, "0"), (10, 0.0), (20, 0.0), (30, 0.0),
            (11, 50.0), (21, 25.0), (31, 0.0)]


@pytest.fixture
def circle_entity():
    return [(0, "CIRCLE"), (8, "0"), (10, 10.0), (20, 10.0), (30, 0.0), (40, 5.0)]


@pytest.fixture
def arc_entity():
    return [(0, "ARC"), (8, "0"), (10, 0.0), (20, 0.0), (30, 0.0), (40, 10.0),
            (50, 350.0), (51, 10.0)]
