"""
DXF reader for the 2D entities the compiler understands.

A DXF file is a flat stream of (group code, value) line pairs. The reader
finds the ENTITIES section and turns LINE, LWPOLYLINE, POLYLINE, CIRCLE and
ARC records into entities; everything else is skipped. Reading is
best-effort: bad pairs and missing codes are reported as diagnostics and
leave zeros behind, they never abort the drawing.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from core.entities import Arc, Circle, GeometricEntity, Line, Polyline
from utils.errors import ErrorCollector, ErrorType

logger = logging.getLogger(__name__)


@dataclass
class DXFTag:
    """One group-code/value pair; line_number is that of the value line."""
    code: int
    value: str
    line_number: int


@dataclass
class DXFRecord:
    """An entity marker (code 0) and the tags that follow it."""
    marker: DXFTag
    tags: List[DXFTag] = field(default_factory=list)

    @property
    def kind(self) -> str:
        return self.marker.value.upper()


class DXFTokenizer:
    """Splits DXF text into group-code/value pairs."""

    def __init__(self, error_collector: ErrorCollector):
        self.error_collector = error_collector

    def tokenize(self, dxf_text: str) -> List[DXFTag]:
        lines = [line.strip() for line in dxf_text.split('\n')]
        tags = []
        i = 0
        while i < len(lines):
            code_text = lines[i]
            if not code_text:
                i += 1
                continue
            try:
                code = int(code_text)
            except ValueError:
                # Out of step with the pairs; try again from the next line
                self.error_collector.add_warning(i + 1, f"Expected a group code, got '{code_text}'",
                                                 ErrorType.FORMAT)
                i += 1
                continue
            if i + 1 >= len(lines):
                self.error_collector.add_warning(i + 1, f"Group code {code} has no value",
                                                 ErrorType.FORMAT)
                break
            tags.append(DXFTag(code, lines[i + 1], i + 2))
            i += 2
        return tags


class DXFParser:
    """Reads geometric entities from DXF text."""

    SUPPORTED = ('LINE', 'LWPOLYLINE', 'POLYLINE', 'CIRCLE', 'ARC')

    # Group codes an entity needs to be complete
    REQUIRED_CODES = {
        'LINE': (10, 20, 11, 21),
        'CIRCLE': (10, 20, 40),
        'ARC': (10, 20, 40, 50, 51),
    }

    def __init__(self, error_collector: Optional[ErrorCollector] = None):
        self.error_collector = error_collector if error_collector is not None else ErrorCollector()
        self.tokenizer = DXFTokenizer(self.error_collector)

    def parse(self, dxf_text: str) -> List[GeometricEntity]:
        """Parse DXF text into entities, in file order."""
        self.error_collector.clear()
        tags = self.tokenizer.tokenize(dxf_text)

        start = self._find_entities_section(tags)
        if start is None:
            self.error_collector.add_warning(0, "No ENTITIES section found", ErrorType.FORMAT)
            logger.warning("DXF text has no ENTITIES section")
            return []

        records = self._collect_records(tags, start)
        entities = []
        i = 0
        while i < len(records):
            record = records[i]
            kind = record.kind
            if kind == 'POLYLINE':
                vertices, i = self._collect_vertices(records, i + 1)
                entities.append(self._build_polyline(record, vertices))
                continue

            if kind == 'LINE':
                entities.append(self._build_line(record))
            elif kind == 'LWPOLYLINE':
                entities.append(self._build_lwpolyline(record))
            elif kind == 'CIRCLE':
                entities.append(self._build_circle(record))
            elif kind == 'ARC':
                entities.append(self._build_arc(record))
            else:
                logger.debug(f"Skipping unsupported DXF entity {kind} at line {record.marker.line_number}")
            i += 1

        logger.info(f"Read {len(entities)} entities from DXF")
        return entities

    def _find_entities_section(self, tags: List[DXFTag]) -> Optional[int]:
        for index, tag in enumerate(tags):
            if tag.code == 2 and tag.value.upper() == 'ENTITIES':
                return index + 1
        return None

    def _collect_records(self, tags: List[DXFTag], start: int) -> List[DXFRecord]:
        """Group the section's tags by their code-0 markers, up to ENDSEC."""
        records: List[DXFRecord] = []
        for tag in tags[start:]:
            if tag.code == 0:
                if tag.value.upper() == 'ENDSEC':
                    break
                records.append(DXFRecord(tag))
            elif records:
                records[-1].tags.append(tag)
        return records

    def _collect_vertices(self, records: List[DXFRecord], start: int) -> Tuple[List[DXFRecord], int]:
        """VERTEX records following a POLYLINE; returns them and the next index."""
        vertices = []
        i = start
        while i < len(records) and records[i].kind == 'VERTEX':
            vertices.append(records[i])
            i += 1
        if i < len(records) and records[i].kind == 'SEQEND':
            i += 1
        return vertices, i

    # Entity builders

    def _build_line(self, record: DXFRecord) -> Line:
        values = self._numeric_values(record)
        return Line(values.get(10, 0.0), values.get(20, 0.0),
                    values.get(11, 0.0), values.get(21, 0.0))

    def _build_circle(self, record: DXFRecord) -> Circle:
        values = self._numeric_values(record)
        return Circle(values.get(10, 0.0), values.get(20, 0.0), values.get(40, 0.0))

    def _build_arc(self, record: DXFRecord) -> Arc:
        values = self._numeric_values(record)
        return Arc(values.get(10, 0.0), values.get(20, 0.0), values.get(40, 0.0),
                   values.get(50, 0.0), values.get(51, 0.0))

    def _build_lwpolyline(self, record: DXFRecord) -> Polyline:
        """
        Each code 10 starts a new vertex and flushes the previous one.

        A separate pending flag decides whether a vertex is open, so a real
        vertex at (0, 0) is kept like any other.
        """
        points = []
        closed = False
        pending = False
        x = y = 0.0
        for tag in record.tags:
            if tag.code == 10:
                if pending:
                    points.append((x, y))
                x, y = self._to_float(tag), 0.0
                pending = True
            elif tag.code == 20:
                y = self._to_float(tag)
                pending = True
            elif tag.code == 70:
                closed = self._is_closed(tag)
        if pending:
            points.append((x, y))
        return Polyline(points, closed)

    def _build_polyline(self, record: DXFRecord, vertices: List[DXFRecord]) -> Polyline:
        """Old-style POLYLINE: the header's own point is a placeholder, vertices follow."""
        closed = any(self._is_closed(tag) for tag in record.tags if tag.code == 70)
        points = []
        for vertex in vertices:
            values = self._numeric_values(vertex, check_required=False)
            points.append((values.get(10, 0.0), values.get(20, 0.0)))
        return Polyline(points, closed)

    # Value helpers

    def _numeric_values(self, record: DXFRecord, check_required: bool = True) -> Dict[int, float]:
        """First value of every numeric group code in the record."""
        values: Dict[int, float] = {}
        for tag in record.tags:
            if 10 <= tag.code <= 59 and tag.code not in values:
                values[tag.code] = self._to_float(tag)
        if check_required:
            self._report_missing(record, values.keys())
        return values

    def _report_missing(self, record: DXFRecord, present: Iterable[int]):
        required = self.REQUIRED_CODES.get(record.kind, ())
        missing = [code for code in required if code not in present]
        if missing:
            codes = ", ".join(str(code) for code in missing)
            self.error_collector.add_warning(
                record.marker.line_number,
                f"{record.kind} is missing group codes {codes}; using 0",
                ErrorType.FORMAT
            )

    def _to_float(self, tag: DXFTag) -> float:
        try:
            value = float(tag.value)
        except ValueError:
            value = math.nan
        if math.isfinite(value):
            return value
        self.error_collector.add_warning(
            tag.line_number, f"Invalid number '{tag.value}' for group code {tag.code}; using 0",
            ErrorType.FORMAT
        )
        return 0.0

    def _is_closed(self, tag: DXFTag) -> bool:
        try:
            flags = int(float(tag.value))
        except (ValueError, OverflowError):
            self.error_collector.add_warning(
                tag.line_number, f"Invalid polyline flags '{tag.value}'", ErrorType.FORMAT
            )
            return False
        return bool(flags & 1)
