from __future__ import annotations

import io
import os
import sys
import tempfile
import zipfile
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Keep import-time logging out of the real home directory.
os.environ.setdefault("RECIPEFLOW_HOME", tempfile.mkdtemp(prefix="recipeflow-tests-"))

from openpyxl import Workbook

NS_MAIN = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
NS_REL = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
NS_PKG = "http://schemas.openxmlformats.org/package/2006/relationships"
NS_XDR = "http://schemas.openxmlformats.org/drawingml/2006/spreadsheetDrawing"
NS_A = "http://schemas.openxmlformats.org/drawingml/2006/main"
DRAWING_TYPE = NS_REL + "/drawing"
IMAGE_TYPE = NS_REL + "/image"

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"fake-png"
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"fake-jpeg"


def workbook_xml(sheet_names: Sequence[str], sheet_ids: Optional[Sequence[int]] = None) -> str:
    ids = list(sheet_ids) if sheet_ids is not None else list(range(1, len(sheet_names) + 1))
    sheets = "".join(
        f'<sheet name="{name}" sheetId="{sheet_id}" r:id="rId{index}"/>'
        for index, (name, sheet_id) in enumerate(zip(sheet_names, ids), start=1)
    )
    return f'<?xml version="1.0" encoding="UTF-8"?><workbook xmlns="{NS_MAIN}" xmlns:r="{NS_REL}"><sheets>{sheets}</sheets></workbook>'


def rels_xml(relationships: Iterable[Tuple[str, str, str]]) -> str:
    body = "".join(
        f'<Relationship Id="{rel_id}" Type="{rel_type}" Target="{target}"/>'
        for rel_id, rel_type, target in relationships
    )
    return f'<?xml version="1.0" encoding="UTF-8"?><Relationships xmlns="{NS_PKG}">{body}</Relationships>'


def sheet_rels_xml(drawing_target: str = "../drawings/drawing1.xml") -> str:
    return rels_xml([("rId1", DRAWING_TYPE, drawing_target)])


def drawing_rels_xml(targets: Sequence[str], ids: Optional[Sequence[str]] = None) -> str:
    rel_ids = list(ids) if ids is not None else [f"rId{index}" for index in range(1, len(targets) + 1)]
    return rels_xml((rel_id, IMAGE_TYPE, target) for rel_id, target in zip(rel_ids, targets))


def picture_xml(
    embed: str,
    *,
    rot: Optional[str] = None,
    flip_h: Optional[str] = None,
    flip_v: Optional[str] = None,
    crop: Optional[Mapping[str, str]] = None,
) -> str:
    src_rect = ""
    if crop is not None:
        attrs = " ".join(f'{key}="{value}"' for key, value in crop.items())
        src_rect = f"<a:srcRect {attrs}/>"
    xfrm_attrs = []
    if rot is not None:
        xfrm_attrs.append(f'rot="{rot}"')
    if flip_h is not None:
        xfrm_attrs.append(f'flipH="{flip_h}"')
    if flip_v is not None:
        xfrm_attrs.append(f'flipV="{flip_v}"')
    xfrm = f"<a:xfrm {' '.join(xfrm_attrs)}/>"
    return (
        "<xdr:twoCellAnchor><xdr:pic>"
        f'<xdr:blipFill><a:blip r:embed="{embed}"/>{src_rect}<a:stretch/></xdr:blipFill>'
        f"<xdr:spPr>{xfrm}</xdr:spPr>"
        "</xdr:pic></xdr:twoCellAnchor>"
    )


def drawing_xml(pictures: Sequence[str]) -> str:
    return (
        f'<?xml version="1.0" encoding="UTF-8"?><xdr:wsDr xmlns:xdr="{NS_XDR}" '
        f'xmlns:a="{NS_A}" xmlns:r="{NS_REL}">{"".join(pictures)}</xdr:wsDr>'
    )


def zip_bytes(parts: Mapping[str, object], compression: int = zipfile.ZIP_DEFLATED) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression) as archive:
        for name, content in parts.items():
            archive.writestr(name, content if isinstance(content, bytes) else str(content))
    return buffer.getvalue()


def corrupt_member(data: bytes, name: str) -> bytes:
    """Flip the first data byte of ``name`` so reading it fails its CRC (or inflate) check."""

    info = zipfile.ZipFile(io.BytesIO(data)).getinfo(name)
    header = data[info.header_offset : info.header_offset + 30]
    name_length = int.from_bytes(header[26:28], "little")
    extra_length = int.from_bytes(header[28:30], "little")
    offset = info.header_offset + 30 + name_length + extra_length
    damaged = bytearray(data)
    damaged[offset] ^= 0xFF
    return bytes(damaged)


def image_parts(
    sheet_index: int,
    drawing_index: int,
    images: Sequence[Tuple[str, bytes]],
    pictures: Optional[Sequence[str]] = None,
) -> Dict[str, object]:
    """Parts wiring ``sheet<sheet_index>`` to a drawing holding ``images``."""

    targets = [f"../media/{name}" for name, _ in images]
    if pictures is None:
        pictures = [picture_xml(f"rId{index}") for index in range(1, len(images) + 1)]
    parts: Dict[str, object] = {
        f"xl/worksheets/_rels/sheet{sheet_index}.xml.rels": sheet_rels_xml(f"../drawings/drawing{drawing_index}.xml"),
        f"xl/drawings/drawing{drawing_index}.xml": drawing_xml(pictures),
        f"xl/drawings/_rels/drawing{drawing_index}.xml.rels": drawing_rels_xml(targets),
    }
    for name, data in images:
        parts[f"xl/media/{name}"] = data
    return parts


def grid_workbook_bytes(sheets: Mapping[str, Sequence[Sequence[object]]]) -> bytes:
    """Real workbook written by openpyxl with one sheet per entry, in order."""

    workbook = Workbook()
    workbook.remove(workbook.active)
    for name, rows in sheets.items():
        worksheet = workbook.create_sheet(title=name)
        for row in rows:
            worksheet.append(list(row))
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def add_parts(xlsx: bytes, parts: Mapping[str, object]) -> bytes:
    """Copy ``xlsx`` adding (or replacing) the given package parts."""

    source = zipfile.ZipFile(io.BytesIO(xlsx))
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as target:
        for item in source.infolist():
            if item.filename not in parts:
                target.writestr(item, source.read(item.filename))
        for name, content in parts.items():
            target.writestr(name, content if isinstance(content, bytes) else str(content))
    return buffer.getvalue()


RECIPE_TEMPLATE_ROWS: list[list[object]] = [
    ["Anzahl Personen", "", "", 4],
    ["", "", "", "Erstelldatum", "", "", "2023-01-15"],
    ["", "", "", "Geändert am", "", "", "2023-02-01"],
    ["Menge", "", "Einheit", "Produkt", "Bemerkung"],
    [200, "", "g", "Mehl", "Typ 405"],
    ["", "", "", "", ""],
    [1, "", "Prise", "Salz", ""],
    ["Zubereitung"],
    [1, "Mehl sieben"],
    [2, "Salz zugeben"],
    [],
    ["Bemerkungen/Notizen"],
    ["https://example.com/rezept"],
    ["Schmeckt auch kalt"],
]


@pytest.fixture
def recipe_rows() -> list[list[object]]:
    return [list(row) for row in RECIPE_TEMPLATE_ROWS]


@pytest.fixture
def toc_rows() -> list[list[object]]:
    return [
        ["Snacks", "Nachtisch", ""],
        ["Salzig", "", ""],
        ["Brezel", "Äpfelkuchen", "Ohne Spalte"],
        ["", "Zimtschnecken", ""],
    ]


@pytest.fixture
def recipe_workbook(recipe_rows: list[list[object]], toc_rows: list[list[object]]) -> bytes:
    """Workbook with a TOC, a template sheet and two recipes; 'Brezel' has two images."""

    xlsx = grid_workbook_bytes(
        {
            "Inhaltsverzeichnis": toc_rows,
            "Vorlage": [["Menge", "", "", "Produkt"]],
            "Brezel": recipe_rows,
            "Äpfelkuchen": [["Anzahl Personen", 8]],
        }
    )
    pictures = [
        picture_xml("rId1", rot="5400000", crop={"l": "10000"}),
        picture_xml("rId2", flip_h="1"),
    ]
    return add_parts(
        xlsx,
        image_parts(3, 1, [("image1.png", PNG_BYTES), ("image2.jpeg", JPEG_BYTES)], pictures),
    )


@pytest.fixture
def store_root(tmp_path: Path) -> Path:
    return tmp_path / "home"
