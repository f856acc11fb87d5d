from __future__ import annotations

import zipfile

import pytest

from conftest import (
    DRAWING_TYPE,
    IMAGE_TYPE,
    NS_MAIN,
    NS_REL,
    corrupt_member,
    rels_xml,
    sheet_rels_xml,
    workbook_xml,
    zip_bytes,
)
from recipeflow_io import ManifestError, MalformedFragmentError, PackageReader, SkipReason
from recipeflow_io.relationships import (
    drawing_relationships_path,
    extract_drawing_path,
    extract_image_paths,
    extract_sheet_info,
    indexing_warnings,
    resolve,
    resolve_target,
    sheet_relationships_path,
)


def test_extract_sheet_info_keeps_manifest_order() -> None:
    sheets = extract_sheet_info(workbook_xml(["Inhaltsverzeichnis", "Brezel", "Kuchen"], [5, 2, 9]))

    assert [sheet.name for sheet in sheets] == ["Inhaltsverzeichnis", "Brezel", "Kuchen"]
    assert [sheet.package_index for sheet in sheets] == [1, 2, 3]
    assert [sheet.sheet_id for sheet in sheets] == ["5", "2", "9"]
    assert sheets[1].rel_id == "rId2"


def test_extract_sheet_info_skips_unnamed_sheets() -> None:
    manifest = (
        f'<workbook xmlns="{NS_MAIN}" xmlns:r="{NS_REL}"><sheets>'
        '<sheet sheetId="1" r:id="rId1"/><sheet name="" sheetId="2" r:id="rId2"/>'
        '<sheet name="Kuchen" sheetId="3" r:id="rId3"/>'
        "</sheets></workbook>"
    )

    sheets = extract_sheet_info(manifest)

    assert [sheet.name for sheet in sheets] == ["Kuchen"]
    assert sheets[0].package_index == 3


def test_extract_sheet_info_rejects_broken_manifest() -> None:
    with pytest.raises(ManifestError):
        extract_sheet_info("<workbook><sheets>")


def test_resolve_target_strips_parent_once_and_keeps_absolute() -> None:
    assert resolve_target("../drawings/drawing1.xml") == "xl/drawings/drawing1.xml"
    assert resolve_target("../media/image1.png") == "xl/media/image1.png"
    assert resolve_target("/xl/media/image2.png") == "xl/media/image2.png"


def test_relationship_paths() -> None:
    assert sheet_relationships_path(3) == "xl/worksheets/_rels/sheet3.xml.rels"
    assert drawing_relationships_path("xl/drawings/drawing2.xml") == "xl/drawings/_rels/drawing2.xml.rels"


def test_extract_drawing_path_picks_first_drawing() -> None:
    xml = rels_xml(
        [
            ("rId1", "http://example.com/hyperlink", "https://example.com"),
            ("rId2", DRAWING_TYPE, "../drawings/drawing4.xml"),
            ("rId3", DRAWING_TYPE, "../drawings/drawing5.xml"),
        ]
    )
    assert extract_drawing_path(xml) == "xl/drawings/drawing4.xml"
    assert extract_drawing_path(rels_xml([])) is None


def test_extract_image_paths_in_relationship_order() -> None:
    xml = rels_xml(
        [
            ("rId2", IMAGE_TYPE, "../media/image7.png"),
            ("rId9", "http://example.com/chart", "../charts/chart1.xml"),
            ("rId1", IMAGE_TYPE, "../media/image3.jpeg"),
        ]
    )
    assert extract_image_paths(xml) == ["xl/media/image7.png", "xl/media/image3.jpeg"]


def test_extract_image_paths_raises_on_malformed_xml() -> None:
    with pytest.raises(MalformedFragmentError) as excinfo:
        extract_image_paths("<Relationships", part="xl/drawings/_rels/drawing1.xml.rels")
    assert excinfo.value.part == "xl/drawings/_rels/drawing1.xml.rels"


def test_resolve_reports_each_sheet() -> None:
    data = zip_bytes(
        {
            "xl/workbook.xml": workbook_xml(["A", "B", "C"]),
            "xl/worksheets/_rels/sheet1.xml.rels": sheet_rels_xml("../drawings/drawing1.xml"),
            "xl/worksheets/_rels/sheet3.xml.rels": "<Relationships",
        }
    )
    with PackageReader.from_bytes(data) as package:
        resolutions = resolve(package)

    assert [item.sheet.name for item in resolutions] == ["A", "B", "C"]
    assert resolutions[0].drawing_path == "xl/drawings/drawing1.xml"
    assert resolutions[0].outcome is None
    assert resolutions[1].outcome.reason is SkipReason.NO_RELATIONSHIPS
    assert resolutions[2].outcome.reason is SkipReason.MALFORMED_RELATIONSHIPS


def test_resolve_without_manifest_fails() -> None:
    with PackageReader.from_bytes(zip_bytes({"xl/styles.xml": "<styleSheet/>"})) as package:
        with pytest.raises(ManifestError):
            resolve(package)


def test_indexing_warnings_flag_reordered_sheets() -> None:
    data = zip_bytes(
        {
            "xl/workbook.xml": workbook_xml(["Zweites", "Erstes"], [2, 1]),
            "xl/_rels/workbook.xml.rels": rels_xml(
                [
                    ("rId1", "worksheet", "worksheets/sheet2.xml"),
                    ("rId2", "worksheet", "worksheets/sheet1.xml"),
                ]
            ),
        }
    )
    with PackageReader.from_bytes(data) as package:
        sheets = extract_sheet_info(package.read_text("xl/workbook.xml"))
        warnings = indexing_warnings(package, sheets)

    assert len(warnings) == 2
    assert "sheet2.xml" in warnings[0]
    assert "position 1" in warnings[0]


def test_indexing_warnings_ignore_unreadable_workbook_relationships() -> None:
    data = zip_bytes(
        {
            "xl/workbook.xml": workbook_xml(["Erstes", "Zweites"]),
            "xl/_rels/workbook.xml.rels": rels_xml(
                [
                    ("rId1", "worksheet", "worksheets/sheet2.xml"),
                    ("rId2", "worksheet", "worksheets/sheet1.xml"),
                ]
            ),
        },
        zipfile.ZIP_STORED,
    )
    with PackageReader.from_bytes(corrupt_member(data, "xl/_rels/workbook.xml.rels")) as package:
        sheets = extract_sheet_info(package.read_text("xl/workbook.xml"))
        warnings = indexing_warnings(package, sheets)

    assert warnings == []
