from __future__ import annotations

import base64
from pathlib import Path

import pytest

from conftest import JPEG_BYTES, PNG_BYTES
from recipeflow_io import ImagePayload, ImageTransform
from recipeflow_persist import ImageBlob, ImageStore, StoreValidationError, init_image_store
from recipeflow_persist.stores import image_store as image_store_module
from recipeflow_persist.utils.excel_io import store_lock


def _payload(path: str, data: bytes, mime: str) -> ImagePayload:
    return ImagePayload(path=path, data=data, mime_type=mime)


def test_image_store_workflow(store_root: Path) -> None:
    store_path = init_image_store(store_root)
    assert store_path.exists()
    store = ImageStore(store_root)

    record = store.save_images(
        "Brezel",
        [_payload("xl/media/image1.png", PNG_BYTES, "image/png"), _payload("xl/media/image2.jpeg", JPEG_BYTES, "image/jpeg")],
        [ImageTransform(rotation_degrees=90.0), ImageTransform(flip_horizontal=True)],
    )

    assert record.image_count == 2
    assert store.has_image("Brezel")
    assert store.count() == 1
    images = store.get_all_images("Brezel")
    assert [blob.data for blob in images] == [PNG_BYTES, JPEG_BYTES]
    assert store.get_image("Brezel").mime_type == "image/png"
    assert store.get_transforms("Brezel")[0]["rotation"] == 90.0
    assert store.get_transforms("Brezel")[1]["flipH"] is True

    data_url = store.get_image_data_url("Brezel")
    assert data_url == "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")
    assert len(store.get_all_image_data_urls("Brezel")) == 2

    frame = store.query({"recipe_name": "brez"})
    assert list(frame["recipe_name"]) == ["Brezel"]
    assert frame.iloc[0]["image_count"] == 2


def test_save_replaces_wholesale(store_root: Path) -> None:
    store = ImageStore(store_root)
    first = store.save_images(
        "Kuchen",
        [_payload("a.png", PNG_BYTES, "image/png"), _payload("b.png", PNG_BYTES, "image/png")],
        [ImageTransform(rotation_degrees=180.0), ImageTransform()],
    )

    store.save_images("Kuchen", [_payload("c.jpeg", JPEG_BYTES, "image/jpeg")])

    images = store.get_all_images("Kuchen")
    assert [blob.data for blob in images] == [JPEG_BYTES]
    assert store.get_transforms("Kuchen") == [{}]
    record = store.get_record("Kuchen")
    assert record.created_at == first.created_at
    assert store.count() == 1
    assert len(list((store.blob_root / record.image_dir).iterdir())) == 1


def test_failed_index_write_keeps_previous_images(
    store_root: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    store = ImageStore(store_root)
    store.save_images("Suppe", [_payload("old.jpeg", b"old", "image/jpeg")], [ImageTransform(rotation_degrees=90.0)])

    def failing_write(*args: object, **kwargs: object) -> None:
        raise OSError("disk full")

    monkeypatch.setattr(image_store_module, "write_sheets", failing_write)
    with pytest.raises(OSError):
        store.save_images("Suppe", [_payload("new.png", PNG_BYTES, "image/png")])
    monkeypatch.undo()

    images = store.get_all_images("Suppe")
    assert [(blob.data, blob.mime_type) for blob in images] == [(b"old", "image/jpeg")]
    assert store.get_transforms("Suppe")[0]["rotation"] == 90.0
    assert [path.name for path in store.blob_root.iterdir()] == [store.get_record("Suppe").image_dir]


def test_save_validation(store_root: Path) -> None:
    store = ImageStore(store_root)

    with pytest.raises(StoreValidationError):
        store.save_images("", [_payload("a.png", PNG_BYTES, "image/png")])
    with pytest.raises(StoreValidationError):
        store.save_images("Leer", [])
    with pytest.raises(StoreValidationError):
        store.save_images("Brot", [_payload("a.png", PNG_BYTES, "image/png")], [{}, {}])


def test_save_multiple_counts_results(store_root: Path) -> None:
    store = ImageStore(store_root)
    events: list[dict[str, object]] = []

    counts = store.save_multiple(
        {
            "Brot": [ImageBlob(data=PNG_BYTES, mime_type="image/png")],
            "Suppe": ([ImageBlob(data=JPEG_BYTES, mime_type="image/jpeg")], [{"rotation": 90.0}]),
            "Leer": [],
        },
        progress_callback=events.append,
    )

    assert counts == {"success": 2, "failed": 1}
    assert events[-1]["current"] == 3
    assert store.recipe_names() == ["Brot", "Suppe"]


def test_delete_and_clear(store_root: Path) -> None:
    store = ImageStore(store_root)
    store.save_images("Brot", [_payload("a.png", PNG_BYTES, "image/png")])
    store.save_images("Suppe", [_payload("b.png", PNG_BYTES, "image/png")])

    assert store.delete_image("Brot") is True
    assert store.delete_image("Brot") is False
    assert store.get_all_images("Brot") == []

    store.clear_all()
    assert store.count() == 0
    assert store.get_image("Suppe") is None


def test_store_lock_is_reentrant(store_root: Path) -> None:
    store = ImageStore(store_root)
    store.init_store()

    with store_lock(store.path):
        store.save_images("Brot", [_payload("a.png", PNG_BYTES, "image/png")])

    assert not store.path.with_name(store.path.name + ".lock").exists()


def test_healthcheck(store_root: Path) -> None:
    health = ImageStore(store_root).healthcheck()

    assert health.is_healthy()
    assert health.to_dict()["healthy"] is True
