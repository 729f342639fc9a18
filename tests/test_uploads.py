"""
tests/test_uploads.py — Image uploads and listing
"""
from __future__ import annotations

import base64

import pytest

from mrbeans.core.errors import ApiError
from mrbeans.models import ImageKind, ImageUpload
from mrbeans.services.images import ImageStore, decode_image_data, sanitize_filename

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
PNG_B64 = base64.b64encode(PNG_BYTES).decode()


def _upload(**fields) -> ImageUpload:
    return ImageUpload.model_validate(fields)


def test_sanitize_filename():
    assert sanitize_filename("../../etc/passwd") == ".._.._etc_passwd"
    assert sanitize_filename("moja kava (1).png") == "moja_kava__1_.png"


def test_decode_strips_data_url_prefix():
    assert decode_image_data(f"data:image/png;base64,{PNG_B64}") == PNG_BYTES
    assert decode_image_data(PNG_B64) == PNG_BYTES


def test_save_writes_file(tmp_path):
    images = ImageStore(tmp_path)
    saved = images.save(ImageKind.COFFEE, _upload(filename="lavazza.png", data=PNG_B64, mimeType="image/png"))
    assert saved["filename"].endswith("-lavazza.png")
    assert saved["path"] == f"/images/coffees/{saved['filename']}"
    assert (tmp_path / "coffees" / saved["filename"]).read_bytes() == PNG_BYTES


@pytest.mark.parametrize("fields,field", [
    ({"data": PNG_B64}, "upload"),
    ({"filename": "a.png"}, "upload"),
    ({"filename": "a.svg", "data": PNG_B64, "mimeType": "image/svg+xml"}, "mimeType"),
    ({"filename": "a.png", "data": "@@not base64@@"}, "data"),
])
def test_save_rejects_bad_uploads(tmp_path, fields, field):
    with pytest.raises(ApiError) as exc_info:
        ImageStore(tmp_path).save(ImageKind.COFFEE, _upload(**fields))
    assert exc_info.value.status_code == 400
    assert exc_info.value.envelope["error"]["details"][0]["field"] == field


def test_brand_logos_may_be_svg(tmp_path):
    svg = base64.b64encode(b"<svg/>").decode()
    saved = ImageStore(tmp_path).save(ImageKind.BRAND, _upload(filename="logo.svg", data=svg, mimeType="image/svg+xml"))
    assert saved["path"].startswith("/images/brands/")


def test_list_filters_by_extension(tmp_path):
    images = ImageStore(tmp_path)
    images.ensure_dirs()
    (tmp_path / "coffees" / "a.jpg").write_bytes(b"x")
    (tmp_path / "coffees" / "b.PNG").write_bytes(b"x")
    (tmp_path / "coffees" / "notes.txt").write_bytes(b"x")
    assert images.list(ImageKind.COFFEE) == ["a.jpg", "b.PNG"]
    assert images.list(ImageKind.BRAND) == []


# ──────────────────────────────────────────────────────────────────────────────
# HTTP
# ──────────────────────────────────────────────────────────────────────────────

def test_upload_route_and_serving(client, auth_headers):
    body = {"filename": "espresso.png", "data": PNG_B64, "mimeType": "image/png"}
    response = client.post("/api/upload/coffee", json=body, headers=auth_headers)
    assert response.status_code == 200
    saved = response.json()["data"]

    listed = client.get("/api/images/coffees").json()["data"]["images"]
    assert listed == [saved["filename"]]

    served = client.get(saved["path"])
    assert served.status_code == 200
    assert served.content == PNG_BYTES


def test_upload_requires_admin(client):
    response = client.post("/api/upload/brand", json={"filename": "a.png", "data": PNG_B64})
    assert response.status_code == 401


def test_upload_unknown_kind(client, auth_headers):
    response = client.post("/api/upload/video", json={"filename": "a.png", "data": PNG_B64}, headers=auth_headers)
    assert response.status_code == 400


def test_upload_limit(client, auth_headers):
    body = {"filename": "a.png", "data": PNG_B64, "mimeType": "image/png"}
    codes = [client.post("/api/upload/coffee", json=body, headers=auth_headers).status_code for _ in range(6)]
    assert codes == [200] * 5 + [429]
