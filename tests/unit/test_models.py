"""
Unit tests for the drawing document and API models.
"""

import pytest
from pydantic import ValidationError

from pixelbridge.models import (
    ConversionResponse,
    DrawingDocument,
    DrawingMeta,
    ImageArchiveEntry,
    PixelRecord,
    UseImageRequest,
)


def _document(pixels, total=None, canvas_size=4, **meta):
    return DrawingDocument(
        meta=DrawingMeta(canvas_size=canvas_size, total_pixels=len(pixels) if total is None else total, **meta),
        pixels=[PixelRecord(x=x, y=y, r=1, g=2, b=3) for x, y in pixels],
    )


@pytest.mark.unit
class TestPixelRecord:

    def test_valid(self):
        p = PixelRecord(x=1, y=64, r=0, g=128, b=255)
        assert (p.x, p.y, p.r, p.g, p.b) == (1, 64, 0, 128, 255)

    @pytest.mark.parametrize("field, value", [("x", 0), ("y", -1), ("r", 256), ("g", -1), ("b", 1000)])
    def test_out_of_range(self, field, value):
        values = dict(x=1, y=1, r=0, g=0, b=0)
        values[field] = value
        with pytest.raises(ValidationError):
            PixelRecord(**values)


@pytest.mark.unit
class TestDrawingDocument:

    def test_total_pixels_must_match(self):
        with pytest.raises(ValidationError, match="totalPixels"):
            _document([(1, 1), (2, 1)], total=3)

    def test_pixels_must_fit_canvas(self):
        with pytest.raises(ValidationError, match="outside"):
            _document([(5, 1)], canvas_size=4)

    def test_serializes_with_wire_names(self):
        doc = _document([(1, 1)], updated_at="2025-01-15T10:00:00.000000Z", filename="cat.png")
        data = doc.to_json_dict()

        assert data["meta"] == {
            "canvasSize": 4,
            "totalPixels": 1,
            "updatedAt": "2025-01-15T10:00:00.000000Z",
            "filename": "cat.png",
        }
        assert data["pixels"] == [{"x": 1, "y": 1, "r": 1, "g": 2, "b": 3}]

    def test_parses_wire_names(self):
        doc = DrawingDocument.model_validate({
            "meta": {"canvasSize": 2, "totalPixels": 1, "updatedAt": "T", "imageUrl": "https://x/y.png"},
            "pixels": [{"x": 2, "y": 2, "r": 0, "g": 0, "b": 0}],
        })
        assert doc.meta.image_url == "https://x/y.png"
        assert doc.stamp == "T"

    def test_stamp_falls_back_to_count(self):
        assert _document([(1, 1), (1, 2)]).stamp == "2"

    def test_empty_drawing_is_valid(self):
        assert _document([]).meta.total_pixels == 0


@pytest.mark.unit
class TestApiModels:

    def test_use_image_accepts_camel_case(self):
        req = UseImageRequest.model_validate({"rawUrl": "https://example.com/a.png", "filename": "a.png"})
        assert req.raw_url == "https://example.com/a.png"

    def test_use_image_fields_optional(self):
        assert UseImageRequest.model_validate({}).raw_url is None

    def test_conversion_response_wire_names(self):
        entry = ImageArchiveEntry(filename="a.png", path="images/a.png", raw_url="https://raw/a.png")
        resp = ConversionResponse(
            success=True,
            image=entry,
            total_pixels=4,
            canvas_size=2,
            drawing_url="https://raw/drawing.json",
            message="ok",
        )
        data = resp.model_dump(by_alias=True)

        assert data["totalPixels"] == 4
        assert data["canvasSize"] == 2
        assert data["drawingUrl"] == "https://raw/drawing.json"
        assert data["image"]["rawUrl"] == "https://raw/a.png"
